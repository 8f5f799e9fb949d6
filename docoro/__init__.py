"""
docoro - drive generator-based coroutines into single asynchronous results.

A generator function yields awaitables (ResultFutures, asyncio futures and
coroutines, or plain values) and receives their results back at each
``yield``; ``drive`` runs it and returns a ResultFuture for its return value.

Example:
    >>> from docoro import drive, ResultFuture
    >>>
    >>> def add_later(pending):
    ...     a = yield pending
    ...     b = yield 2
    ...     return a + b
    >>>
    >>> source = ResultFuture()
    >>> result = drive(add_later, source)
    >>> result.is_pending
    True
    >>> source.fulfill(40)
    True
    >>> result.result()
    42
"""

from docoro.asyncio_bridge import from_asyncio, to_asyncio_future
from docoro.config import DriverSettings, configure, get_settings, reset_settings
from docoro.decorators import DrivenFunction, coroutine
from docoro.dispatch import (
    Invocation,
    TargetKind,
    classify,
    dispatch,
    drive,
    drive_with_context,
)
from docoro.driver import DriverState, StepDriver
from docoro.errors import (
    DocoroError,
    DriverStateError,
    FutureNotSettledError,
    NonExceptionRejection,
    RejectionKind,
)
from docoro.future import FutureState, ResultFuture, Thenable
from docoro.normalize import is_awaitable, normalize
from docoro.result import Err, Ok, Result

__version__ = "0.1.0"

__all__ = [
    "DocoroError",
    "DrivenFunction",
    "DriverSettings",
    "DriverState",
    "DriverStateError",
    "Err",
    "FutureNotSettledError",
    "FutureState",
    "Invocation",
    "NonExceptionRejection",
    "Ok",
    "RejectionKind",
    "Result",
    "ResultFuture",
    "StepDriver",
    "TargetKind",
    "Thenable",
    "classify",
    "configure",
    "coroutine",
    "dispatch",
    "drive",
    "drive_with_context",
    "from_asyncio",
    "get_settings",
    "is_awaitable",
    "normalize",
    "reset_settings",
    "to_asyncio_future",
]
