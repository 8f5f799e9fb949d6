"""Exceptions raised by docoro and the rejection taxonomy used in its logs."""

from __future__ import annotations

from enum import Enum
from typing import Any


class RejectionKind(str, Enum):
    """Where a rejection of a driven invocation came from."""

    SYNCHRONOUS_THROW = "synchronous_throw"
    SUSPEND_POINT_REJECTION = "suspend_point_rejection"
    COMPUTATION_ERROR = "computation_error"
    FINAL_VALUE_REJECTION = "final_value_rejection"


class DocoroError(Exception):
    """Base class for errors raised by docoro itself."""


class DriverStateError(DocoroError, RuntimeError):
    """Raised when a StepDriver is asked to do something its state forbids."""

    def __init__(self, name: str, state: Any, action: str) -> None:
        self.name = name
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} driver {name!r} in state {state}")


class FutureNotSettledError(DocoroError, RuntimeError):
    """Raised when reading the result of a ResultFuture that is still pending."""

    def __init__(self, future: Any) -> None:
        self.future = future
        super().__init__(
            f"{future!r} is still pending\n"
            "Hint: attach callbacks with `add_callbacks`/`then`, or `await` it from asyncio code"
        )


class NonExceptionRejection(DocoroError):
    """Carries a rejection reason that is not an exception instance."""

    def __init__(self, reason: Any) -> None:
        self.reason = reason
        super().__init__(f"Rejected with non-exception reason: {reason!r}")


def as_exception(error: Any) -> BaseException:
    """Coerce a rejection reason into something ``generator.throw`` accepts."""
    if isinstance(error, BaseException):
        return error
    if isinstance(error, type) and issubclass(error, BaseException):
        return error()
    return NonExceptionRejection(error)


__all__ = [
    "as_exception",
    "DocoroError",
    "DriverStateError",
    "FutureNotSettledError",
    "NonExceptionRejection",
    "RejectionKind",
]
