"""
Entry points: ``drive`` and ``drive_with_context``.

An invocation target is classified once, when the invocation is created:

FACTORY
    A generator function (or a bound method / ``functools.partial`` of one, or
    a ``@coroutine``-decorated function). It is called with the arguments and
    the resulting generator is handed to a StepDriver.
CALLABLE
    Any other callable. It is called synchronously; its return value resolves
    the future (an awaitable return value is adopted), its exception rejects
    it.
VALUE
    Anything else. The value is normalized and resolves the future.

The call happens before ``drive`` returns: a generator runs up to its first
pending suspend point, an ordinary callable runs to completion.
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from frozendict import frozendict
from loguru import logger

from docoro.config import get_settings, short_repr
from docoro.driver import StepDriver
from docoro.errors import RejectionKind
from docoro.future import ResultFuture

_log = logger.bind(component="docoro.dispatch")


class TargetKind(str, Enum):
    FACTORY = "factory"
    CALLABLE = "callable"
    VALUE = "value"


def unwrap_driven(target: Any) -> Any:
    """Strip ``@coroutine`` wrappers so the dispatcher sees the user function."""
    while getattr(type(target), "__docoro_driven__", False):
        target = target.original_func
    return target


def classify(target: Any) -> TargetKind:
    target = unwrap_driven(target)
    if inspect.isgeneratorfunction(target):
        return TargetKind.FACTORY
    if callable(target):
        return TargetKind.CALLABLE
    return TargetKind.VALUE


def _target_name(target: Any) -> str:
    return getattr(target, "__qualname__", None) or type(target).__name__


@dataclass(frozen=True)
class Invocation:
    """One call of ``drive``: what to run, with which arguments and ``self``."""

    target: Any
    kind: TargetKind
    args: tuple[Any, ...] = ()
    kwargs: frozendict[str, Any] = field(default_factory=frozendict)
    context: Any = None
    bind_context: bool = False

    @classmethod
    def create(
        cls,
        target: Any,
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        *,
        context: Any = None,
        bind_context: bool = False,
    ) -> Invocation:
        target = unwrap_driven(target)
        return cls(
            target=target,
            kind=classify(target),
            args=tuple(args),
            kwargs=frozendict(kwargs or {}),
            context=context,
            bind_context=bind_context,
        )

    @property
    def name(self) -> str:
        return _target_name(self.target)

    def bound_target(self) -> Callable[..., Any]:
        """Return the target with the context bound as its first argument."""
        if self.bind_context:
            return types.MethodType(self.target, self.context)
        return self.target


def dispatch(invocation: Invocation) -> ResultFuture[Any]:
    """Run ``invocation`` and return its ResultFuture."""
    if invocation.kind is TargetKind.VALUE:
        future: ResultFuture[Any] = ResultFuture(label="value")
        future.resolve(invocation.target)
        return future

    call = invocation.bound_target()
    name = invocation.name
    try:
        returned = call(*invocation.args, **invocation.kwargs)
    except (KeyboardInterrupt, SystemExit):
        raise
    except BaseException as exc:
        if get_settings().trace_steps:
            _log.debug(
                "{} raised synchronously ({}): {}",
                name,
                RejectionKind.SYNCHRONOUS_THROW.value,
                short_repr(exc),
            )
        return ResultFuture.failed(exc, label=name)

    if invocation.kind is TargetKind.FACTORY:
        return StepDriver(returned, name=name).start()

    future = ResultFuture(label=name)
    future.resolve(returned)
    return future


def drive(target: Any, /, *args: Any, **kwargs: Any) -> ResultFuture[Any]:
    """Drive ``target`` with ``args`` and return a ResultFuture for its result.

    Example::

        def greet(user_id):
            user = yield fetch_user(user_id)       # any awaitable or plain value
            return f"hello {user.name}"

        drive(greet, 42).then(print)
    """
    return dispatch(Invocation.create(target, args, kwargs))


def drive_with_context(
    context: Any, target: Any, /, *args: Any, **kwargs: Any
) -> ResultFuture[Any]:
    """Like ``drive``, with ``context`` bound as the target's ``self``.

    ``drive_with_context(ctx, f, a, b)`` calls ``f(ctx, a, b)``.
    """
    return dispatch(Invocation.create(target, args, kwargs, context=context, bind_context=True))


__all__ = [
    "Invocation",
    "TargetKind",
    "classify",
    "dispatch",
    "drive",
    "drive_with_context",
    "unwrap_driven",
]
