"""
The @coroutine decorator.

Calling a decorated generator function drives it immediately and returns its
ResultFuture, so generator code can be called like any other asynchronous
function and composed by yielding the returned future::

    @coroutine
    def total(cart):
        prices = []
        for item in cart:
            prices.append((yield price_of(item)))
        return sum(prices)

    @coroutine
    def checkout(cart):
        amount = yield total(cart)
        return (yield charge(amount))
"""

from __future__ import annotations

import inspect
import types
from collections.abc import Callable
from typing import Any, Generic, ParamSpec, TypeVar

from docoro.dispatch import drive
from docoro.future import ResultFuture

P = ParamSpec("P")
T = TypeVar("T")


class DrivenFunction(Generic[P, T]):
    """Callable wrapper that drives ``original_func`` on every call."""

    __docoro_driven__ = True

    def __init__(self, func: Callable[P, Any]) -> None:
        self.original_func = func
        self.__wrapped__ = func

        for attr in ("__doc__", "__module__", "__name__", "__qualname__", "__annotations__"):
            value = getattr(func, attr, None)
            if value is not None:
                setattr(self, attr, value)

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            signature = None
        if signature is not None:
            self.__signature__ = signature

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> ResultFuture[T]:
        return drive(self.original_func, *args, **kwargs)

    def __get__(self, instance: Any, owner: type | None = None) -> DrivenFunction[..., T]:
        if instance is None:
            return self
        return DrivenFunction(types.MethodType(self.original_func, instance))

    def __repr__(self) -> str:
        return f"<coroutine {getattr(self, '__qualname__', self.original_func)!r}>"


def coroutine(func: Callable[P, Any]) -> DrivenFunction[P, Any]:
    """Turn ``func`` into a function that returns a ResultFuture when called.

    ``func`` is usually a generator function; an ordinary function works too
    and resolves to its return value.
    """
    if not callable(func):
        raise TypeError(f"@coroutine expects a callable, got {type(func).__name__}")
    return DrivenFunction(func)


__all__ = ["DrivenFunction", "coroutine"]
