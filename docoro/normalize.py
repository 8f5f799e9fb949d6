"""
Value normalization for the step driver.

Every value a computation yields or returns goes through ``normalize`` so the
driver only ever deals with one shape: something it can attach fulfillment and
rejection callbacks to.
"""

from __future__ import annotations

from typing import Any

from docoro.asyncio_bridge import from_asyncio, is_asyncio_awaitable
from docoro.future import ResultFuture, Thenable


def is_awaitable(value: Any) -> bool:
    """Return ``True`` if ``value`` exposes ``add_callbacks``.

    Classes are never awaitable even when they define ``add_callbacks``.
    """
    if isinstance(value, type):
        return False
    return callable(getattr(value, "add_callbacks", None))


def normalize(value: Any) -> Thenable:
    """Convert ``value`` into an awaitable.

    - awaitables are returned unchanged, so ``normalize`` is idempotent;
    - asyncio futures, tasks and coroutines are bridged into a ResultFuture;
    - anything else (including generator functions and generator objects)
      is wrapped in an already-fulfilled ResultFuture.
    """
    if is_awaitable(value):
        return value
    if is_asyncio_awaitable(value):
        return from_asyncio(value)
    return ResultFuture.resolved(value)


__all__ = ["is_awaitable", "normalize"]
