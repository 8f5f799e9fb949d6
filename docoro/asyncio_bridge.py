"""Bridge between ResultFuture and asyncio.

Two directions are supported:

- ``to_asyncio_future`` mirrors a ResultFuture on an asyncio event loop, so
  asyncio code can ``await drive(...)``. ``ResultFuture.__await__`` uses it.
- ``from_asyncio`` settles a ResultFuture from an asyncio future, task or
  native coroutine, so a driven computation can ``yield`` them directly.

Settlement is always delivered on the loop thread. Cancelling the mirrored
asyncio future does not stop the driven computation.

Usage::

    from docoro import drive

    def fetch_pair(client):
        first = yield client.get("a")      # asyncio coroutine
        second = yield client.get("b")
        return first, second

    async def main(client):
        return await drive(fetch_pair, client)
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, TypeVar

from docoro.future import ResultFuture

T = TypeVar("T")

# Tasks created for yielded coroutines, held until they finish
running_tasks: set[asyncio.Task[Any]] = set()


def to_asyncio_future(
    future: ResultFuture[T], loop: asyncio.AbstractEventLoop | None = None
) -> asyncio.Future[T]:
    """Return an asyncio future that settles like ``future``.

    ``loop`` defaults to the running loop.
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    mirror: asyncio.Future[T] = loop.create_future()

    def _fulfilled(value: T) -> None:
        loop.call_soon_threadsafe(_set_result, mirror, value)

    def _rejected(error: BaseException) -> None:
        loop.call_soon_threadsafe(_set_exception, mirror, error)

    future.add_callbacks(_fulfilled, _rejected)
    return mirror


def _set_result(mirror: asyncio.Future[Any], value: Any) -> None:
    if not mirror.done():
        mirror.set_result(value)


def _set_exception(mirror: asyncio.Future[Any], error: BaseException) -> None:
    if mirror.done():
        return
    if isinstance(error, asyncio.CancelledError):
        mirror.cancel()
    elif isinstance(error, StopIteration):
        # asyncio futures refuse StopIteration
        mirror.set_exception(RuntimeError(f"StopIteration raised: {error!r}"))
    else:
        mirror.set_exception(error)


def is_asyncio_awaitable(value: Any) -> bool:
    return asyncio.isfuture(value) or inspect.iscoroutine(value)


def from_asyncio(
    awaitable: Any, loop: asyncio.AbstractEventLoop | None = None
) -> ResultFuture[Any]:
    """Return a ResultFuture settled by an asyncio future, task or coroutine.

    Coroutines are scheduled as tasks on ``loop`` (the running loop by
    default). Without a running loop the coroutine is closed and
    ``RuntimeError`` is raised.
    """
    if asyncio.isfuture(awaitable):
        source = awaitable
    elif inspect.iscoroutine(awaitable):
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                awaitable.close()
                raise
        source = loop.create_task(awaitable)
        running_tasks.add(source)
        source.add_done_callback(running_tasks.discard)
    else:
        raise TypeError(f"Expected an asyncio future or coroutine, got {type(awaitable).__name__}")

    future: ResultFuture[Any] = ResultFuture(label=f"asyncio:{type(source).__name__}")

    def _done(done: asyncio.Future[Any]) -> None:
        if done.cancelled():
            future.reject(asyncio.CancelledError())
            return
        error = done.exception()
        if error is not None:
            future.reject(error)
        else:
            future.fulfill(done.result())

    if source.done():
        _done(source)
    else:
        source.add_done_callback(_done)
    return future


__all__ = ["from_asyncio", "is_asyncio_awaitable", "to_asyncio_future"]
