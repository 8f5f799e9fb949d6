"""
ResultFuture: the single-assignment completion signal of a driven invocation.

A ResultFuture starts PENDING and settles exactly once, either FULFILLED with a
value or REJECTED with an exception. The first settlement wins; every later
``fulfill``/``reject``/``resolve`` call returns ``False`` and changes nothing.

Callbacks attached with ``add_callbacks`` run in registration order before the
outermost settlement returns (or immediately when attached to a future that
has already settled), so a computation whose suspend points only see settled
values completes before ``drive`` returns. Settlements triggered from inside a
callback are queued and run by that outermost settlement, one after another,
instead of nesting on the call stack.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Generator
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from loguru import logger

from docoro.config import short_repr
from docoro.errors import FutureNotSettledError, as_exception
from docoro.result import Err, Ok, Result

T = TypeVar("T")

_log = logger.bind(component="docoro.future")

FulfilledCallback = Callable[[Any], Any]
RejectedCallback = Callable[[BaseException], Any]


class FutureState(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@runtime_checkable
class Thenable(Protocol):
    """Anything that accepts fulfillment/rejection callbacks."""

    def add_callbacks(
        self,
        on_fulfilled: FulfilledCallback | None = None,
        on_rejected: RejectedCallback | None = None,
    ) -> Any: ...


class _CallbackRuns(threading.local):
    """Per-thread FIFO of callback runs owed by settled futures.

    Only the outermost ``drain`` on a thread invokes callbacks; a settlement
    made from inside a callback enqueues its runs and returns, so the stack
    depth stays constant however deeply futures are chained.
    """

    def __init__(self) -> None:
        self.queue: deque[tuple[ResultFuture[Any], FulfilledCallback | None, RejectedCallback | None]] = deque()
        self.draining = False

    def push(
        self,
        future: ResultFuture[Any],
        on_fulfilled: FulfilledCallback | None,
        on_rejected: RejectedCallback | None,
    ) -> None:
        self.queue.append((future, on_fulfilled, on_rejected))

    def drain(self) -> None:
        if self.draining:
            return
        self.draining = True
        try:
            while self.queue:
                future, on_fulfilled, on_rejected = self.queue.popleft()
                future._invoke(on_fulfilled, on_rejected)
        finally:
            self.draining = False


_runs = _CallbackRuns()


class ResultFuture(Generic[T]):
    """Single-assignment future settled by a StepDriver or by hand."""

    def __init__(self, label: str | None = None) -> None:
        self.label = label
        self._outcome: Result[T] | None = None
        self._adopting = False
        self._callbacks: list[tuple[FulfilledCallback | None, RejectedCallback | None]] = []

    @classmethod
    def resolved(cls, value: T, label: str | None = None) -> ResultFuture[T]:
        """Return a future already fulfilled with ``value`` (taken literally)."""
        future: ResultFuture[T] = cls(label)
        future.fulfill(value)
        return future

    @classmethod
    def failed(cls, error: BaseException, label: str | None = None) -> ResultFuture[Any]:
        future: ResultFuture[Any] = cls(label)
        future.reject(error)
        return future

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> FutureState:
        if self._outcome is None:
            return FutureState.PENDING
        if self._outcome.is_ok():
            return FutureState.FULFILLED
        return FutureState.REJECTED

    @property
    def outcome(self) -> Result[T] | None:
        """The settled ``Ok``/``Err``, or ``None`` while pending."""
        return self._outcome

    def done(self) -> bool:
        return self._outcome is not None

    @property
    def is_pending(self) -> bool:
        return self._outcome is None

    @property
    def is_fulfilled(self) -> bool:
        return self._outcome is not None and self._outcome.is_ok()

    @property
    def is_rejected(self) -> bool:
        return self._outcome is not None and self._outcome.is_err()

    def result(self) -> T:
        """Return the fulfilled value, raise the rejection, or raise if pending."""
        if self._outcome is None:
            raise FutureNotSettledError(self)
        return self._outcome.unwrap()

    def exception(self) -> BaseException | None:
        if self._outcome is None:
            raise FutureNotSettledError(self)
        return self._outcome.err()

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def fulfill(self, value: T) -> bool:
        if self._adopting:
            return False
        return self._settle(Ok(value))

    def reject(self, error: Any) -> bool:
        if self._adopting:
            return False
        return self._settle(Err(as_exception(error)))

    def resolve(self, value: Any) -> bool:
        """Adopt ``value``: settle like it if it is awaitable, else fulfill with it.

        While an adopted awaitable is pending the future is locked: outside
        ``fulfill``/``reject``/``resolve`` calls return ``False`` and only the
        adopted awaitable settles it. Returns ``False`` when the future has
        already settled or is locked.
        """
        if self._outcome is not None or self._adopting:
            return False
        if value is self:
            return self.reject(TypeError("A ResultFuture cannot be resolved with itself"))

        from docoro.normalize import normalize

        try:
            awaitable = normalize(value)
        except Exception as exc:
            return self.reject(exc)
        if isinstance(awaitable, ResultFuture) and awaitable.done():
            return self._settle(awaitable._outcome)
        self._adopting = True
        try:
            awaitable.add_callbacks(self._adopt_fulfilled, self._adopt_rejected)
        except Exception as exc:
            return self._settle(Err(exc))
        return True

    def _adopt_fulfilled(self, value: Any) -> None:
        self._settle(Ok(value))

    def _adopt_rejected(self, error: Any) -> None:
        self._settle(Err(as_exception(error)))

    def _settle(self, outcome: Result[T]) -> bool:
        if self._outcome is not None:
            return False
        self._outcome = outcome
        self._adopting = False
        callbacks, self._callbacks = self._callbacks, []
        for on_fulfilled, on_rejected in callbacks:
            _runs.push(self, on_fulfilled, on_rejected)
        _runs.drain()
        return True

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def add_callbacks(
        self,
        on_fulfilled: FulfilledCallback | None = None,
        on_rejected: RejectedCallback | None = None,
    ) -> None:
        if self._outcome is None:
            self._callbacks.append((on_fulfilled, on_rejected))
        else:
            _runs.push(self, on_fulfilled, on_rejected)
            _runs.drain()

    def _invoke(
        self,
        on_fulfilled: FulfilledCallback | None,
        on_rejected: RejectedCallback | None,
    ) -> None:
        outcome = self._outcome
        try:
            if outcome.is_ok():
                if on_fulfilled is not None:
                    on_fulfilled(outcome.ok())
            elif on_rejected is not None:
                on_rejected(outcome.err())
        except Exception as exc:
            _log.opt(exception=exc).error("Callback attached to {} raised", self)

    def then(
        self,
        on_fulfilled: Callable[[T], Any] | None = None,
        on_rejected: Callable[[BaseException], Any] | None = None,
    ) -> ResultFuture[Any]:
        """Derive a future settled by the handler matching this future's outcome.

        A handler's return value is resolved into the derived future (so a
        returned awaitable is adopted); a handler that raises rejects it.
        A missing handler passes the outcome through unchanged.
        """
        derived: ResultFuture[Any] = ResultFuture()

        def _fulfilled(value: T) -> None:
            if on_fulfilled is None:
                derived.fulfill(value)
                return
            try:
                next_value = on_fulfilled(value)
            except Exception as exc:
                derived.reject(exc)
                return
            derived.resolve(next_value)

        def _rejected(error: BaseException) -> None:
            if on_rejected is None:
                derived.reject(error)
                return
            try:
                next_value = on_rejected(error)
            except Exception as exc:
                derived.reject(exc)
                return
            derived.resolve(next_value)

        self.add_callbacks(_fulfilled, _rejected)
        return derived

    def catch(self, on_rejected: Callable[[BaseException], Any]) -> ResultFuture[Any]:
        return self.then(None, on_rejected)

    def __await__(self) -> Generator[Any, None, T]:
        from docoro.asyncio_bridge import to_asyncio_future

        return to_asyncio_future(self).__await__()

    def __repr__(self) -> str:
        name = f" {self.label}" if self.label else ""
        if self._outcome is None:
            return f"<ResultFuture{name} pending>"
        if self._outcome.is_ok():
            return f"<ResultFuture{name} fulfilled={short_repr(self._outcome.value)}>"
        return f"<ResultFuture{name} rejected={short_repr(self._outcome.error)}>"


__all__ = ["FutureState", "ResultFuture", "Thenable"]
