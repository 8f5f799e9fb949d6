"""
Step driver for resumable computations.

A StepDriver owns exactly one generator and advances it until it returns or
raises, settling a ResultFuture with the outcome:

- the first step sends ``None``;
- every yielded value is normalized; its fulfillment value is sent back into
  the generator, its rejection is thrown into it at the same ``yield``;
- the returned value is normalized too, and its outcome settles the future;
- anything the generator raises rejects the future.

Suspend points whose awaitable is already settled (plain values, finished
futures) are handled inside the same loop, so a computation that never waits
on anything pending completes before ``start`` returns, at constant stack
depth. A suspend point that never settles leaves the driver SUSPENDED forever.
"""

from __future__ import annotations

from collections.abc import Generator
from enum import Enum
from typing import Any, Generic, TypeVar

from loguru import logger

from docoro.config import get_settings, short_repr
from docoro.errors import DriverStateError, RejectionKind, as_exception
from docoro.future import ResultFuture
from docoro.normalize import normalize
from docoro.result import Err, Ok, Result

T = TypeVar("T")

_log = logger.bind(component="docoro.driver")


class DriverState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    SUSPENDED = "suspended"
    DONE = "done"


class _Waiter:
    """Collects the outcome of one suspend point.

    Only the first outcome is accepted. If it arrives while callbacks are still
    being attached it is kept for the running loop; once the driver has parked,
    it resumes the driver directly.
    """

    __slots__ = ("driver", "outcome", "delivered", "parked")

    def __init__(self, driver: StepDriver[Any]) -> None:
        self.driver = driver
        self.outcome: Result[Any] | None = None
        self.delivered = False
        self.parked = False

    def fulfilled(self, value: Any) -> None:
        self._deliver(Ok(value))

    def rejected(self, error: Any) -> None:
        self._deliver(Err(as_exception(error)))

    def _deliver(self, outcome: Result[Any]) -> None:
        if self.delivered:
            return
        self.delivered = True
        if self.parked:
            self.driver._run(outcome)
        else:
            self.outcome = outcome


class StepDriver(Generic[T]):
    """Drive one generator to completion and expose its ResultFuture."""

    def __init__(
        self,
        computation: Generator[Any, Any, T],
        future: ResultFuture[T] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        self._computation = computation
        self.name = name or getattr(computation, "__qualname__", None) or type(computation).__name__
        self.future: ResultFuture[T] = future if future is not None else ResultFuture(label=self.name)
        self.state = DriverState.CREATED
        self.steps = 0
        self.rejection_kind: RejectionKind | None = None

    def start(self) -> ResultFuture[T]:
        """Run the computation up to its first pending suspend point."""
        if self.state is not DriverState.CREATED:
            raise DriverStateError(self.name, self.state, "start")
        self._run(Ok(None))
        return self.future

    def _run(self, outcome: Result[Any]) -> None:
        trace = get_settings().trace_steps
        while True:
            self.state = DriverState.RUNNING
            self.steps += 1
            if trace:
                _log.debug(
                    "{} step {}: {} {}",
                    self.name,
                    self.steps,
                    "throw" if isinstance(outcome, Err) else "send",
                    short_repr(outcome.err() if isinstance(outcome, Err) else outcome.ok()),
                )
            try:
                if isinstance(outcome, Err):
                    yielded = self._computation.throw(outcome.error)
                else:
                    yielded = self._computation.send(outcome.value)
            except StopIteration as stop:
                self._finish(stop.value)
                return
            except (KeyboardInterrupt, SystemExit) as exc:
                self._fail(exc, RejectionKind.COMPUTATION_ERROR)
                raise
            except BaseException as exc:
                if isinstance(outcome, Err) and exc is outcome.error:
                    kind = RejectionKind.SUSPEND_POINT_REJECTION
                else:
                    kind = RejectionKind.COMPUTATION_ERROR
                self._fail(exc, kind)
                return

            next_outcome = self._wait(yielded)
            if next_outcome is None:
                return
            outcome = next_outcome

    def _wait(self, yielded: Any) -> Result[Any] | None:
        """Return the outcome of ``yielded`` if available now, else park and return None."""
        try:
            awaitable = normalize(yielded)
        except Exception as exc:
            return Err(exc)
        if isinstance(awaitable, ResultFuture) and awaitable.done():
            return awaitable.outcome

        waiter = _Waiter(self)
        try:
            awaitable.add_callbacks(waiter.fulfilled, waiter.rejected)
        except Exception as exc:
            if waiter.delivered:
                return waiter.outcome
            waiter.delivered = True
            return Err(exc)
        if waiter.delivered:
            return waiter.outcome

        self.state = DriverState.SUSPENDED
        waiter.parked = True
        if get_settings().trace_steps:
            _log.debug("{} suspended on {}", self.name, short_repr(awaitable))
        return None

    def _finish(self, value: Any) -> None:
        try:
            awaitable = normalize(value)
        except Exception as exc:
            self._fail(exc, RejectionKind.FINAL_VALUE_REJECTION)
            return
        if isinstance(awaitable, ResultFuture) and awaitable.done():
            outcome = awaitable.outcome
            if outcome.is_ok():
                self._succeed(outcome.ok())
            else:
                self._fail(outcome.err(), RejectionKind.FINAL_VALUE_REJECTION)
            return

        self.state = DriverState.SUSPENDED
        try:
            awaitable.add_callbacks(self._succeed, self._final_rejected)
        except Exception as exc:
            self._fail(exc, RejectionKind.FINAL_VALUE_REJECTION)

    def _final_rejected(self, error: Any) -> None:
        self._fail(as_exception(error), RejectionKind.FINAL_VALUE_REJECTION)

    def _succeed(self, value: Any) -> None:
        if self.state is DriverState.DONE:
            return
        self.state = DriverState.DONE
        if get_settings().trace_steps:
            _log.debug("{} fulfilled after {} steps: {}", self.name, self.steps, short_repr(value))
        self.future.fulfill(value)

    def _fail(self, error: BaseException, kind: RejectionKind) -> None:
        if self.state is DriverState.DONE:
            return
        self.state = DriverState.DONE
        self.rejection_kind = kind
        if get_settings().trace_steps:
            _log.debug(
                "{} rejected after {} steps ({}): {}",
                self.name,
                self.steps,
                kind.value,
                short_repr(error),
            )
        self.future.reject(error)

    def __repr__(self) -> str:
        return f"<StepDriver {self.name} {self.state.value} steps={self.steps}>"


__all__ = ["DriverState", "StepDriver"]
