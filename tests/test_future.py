"""Tests for the single-assignment ResultFuture."""

import pytest

from docoro import (
    Err,
    FutureNotSettledError,
    FutureState,
    NonExceptionRejection,
    Ok,
    ResultFuture,
)


class TestSettlement:
    def test_new_future_is_pending(self):
        future = ResultFuture()

        assert future.state is FutureState.PENDING
        assert future.is_pending
        assert not future.done()
        assert future.outcome is None

    def test_fulfill_settles_once(self):
        future = ResultFuture()

        assert future.fulfill(1) is True
        assert future.fulfill(2) is False
        assert future.reject(ValueError("late")) is False

        assert future.state is FutureState.FULFILLED
        assert future.result() == 1
        assert future.outcome == Ok(1)

    def test_reject_settles_once(self):
        future = ResultFuture()
        error = ValueError("boom")

        assert future.reject(error) is True
        assert future.fulfill("late") is False

        assert future.is_rejected
        assert future.exception() is error
        assert future.outcome == Err(error)

    def test_result_raises_rejection(self):
        error = KeyError("missing")
        future = ResultFuture.failed(error)

        with pytest.raises(KeyError) as exc_info:
            future.result()
        assert exc_info.value is error

    def test_result_of_pending_future_raises(self):
        future = ResultFuture(label="waiting")

        with pytest.raises(FutureNotSettledError) as exc_info:
            future.result()
        assert exc_info.value.future is future

        with pytest.raises(FutureNotSettledError):
            future.exception()

    def test_non_exception_reason_is_wrapped(self):
        future = ResultFuture()
        future.reject("someError")

        error = future.exception()
        assert isinstance(error, NonExceptionRejection)
        assert error.reason == "someError"

    def test_exception_class_is_instantiated(self):
        future = ResultFuture()
        future.reject(ValueError)

        assert isinstance(future.exception(), ValueError)

    def test_resolved_constructor_takes_value_literally(self):
        inner = ResultFuture()
        future = ResultFuture.resolved(inner)

        assert future.result() is inner


class TestCallbacks:
    def test_callbacks_run_in_registration_order(self):
        future = ResultFuture()
        calls = []
        future.add_callbacks(lambda v: calls.append(("first", v)))
        future.add_callbacks(lambda v: calls.append(("second", v)))

        assert calls == []
        future.fulfill("x")
        assert calls == [("first", "x"), ("second", "x")]

    def test_callback_attached_after_settlement_runs_immediately(self):
        future = ResultFuture.resolved(5)
        calls = []

        future.add_callbacks(calls.append)

        assert calls == [5]

    def test_rejection_callback_receives_error(self):
        future = ResultFuture()
        errors = []
        future.add_callbacks(None, errors.append)
        error = RuntimeError("bad")

        future.reject(error)

        assert errors == [error]

    def test_raising_callback_does_not_block_others(self, log_records):
        future = ResultFuture(label="shared")
        calls = []

        def broken(value):
            raise RuntimeError("callback failure")

        future.add_callbacks(broken)
        future.add_callbacks(calls.append)
        future.fulfill(3)

        assert calls == [3]
        errors = [r for r in log_records if r["level"].name == "ERROR"]
        assert len(errors) == 1
        assert errors[0]["extra"]["component"] == "docoro.future"


class TestResolve:
    def test_resolve_with_plain_value_fulfills(self):
        future = ResultFuture()

        assert future.resolve(7) is True
        assert future.result() == 7

    def test_resolve_adopts_pending_future(self):
        source = ResultFuture()
        future = ResultFuture()

        future.resolve(source)
        assert future.is_pending

        source.fulfill("adopted")
        assert future.result() == "adopted"

    def test_resolve_adopts_rejection(self):
        error = ValueError("nope")
        future = ResultFuture()

        future.resolve(ResultFuture.failed(error))

        assert future.exception() is error

    def test_resolve_with_itself_rejects(self):
        future = ResultFuture()

        future.resolve(future)

        assert isinstance(future.exception(), TypeError)

    def test_resolve_settled_future_is_noop(self):
        future = ResultFuture.resolved(1)

        assert future.resolve(2) is False
        assert future.result() == 1

    def test_adopting_future_ignores_outside_settlement(self):
        source = ResultFuture()
        future = ResultFuture()

        assert future.resolve(source) is True
        assert future.fulfill("x") is False
        assert future.reject(ValueError("outside")) is False
        assert future.resolve(ResultFuture.resolved("other")) is False
        assert future.is_pending

        source.fulfill("y")
        assert future.result() == "y"

    def test_adopted_rejection_settles_locked_future(self):
        source = ResultFuture()
        future = ResultFuture()
        future.resolve(source)
        error = KeyError("adopted")

        assert future.fulfill("ignored") is False
        source.reject(error)

        assert future.exception() is error


class TestThen:
    def test_then_transforms_value(self):
        derived = ResultFuture.resolved(2).then(lambda v: v * 10)

        assert derived.result() == 20

    def test_then_passes_rejection_through_without_handler(self):
        error = ValueError("through")
        derived = ResultFuture.failed(error).then(lambda v: v * 10)

        assert derived.exception() is error

    def test_handler_exception_rejects_derived_future(self):
        error = LookupError("handler")

        def handler(value):
            raise error

        derived = ResultFuture.resolved(1).then(handler)

        assert derived.exception() is error

    def test_handler_returning_future_is_adopted(self):
        source = ResultFuture()
        later = ResultFuture()
        derived = source.then(lambda v: later)

        source.fulfill(None)
        assert derived.is_pending

        later.fulfill("chained")
        assert derived.result() == "chained"

    def test_catch_recovers(self):
        derived = ResultFuture.failed(ValueError("x")).catch(lambda e: f"recovered from {e}")

        assert derived.result() == "recovered from x"

    def test_long_then_chain_settles(self, log_records):
        root = ResultFuture()
        future = root
        for _ in range(2000):
            future = future.then(lambda v: v + 1)

        root.fulfill(0)

        assert future.result() == 2000
        assert [r for r in log_records if r["level"].name == "ERROR"] == []

    def test_settlement_inside_callback_completes_before_fulfill_returns(self):
        first, second = ResultFuture(), ResultFuture()
        order = []
        first.add_callbacks(lambda v: (order.append("first"), second.fulfill(v + 1)))
        first.add_callbacks(lambda v: order.append("first-again"))
        second.add_callbacks(lambda v: order.append(f"second:{v}"))

        first.fulfill(1)

        assert second.result() == 2
        assert order == ["first", "first-again", "second:2"]


class TestRepr:
    def test_repr_shows_state(self):
        assert repr(ResultFuture(label="job")) == "<ResultFuture job pending>"
        assert repr(ResultFuture.resolved(3)) == "<ResultFuture fulfilled=3>"
        assert "rejected=" in repr(ResultFuture.failed(ValueError("v")))
