"""
Pytest configuration for docoro tests.

The ``resolve_later``/``reject_later`` fixtures hand out factories for
ResultFutures that the running event loop settles after a short delay, so a
driven computation really suspends and is resumed from a loop callback.
``never_settles`` hands out futures nobody will ever settle.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from loguru import logger

from docoro import ResultFuture, reset_settings

DELAY = 0.01


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("DOCORO_DEBUG", raising=False)
    monkeypatch.delenv("DOCORO_REPR_LIMIT", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def resolve_later() -> Callable[..., ResultFuture[Any]]:
    def factory(value: Any, delay: float = DELAY) -> ResultFuture[Any]:
        loop = asyncio.get_running_loop()
        future: ResultFuture[Any] = ResultFuture(label=f"later:{value!r}")
        loop.call_later(delay, future.fulfill, value)
        return future

    return factory


@pytest.fixture
def reject_later() -> Callable[..., ResultFuture[Any]]:
    def factory(error: BaseException, delay: float = DELAY) -> ResultFuture[Any]:
        loop = asyncio.get_running_loop()
        future: ResultFuture[Any] = ResultFuture(label=f"later:{error!r}")
        loop.call_later(delay, future.reject, error)
        return future

    return factory


@pytest.fixture
def never_settles() -> Callable[[], ResultFuture[Any]]:
    return lambda: ResultFuture(label="never")


@pytest.fixture
def log_records():
    """Collect loguru records emitted while the test runs."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
