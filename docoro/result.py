"""
Outcome types for the docoro driver.

``Ok`` and ``Err`` carry the settled state of a ResultFuture and the value
that is sent (or thrown) into a suspended computation on the next step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, cast

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Result(Generic[T_co]):
    """Sum type representing either a fulfilled value or a rejection."""

    __slots__ = ()

    def is_ok(self) -> bool:
        """Return ``True`` when the result is successful."""

        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` when the result represents a failure."""

        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        if isinstance(self, Ok):
            return self.value
        return None

    def err(self) -> BaseException | None:
        if isinstance(self, Err):
            return self.error
        return None

    def unwrap(self) -> T_co:
        """Return the value or raise the stored error."""

        if isinstance(self, Ok):
            return self.value
        raise cast(Err, self).error


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    """Fulfilled outcome."""

    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    """Rejected outcome."""

    error: BaseException


__all__ = ["Err", "Ok", "Result"]
