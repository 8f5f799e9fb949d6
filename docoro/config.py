"""
Process-wide settings for the docoro driver.

Settings are read once from the environment:

``DOCORO_DEBUG``
    ``1``/``true``/``yes`` enables a DEBUG log record for every driver step.
``DOCORO_REPR_LIMIT``
    Maximum length of value reprs written to log records (default 80).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class DriverSettings:
    trace_steps: bool = False
    repr_limit: int = 80

    def __post_init__(self) -> None:
        if self.repr_limit < 4:
            raise ValueError("repr_limit must be >= 4")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DriverSettings:
        env = os.environ if environ is None else environ
        trace_steps = env.get("DOCORO_DEBUG", "").lower() in _TRUTHY
        raw_limit = env.get("DOCORO_REPR_LIMIT")
        if raw_limit is None or raw_limit == "":
            return cls(trace_steps=trace_steps)
        try:
            repr_limit = int(raw_limit)
        except ValueError:
            raise ValueError(
                f"DOCORO_REPR_LIMIT must be an integer, got {raw_limit!r}"
            ) from None
        return cls(trace_steps=trace_steps, repr_limit=repr_limit)


_settings: DriverSettings | None = None


def get_settings() -> DriverSettings:
    """Return the active settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = DriverSettings.from_env()
    return _settings


def configure(**overrides: object) -> DriverSettings:
    """Replace fields of the active settings and return the new settings."""
    global _settings
    _settings = replace(get_settings(), **overrides)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


def short_repr(value: object) -> str:
    """Repr ``value`` truncated to the configured limit."""
    limit = get_settings().repr_limit
    try:
        text = repr(value)
    except Exception as exc:  # noqa: BLE001
        text = f"<unrepresentable {type(value).__name__}: {exc.__class__.__name__}>"
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


__all__ = [
    "DriverSettings",
    "configure",
    "get_settings",
    "reset_settings",
    "short_repr",
]
