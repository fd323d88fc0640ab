from __future__ import annotations

"""Rotation settings for :class:`rotaclient.RotatingClient`.

Settings can be built in code, passed as keyword overrides, or loaded from a
YAML mapping::

    request_limit: 500
    time_limit: 1800          # seconds, or "PT30M"
    invalidate_on_error: true
"""

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, PositiveInt, field_validator, model_validator

__all__ = [
    "RotationConfig",
    "load_config_from_yaml",
    "DEFAULT_REQUEST_LIMIT",
    "DEFAULT_TIME_LIMIT",
    "DEFAULT_CLEANUP_INTERVAL",
    "DEFAULT_CLEANUP_TIMEOUT",
]

DEFAULT_REQUEST_LIMIT = 1000
DEFAULT_TIME_LIMIT = timedelta(hours=1)
DEFAULT_CLEANUP_INTERVAL = timedelta(minutes=4)
DEFAULT_CLEANUP_TIMEOUT = timedelta(minutes=3, seconds=45)


class RotationConfig(BaseModel):
    """When to replace the underlying client and how to drain old ones."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_limit: PositiveInt = DEFAULT_REQUEST_LIMIT
    time_limit: timedelta = DEFAULT_TIME_LIMIT
    invalidate_on_error: bool = False
    force_close_on_error: bool = False

    # Sweep cadence; the timeout must leave room before the next tick.
    cleanup_interval: timedelta = DEFAULT_CLEANUP_INTERVAL
    cleanup_timeout: timedelta = DEFAULT_CLEANUP_TIMEOUT

    @field_validator("time_limit", "cleanup_interval", "cleanup_timeout")
    @classmethod
    def _positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("duration must be positive")
        return v

    @model_validator(mode="after")
    def _timeout_below_interval(self) -> "RotationConfig":
        if self.cleanup_timeout >= self.cleanup_interval:
            raise ValueError("cleanup_timeout must be shorter than cleanup_interval")
        return self

    # -------------------------------------------------- #

    def merged(self, **overrides: Any) -> "RotationConfig":
        """Return a copy with non-``None`` *overrides* applied and re-validated."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return RotationConfig(**data)


def load_config_from_yaml(path: str | Path) -> RotationConfig:
    """Load a :class:`RotationConfig` from the YAML mapping at *path*.

    An empty file yields the defaults.
    """
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return RotationConfig(**data)
