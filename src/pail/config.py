"""Retry settings and TOML/environment loading."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import TypedDict

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from pail.budget import RetryBudget

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/pail/config.toml").expanduser()
DEFAULT_RETRY_LIMIT = 3
DEFAULT_DELAY_SECONDS = 0.02
RETRY_LIMIT_ENV = "PAIL_RETRY_LIMIT"
RETRY_DELAY_MS_ENV = "PAIL_RETRY_DELAY_MS"


class RetryTable(TypedDict, total=False):
    retry_limit: int
    delay_ms: float


class RetrySettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    retry_limit: int = Field(default=DEFAULT_RETRY_LIMIT, ge=0)
    delay_seconds: float = Field(default=DEFAULT_DELAY_SECONDS, ge=0)
    delegate: Any = None

    @field_validator("delegate")
    @classmethod
    def _validate_delegate(cls, value: Any) -> Any:
        if value is not None and not callable(getattr(value, "retry_after", None)):
            raise ValueError("Delegate strategy must define retry_after(request, reason)")
        return value

    def new_budget(self) -> RetryBudget:
        return RetryBudget(self.retry_limit, self.delay_seconds, self.delegate)


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _non_negative_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


def _non_negative_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value >= 0 else None


def _env_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return _non_negative_int(int(raw))
    except ValueError:
        logger.warning("Ignoring invalid %s=%s", name, raw)
        return None


def _sanitize(raw: dict[str, object]) -> RetrySettings:
    settings = RetrySettings()

    raw_table = raw.get("retry", {})
    table = cast(RetryTable, raw_table if isinstance(raw_table, dict) else {})

    retry_limit = _non_negative_int(table.get("retry_limit", settings.retry_limit))
    if retry_limit is not None:
        settings.retry_limit = retry_limit

    delay_ms = table.get("delay_ms")
    if delay_ms is not None:
        delay = _non_negative_float(delay_ms)
        if delay is not None:
            settings.delay_seconds = delay / 1000.0

    env_limit = _env_int(RETRY_LIMIT_ENV)
    if env_limit is not None:
        settings.retry_limit = env_limit
    env_delay_ms = _env_int(RETRY_DELAY_MS_ENV)
    if env_delay_ms is not None:
        settings.delay_seconds = env_delay_ms / 1000.0

    return settings


def load_settings(path: str | Path | None = None) -> RetrySettings:
    resolved = get_config_path(path)
    raw: dict[str, object] = {}
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError):
            logger.warning("Unreadable retry config at %s, using defaults", resolved)
            raw = {}
    return _sanitize(raw)
