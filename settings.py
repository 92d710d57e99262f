from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

_GRANULARITY_ENV = "RECONCILE_GRANULARITY_SECONDS"
_FILL_THRESHOLDS_ENV = "FILL_THRESHOLDS"
_BATTERY_THRESHOLDS_ENV = "BATTERY_THRESHOLDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    granularity_seconds: int
    fill_thresholds: Tuple[float, float]
    battery_thresholds: Tuple[float, float]
    log_level: str


def _read_granularity(default: int) -> int:
    value = os.getenv(_GRANULARITY_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_threshold_pair(name: str, default: Tuple[float, float]) -> Tuple[float, float]:
    value = os.getenv(name)
    if value is None:
        return default
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2 or not all(parts):
        return default
    try:
        low, high = float(parts[0]), float(parts[1])
    except ValueError:
        return default
    return (low, high)


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        granularity_seconds=_read_granularity(2),
        fill_thresholds=_read_threshold_pair(_FILL_THRESHOLDS_ENV, (30.0, 70.0)),
        battery_thresholds=_read_threshold_pair(_BATTERY_THRESHOLDS_ENV, (50.0, 20.0)),
        log_level=_read_log_level("INFO"),
    )
