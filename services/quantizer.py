"""Snap timestamps to a coarse grid so that readings from two sensors line up."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List

from models.records import QuantizedSample, RawSample

DEFAULT_GRANULARITY_SECONDS = 2

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def validate_granularity(granularity: int) -> int:
    if isinstance(granularity, bool) or not isinstance(granularity, int):
        raise ValueError(f"Granularity must be an integer, got {granularity!r}.")
    if granularity < 1:
        raise ValueError(f"Granularity must be at least 1 second, got {granularity}.")
    return granularity


def quantize(timestamp: datetime, granularity: int = DEFAULT_GRANULARITY_SECONDS) -> datetime:
    """Round ``timestamp`` up to the next ``granularity``-second grid line.

    The instant is first ceiled to a whole second, then to the smallest
    epoch-aligned multiple of ``granularity`` that is not earlier. Naive
    datetimes are interpreted as UTC; the result is always UTC-aware.
    """
    validate_granularity(granularity)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    # Integer arithmetic on the timedelta avoids float rounding of epoch seconds.
    delta = timestamp - _EPOCH
    seconds = delta.days * 86400 + delta.seconds
    if delta.microseconds:
        seconds += 1
    bucket = -(-seconds // granularity) * granularity
    return _EPOCH + timedelta(seconds=bucket)


def quantize_series(
    samples: Iterable[RawSample], granularity: int = DEFAULT_GRANULARITY_SECONDS
) -> List[QuantizedSample]:
    """Quantize every sample of a series, keeping arrival order."""
    validate_granularity(granularity)
    return [
        QuantizedSample(bucket=quantize(sample.timestamp, granularity), value=sample.value)
        for sample in samples
    ]
