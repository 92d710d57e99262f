"""Unit tests for joining quantized series."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import MeasurementKind, QuantizedSample, RawSample, ReconciledRecord
from services.reconciler import Reconciler, reconcile

BASE = datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)


def _at(seconds: float) -> datetime:
    return BASE + timedelta(seconds=seconds)


def _series(*points: tuple[float, float]) -> list[QuantizedSample]:
    return [QuantizedSample(bucket=_at(offset), value=value) for offset, value in points]


def test_reconcile_empty_series_returns_no_records() -> None:
    assert reconcile([], []) == []


def test_reconcile_joins_shared_buckets_and_defaults_missing_side() -> None:
    fill = _series((2, 10.0), (4, 20.0))
    battery = _series((4, 95.0), (6, 94.0))

    records = reconcile(fill, battery)

    assert records == [
        ReconciledRecord(bucket=_at(2), fill_level=10.0, battery_level=0.0),
        ReconciledRecord(bucket=_at(4), fill_level=20.0, battery_level=95.0),
        ReconciledRecord(bucket=_at(6), fill_level=0.0, battery_level=94.0),
    ]


def test_reconcile_last_sample_in_bucket_wins() -> None:
    fill = _series((12, 40.0), (12, 55.0))
    battery = _series((12, 90.0))

    records = reconcile(fill, battery)

    assert records == [ReconciledRecord(bucket=_at(12), fill_level=55.0, battery_level=90.0)]


def test_reconcile_output_is_strictly_ascending_union_of_buckets() -> None:
    fill = _series((8, 1.0), (2, 2.0), (14, 3.0), (2, 4.0))
    battery = _series((6, 5.0), (14, 6.0), (20, 7.0))

    records = reconcile(fill, battery)
    buckets = [record.bucket for record in records]

    assert set(buckets) == {sample.bucket for sample in fill + battery}
    assert all(earlier < later for earlier, later in zip(buckets, buckets[1:]))


def test_reconcile_with_only_one_series() -> None:
    records = reconcile([], _series((2, 80.0), (4, 79.0)))

    assert [record.fill_level for record in records] == [0.0, 0.0]
    assert [record.battery_level for record in records] == [80.0, 79.0]


def test_reconciler_quantizes_raw_samples_before_joining() -> None:
    fill = [
        RawSample(timestamp=_at(10.1), value=40.0, kind=MeasurementKind.FILL_LEVEL),
        RawSample(timestamp=_at(12.0), value=55.0, kind=MeasurementKind.FILL_LEVEL),
    ]
    battery = [RawSample(timestamp=_at(10.4), value=90.0, kind=MeasurementKind.BATTERY_LEVEL)]

    records = Reconciler(granularity=2).reconcile_raw(fill, battery)

    assert records == [ReconciledRecord(bucket=_at(12), fill_level=55.0, battery_level=90.0)]


def test_reconciler_rejects_invalid_granularity() -> None:
    with pytest.raises(ValueError):
        Reconciler(granularity=0)
