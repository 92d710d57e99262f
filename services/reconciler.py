"""Join fill-level and battery-level series on a common bucket timeline."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List

from models.records import QuantizedSample, RawSample, ReconciledRecord
from services.quantizer import DEFAULT_GRANULARITY_SECONDS, quantize_series, validate_granularity

MISSING_VALUE = 0.0


def _bucket_lookup(series: Iterable[QuantizedSample]) -> Dict[datetime, float]:
    lookup: Dict[datetime, float] = {}
    for sample in series:
        # later samples in the same bucket replace earlier ones
        lookup[sample.bucket] = sample.value
    return lookup


def reconcile(
    fill_series: Iterable[QuantizedSample],
    battery_series: Iterable[QuantizedSample],
) -> List[ReconciledRecord]:
    """Merge two quantized series into one record per distinct bucket.

    Buckets are the union of both inputs, sorted ascending. A bucket seen in
    only one series gets ``0`` for the other field. Inputs that are not in
    chronological order still produce sorted output, but "last value wins"
    then follows the order the samples were given in.
    """
    fill_levels = _bucket_lookup(fill_series)
    battery_levels = _bucket_lookup(battery_series)

    buckets = sorted(fill_levels.keys() | battery_levels.keys())
    return [
        ReconciledRecord(
            bucket=bucket,
            fill_level=fill_levels.get(bucket, MISSING_VALUE),
            battery_level=battery_levels.get(bucket, MISSING_VALUE),
        )
        for bucket in buckets
    ]


class Reconciler:
    """Quantizes raw series with a fixed granularity and joins them."""

    def __init__(self, granularity: int = DEFAULT_GRANULARITY_SECONDS) -> None:
        self.granularity = validate_granularity(granularity)

    def reconcile_raw(
        self,
        fill_series: Iterable[RawSample],
        battery_series: Iterable[RawSample],
    ) -> List[ReconciledRecord]:
        return reconcile(
            quantize_series(fill_series, self.granularity),
            quantize_series(battery_series, self.granularity),
        )
