"""Per-device history reconciliation: tagging, bucketing, joining and banding."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Sequence

from models.records import (
    Band,
    BandRanges,
    MeasurementKind,
    QuantizedSample,
    ReconciledRecord,
    SampleIssue,
)
from services.classifier import ThresholdConfig, worst
from services.quantizer import DEFAULT_GRANULARITY_SECONDS, quantize_series, validate_granularity
from services.reconciler import reconcile
from services.tagger import StreamTagger
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedRecord:
    """A reconciled record with the band of each reading present in its bucket."""

    record: ReconciledRecord
    fill_band: Optional[Band] = None
    battery_band: Optional[Band] = None


@dataclass(frozen=True)
class LatestReading:
    bucket: datetime
    value: float
    band: Band


@dataclass(frozen=True)
class DeviceStatus:
    """Most recent reading of each series and the worst band among them."""

    fill: Optional[LatestReading]
    battery: Optional[LatestReading]

    @property
    def overall(self) -> Optional[Band]:
        return worst(
            reading.band for reading in (self.fill, self.battery) if reading is not None
        )


@dataclass
class DeviceHistory:
    records: List[ClassifiedRecord]
    status: DeviceStatus
    fill_ranges: BandRanges
    battery_ranges: BandRanges
    granularity: int
    issues: List[SampleIssue] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(1 for issue in self.issues if issue.position >= 0)


def _latest(
    series: Sequence[QuantizedSample], thresholds: ThresholdConfig, kind: MeasurementKind
) -> Optional[LatestReading]:
    if not series:
        return None
    # max() keeps the first of equal buckets, so walk backwards for last-wins
    latest = max(reversed(series), key=lambda sample: sample.bucket)
    return LatestReading(
        bucket=latest.bucket,
        value=latest.value,
        band=thresholds.classify(latest.value, kind),
    )


class HistoryService:
    """Turns the raw history streams of one bin into a classified timeline."""

    def __init__(
        self,
        thresholds: ThresholdConfig,
        granularity: int = DEFAULT_GRANULARITY_SECONDS,
        tagger: Optional[StreamTagger] = None,
    ) -> None:
        self.thresholds = thresholds
        self.granularity = validate_granularity(granularity)
        self.tagger = tagger or StreamTagger()

    def build(
        self,
        *streams: Sequence[Mapping[str, Any]],
        thresholds: Optional[ThresholdConfig] = None,
        granularity: Optional[int] = None,
        device: Optional[str] = None,
    ) -> DeviceHistory:
        """Reconcile and classify ``streams``; per-call overrides are optional."""
        thresholds = thresholds or self.thresholds
        step = validate_granularity(granularity) if granularity is not None else self.granularity

        tagged = self.tagger.tag(*streams)
        fill_series = quantize_series(tagged.fill_level, step)
        battery_series = quantize_series(tagged.battery_level, step)
        fill_buckets = {sample.bucket for sample in fill_series}
        battery_buckets = {sample.bucket for sample in battery_series}

        records = [
            ClassifiedRecord(
                record=record,
                fill_band=(
                    thresholds.classify(record.fill_level, MeasurementKind.FILL_LEVEL)
                    if record.bucket in fill_buckets
                    else None
                ),
                battery_band=(
                    thresholds.classify(record.battery_level, MeasurementKind.BATTERY_LEVEL)
                    if record.bucket in battery_buckets
                    else None
                ),
            )
            for record in reconcile(fill_series, battery_series)
        ]

        history = DeviceHistory(
            records=records,
            status=DeviceStatus(
                fill=_latest(fill_series, thresholds, MeasurementKind.FILL_LEVEL),
                battery=_latest(battery_series, thresholds, MeasurementKind.BATTERY_LEVEL),
            ),
            fill_ranges=thresholds.ranges(MeasurementKind.FILL_LEVEL),
            battery_ranges=thresholds.ranges(MeasurementKind.BATTERY_LEVEL),
            granularity=step,
            issues=list(tagged.issues),
        )
        logger.info(
            "Reconciled device history",
            extra={
                "device": device,
                "granularity": step,
                "record_count": len(records),
                "skipped_count": history.skipped_count,
            },
        )
        return history


@lru_cache
def build_default_history_service() -> HistoryService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    thresholds = ThresholdConfig.from_pairs(settings.fill_thresholds, settings.battery_thresholds)
    return HistoryService(thresholds=thresholds, granularity=settings.granularity_seconds)
