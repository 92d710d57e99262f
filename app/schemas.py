"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field

from models.records import Band, BandRanges, Polarity, ThresholdPair
from services.classifier import ThresholdConfig
from services.history import DeviceHistory, LatestReading


class ThresholdPairModel(BaseModel):
    """Two-point threshold; ``low`` and ``high`` are used as given."""

    low: float
    high: float

    def to_pair(self) -> ThresholdPair:
        return ThresholdPair(low=self.low, high=self.high)


class ThresholdSettings(BaseModel):
    fill: ThresholdPairModel
    battery: ThresholdPairModel

    def to_config(self) -> ThresholdConfig:
        return ThresholdConfig(fill=self.fill.to_pair(), battery=self.battery.to_pair())


class ReconcileRequest(BaseModel):
    """Raw history streams of one bin, in any order."""

    streams: List[List[Any]] = Field(
        ..., description="Sensor history payloads, one list per sensor."
    )
    granularity: Optional[int] = Field(
        default=None, ge=1, description="Bucket size in seconds; defaults to the service setting."
    )
    thresholds: Optional[ThresholdSettings] = None
    device: Optional[str] = Field(default=None, description="Bin identifier, used for logging.")


class ReconciledRecordModel(BaseModel):
    bucket: datetime
    fill_level: float
    battery_level: float
    fill_band: Optional[Band] = None
    battery_band: Optional[Band] = None


class LatestReadingModel(BaseModel):
    bucket: datetime
    value: float
    band: Band
    color: str

    @classmethod
    def from_reading(cls, reading: Optional[LatestReading]) -> Optional["LatestReadingModel"]:
        if reading is None:
            return None
        return cls(
            bucket=reading.bucket,
            value=reading.value,
            band=reading.band,
            color=reading.band.color,
        )


class DeviceStatusModel(BaseModel):
    fill: Optional[LatestReadingModel] = None
    battery: Optional[LatestReadingModel] = None
    overall: Optional[Band] = None


class BandRangesModel(BaseModel):
    green: Tuple[float, float]
    yellow: Tuple[float, float]
    red: Tuple[float, float]

    @classmethod
    def from_ranges(cls, ranges: BandRanges) -> "BandRangesModel":
        return cls(green=ranges.green, yellow=ranges.yellow, red=ranges.red)


class SampleIssueModel(BaseModel):
    """A skipped sample (``position >= 0``) or a stream-level warning (``-1``)."""

    stream: int = Field(..., ge=0)
    position: int = Field(..., ge=-1)
    reason: str


class ReconcileResponse(BaseModel):
    records: List[ReconciledRecordModel] = Field(default_factory=list)
    status: DeviceStatusModel
    fill_ranges: BandRangesModel
    battery_ranges: BandRangesModel
    granularity: int = Field(..., ge=1)
    skipped_count: int = Field(..., ge=0)
    issues: List[SampleIssueModel] = Field(default_factory=list)

    @classmethod
    def from_history(cls, history: DeviceHistory) -> "ReconcileResponse":
        return cls(
            records=[
                ReconciledRecordModel(
                    bucket=item.record.bucket,
                    fill_level=item.record.fill_level,
                    battery_level=item.record.battery_level,
                    fill_band=item.fill_band,
                    battery_band=item.battery_band,
                )
                for item in history.records
            ],
            status=DeviceStatusModel(
                fill=LatestReadingModel.from_reading(history.status.fill),
                battery=LatestReadingModel.from_reading(history.status.battery),
                overall=history.status.overall,
            ),
            fill_ranges=BandRangesModel.from_ranges(history.fill_ranges),
            battery_ranges=BandRangesModel.from_ranges(history.battery_ranges),
            granularity=history.granularity,
            skipped_count=history.skipped_count,
            issues=[
                SampleIssueModel(stream=issue.stream, position=issue.position, reason=issue.reason)
                for issue in history.issues
            ],
        )


class ClassifyRequest(BaseModel):
    value: float
    thresholds: ThresholdPairModel
    polarity: Polarity = Polarity.ASCENDING_BAD


class ClassifyResponse(BaseModel):
    band: Band
    color: str
