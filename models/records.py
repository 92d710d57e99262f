"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class MeasurementKind(str, Enum):
    """Physical quantity reported by a bin sensor, keyed by its wire tag."""

    FILL_LEVEL = "fill_level"
    BATTERY_LEVEL = "battery_level"

    @classmethod
    def from_tag(cls, tag: object) -> Optional["MeasurementKind"]:
        """Return the kind for a ``measureType`` tag, or ``None`` if unrecognised."""
        if not isinstance(tag, str):
            return None
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return None


class Polarity(str, Enum):
    """Which direction of a reading is considered worse."""

    ASCENDING_BAD = "ascending_bad"
    DESCENDING_BAD = "descending_bad"


_BAND_RANK = {"good": 0, "warning": 1, "critical": 2}
_BAND_COLOR = {"good": "green", "warning": "yellow", "critical": "red"}


class Band(str, Enum):
    """Ordered severity band: GOOD < WARNING < CRITICAL."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _BAND_RANK[self.value]

    @property
    def color(self) -> str:
        return _BAND_COLOR[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Band):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Band):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Band):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Band):
            return NotImplemented
        return self.rank >= other.rank


@dataclass(frozen=True, slots=True)
class RawSample:
    """A single history reading as received from a sensor."""

    timestamp: datetime
    value: float
    kind: MeasurementKind


@dataclass(frozen=True, slots=True)
class QuantizedSample:
    """A reading whose timestamp has been snapped to the bucket grid."""

    bucket: datetime
    value: float


@dataclass(frozen=True, slots=True)
class ReconciledRecord:
    """Fill and battery level joined on a shared bucket.

    A side without a reading in the bucket is ``0``, not ``None``.
    """

    bucket: datetime
    fill_level: float
    battery_level: float


@dataclass(frozen=True, slots=True)
class ThresholdPair:
    """Two-point threshold. ``low``/``high`` are not required to be ordered."""

    low: float
    high: float


@dataclass(frozen=True, slots=True)
class BandRanges:
    """Value ranges for shading a chart green, yellow and red."""

    green: Tuple[float, float]
    yellow: Tuple[float, float]
    red: Tuple[float, float]


@dataclass(frozen=True, slots=True)
class SampleIssue:
    """A skipped sample or a stream-level tagging warning.

    ``position`` is the zero-based index within the stream, or ``-1`` when the
    issue concerns the whole stream.
    """

    stream: int
    position: int
    reason: str


@dataclass(slots=True)
class TaggedSeries:
    """Raw samples routed to their logical series."""

    fill_level: List[RawSample] = field(default_factory=list)
    battery_level: List[RawSample] = field(default_factory=list)
    issues: List[SampleIssue] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(1 for issue in self.issues if issue.position >= 0)

    def series(self, kind: MeasurementKind) -> List[RawSample]:
        if kind is MeasurementKind.FILL_LEVEL:
            return self.fill_level
        return self.battery_level
