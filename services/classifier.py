"""Severity banding of fill and battery readings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from models.records import Band, BandRanges, MeasurementKind, Polarity, ThresholdPair

DEFAULT_POLARITY = {
    MeasurementKind.FILL_LEVEL: Polarity.ASCENDING_BAD,
    MeasurementKind.BATTERY_LEVEL: Polarity.DESCENDING_BAD,
}

SCALE = (0.0, 100.0)


def classify(value: float, thresholds: ThresholdPair, polarity: Polarity) -> Band:
    """Map ``value`` to a band; values on a threshold fall into the worse band.

    ``thresholds`` are used as given. For descending-bad readings the caller
    passes ``low`` as the GOOD boundary and ``high`` as the CRITICAL one.
    """
    if polarity is Polarity.ASCENDING_BAD:
        if value < thresholds.low:
            return Band.GOOD
        if value < thresholds.high:
            return Band.WARNING
        return Band.CRITICAL

    if value >= thresholds.low:
        return Band.GOOD
    if value >= thresholds.high:
        return Band.WARNING
    return Band.CRITICAL


def band_ranges(
    thresholds: ThresholdPair,
    polarity: Polarity,
    scale: Tuple[float, float] = SCALE,
) -> BandRanges:
    """Value ranges a chart shades green, yellow and red for these thresholds."""
    floor, ceiling = scale
    if polarity is Polarity.ASCENDING_BAD:
        return BandRanges(
            green=(floor, thresholds.low),
            yellow=(thresholds.low, thresholds.high),
            red=(thresholds.high, ceiling),
        )
    return BandRanges(
        green=(thresholds.low, ceiling),
        yellow=(thresholds.high, thresholds.low),
        red=(floor, thresholds.high),
    )


def worst(bands: Iterable[Optional[Band]]) -> Optional[Band]:
    """Most severe of ``bands``, ignoring ``None``; ``None`` if nothing is left."""
    present = [band for band in bands if band is not None]
    return max(present) if present else None


def _pair_from(value: Any, name: str) -> ThresholdPair:
    if isinstance(value, ThresholdPair):
        return value
    if isinstance(value, Mapping):
        low, high = value.get("low"), value.get("high")
    elif isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 2:
        low, high = value
    else:
        raise ValueError(f"{name} must be a pair of numbers, got {value!r}.")
    try:
        return ThresholdPair(low=float(low), high=float(high))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a pair of numbers, got {value!r}.") from exc


@dataclass(frozen=True)
class ThresholdConfig:
    """Per-deployment thresholds for both measurement kinds."""

    fill: ThresholdPair
    battery: ThresholdPair

    @classmethod
    def from_pairs(cls, fill: Any, battery: Any) -> "ThresholdConfig":
        return cls(
            fill=_pair_from(fill, "fill thresholds"),
            battery=_pair_from(battery, "battery thresholds"),
        )

    @classmethod
    def from_preferences(cls, payload: Mapping[str, Any]) -> "ThresholdConfig":
        """Build from a project payload as served by the dashboard backend.

        Accepts either the full ``{"project": {"preferences": ...}}`` response
        or the ``preferences`` object itself.
        """
        preferences: Any = payload
        for key in ("project", "preferences"):
            if isinstance(preferences, Mapping):
                preferences = preferences.get(key, preferences)
        if not isinstance(preferences, Mapping):
            raise ValueError("Project preferences are missing threshold settings.")
        try:
            fill = preferences["fillThresholds"]
            battery = preferences["batteryThresholds"]
        except KeyError as exc:
            raise ValueError("Project preferences are missing threshold settings.") from exc
        return cls.from_pairs(fill, battery)

    def pair_for(self, kind: MeasurementKind) -> ThresholdPair:
        if kind is MeasurementKind.FILL_LEVEL:
            return self.fill
        return self.battery

    def classify(self, value: float, kind: MeasurementKind) -> Band:
        return classify(value, self.pair_for(kind), DEFAULT_POLARITY[kind])

    def ranges(self, kind: MeasurementKind) -> BandRanges:
        return band_ranges(self.pair_for(kind), DEFAULT_POLARITY[kind])
