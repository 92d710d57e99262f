"""Unit tests for severity banding."""

from __future__ import annotations

import pytest

from models.records import Band, BandRanges, MeasurementKind, Polarity, ThresholdPair
from services.classifier import ThresholdConfig, band_ranges, classify, worst

FILL = ThresholdPair(low=30, high=70)
BATTERY = ThresholdPair(low=50, high=20)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, Band.GOOD),
        (29, Band.GOOD),
        (29.999, Band.GOOD),
        (30, Band.WARNING),
        (69, Band.WARNING),
        (70, Band.CRITICAL),
        (100, Band.CRITICAL),
    ],
)
def test_ascending_bad_boundaries(value: float, expected: Band) -> None:
    assert classify(value, FILL, Polarity.ASCENDING_BAD) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (100, Band.GOOD),
        (50, Band.GOOD),
        (49, Band.WARNING),
        (20, Band.WARNING),
        (19.5, Band.CRITICAL),
        (0, Band.CRITICAL),
    ],
)
def test_descending_bad_boundaries(value: float, expected: Band) -> None:
    assert classify(value, BATTERY, Polarity.DESCENDING_BAD) is expected


def test_inverted_pair_is_used_as_given() -> None:
    # with low above high there is no value range left for WARNING
    inverted = ThresholdPair(low=70, high=30)

    assert classify(10, inverted, Polarity.ASCENDING_BAD) is Band.GOOD
    assert classify(50, inverted, Polarity.ASCENDING_BAD) is Band.GOOD
    assert classify(69, inverted, Polarity.ASCENDING_BAD) is Band.GOOD
    assert classify(70, inverted, Polarity.ASCENDING_BAD) is Band.CRITICAL


def test_inverted_pair_descending() -> None:
    inverted = ThresholdPair(low=20, high=50)

    assert classify(50, inverted, Polarity.DESCENDING_BAD) is Band.GOOD
    assert classify(20, inverted, Polarity.DESCENDING_BAD) is Band.GOOD
    assert classify(19, inverted, Polarity.DESCENDING_BAD) is Band.CRITICAL


def test_bands_are_ordered_by_severity() -> None:
    assert Band.GOOD < Band.WARNING < Band.CRITICAL
    assert max([Band.WARNING, Band.CRITICAL, Band.GOOD]) is Band.CRITICAL
    assert Band.CRITICAL.color == "red"


def test_worst_ignores_missing_bands() -> None:
    assert worst([None, Band.GOOD, Band.WARNING]) is Band.WARNING
    assert worst([None, None]) is None
    assert worst([]) is None


def test_band_ranges_for_each_polarity() -> None:
    assert band_ranges(FILL, Polarity.ASCENDING_BAD) == BandRanges(
        green=(0.0, 30), yellow=(30, 70), red=(70, 100.0)
    )
    assert band_ranges(BATTERY, Polarity.DESCENDING_BAD) == BandRanges(
        green=(50, 100.0), yellow=(20, 50), red=(0.0, 20)
    )


def test_threshold_config_uses_kind_polarity() -> None:
    config = ThresholdConfig.from_pairs([30, 70], {"low": 50, "high": 20})

    assert config.classify(75, MeasurementKind.FILL_LEVEL) is Band.CRITICAL
    assert config.classify(75, MeasurementKind.BATTERY_LEVEL) is Band.GOOD
    assert config.classify(10, MeasurementKind.BATTERY_LEVEL) is Band.CRITICAL


def test_threshold_config_from_project_payload() -> None:
    payload = {
        "project": {
            "preferences": {"fillThresholds": [40, 80], "batteryThresholds": [60, 25]},
        }
    }

    config = ThresholdConfig.from_preferences(payload)

    assert config.fill == ThresholdPair(low=40.0, high=80.0)
    assert config.battery == ThresholdPair(low=60.0, high=25.0)


@pytest.mark.parametrize(
    "payload",
    [
        {"project": {"preferences": {"fillThresholds": [40, 80]}}},
        {"project": {"preferences": {"fillThresholds": [40], "batteryThresholds": [60, 25]}}},
        {"project": {"preferences": {"fillThresholds": ["a", 1], "batteryThresholds": [60, 25]}}},
        {"project": None},
    ],
)
def test_threshold_config_rejects_incomplete_preferences(payload: dict) -> None:
    with pytest.raises(ValueError):
        ThresholdConfig.from_preferences(payload)
