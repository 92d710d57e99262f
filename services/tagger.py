"""Route raw sensor history streams to fill-level or battery-level series."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from models.records import MeasurementKind, RawSample, SampleIssue, TaggedSeries

logger = logging.getLogger(__name__)

_TIMESTAMP_KEYS = ("createdAt", "timestamp")
_VALUE_KEY = "measurement"
_KIND_KEY = "measureType"

_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string, a datetime, or epoch milliseconds into UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValueError("Timestamp is not finite.")
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError("Timestamp is out of range") from exc
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        # fromisoformat before 3.11 only takes 3 or 6 fractional digits
        candidate = _FRACTION.sub(
            lambda match: f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}", candidate
        )
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc
    else:
        raise ValueError("Timestamp is missing.")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_measurement(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError("Measurement is missing.")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Measurement is not numeric") from exc
    if not math.isfinite(parsed):
        raise ValueError("Measurement is not finite.")
    return parsed


def _first_kind(stream: Sequence[Mapping[str, Any]]) -> Optional[MeasurementKind]:
    for payload in stream:
        if not isinstance(payload, Mapping):
            continue
        kind = MeasurementKind.from_tag(payload.get(_KIND_KEY))
        if kind is not None:
            return kind
    return None


class StreamTagger:
    """Assign each history stream to a named series by its ``measureType``.

    The kind of a stream is read from its first element carrying a recognised
    tag; streams are assumed homogeneous and later tags are not checked.
    Malformed samples are skipped and reported as issues. When two streams
    claim the same kind, the later one replaces the earlier one.
    """

    def tag(self, *streams: Sequence[Mapping[str, Any]]) -> TaggedSeries:
        tagged = TaggedSeries()
        claimed: dict[MeasurementKind, int] = {}

        for index, stream in enumerate(streams):
            if not stream:
                continue

            kind = _first_kind(stream)
            if kind is None:
                logger.warning(
                    "Stream has no recognised measurement kind; ignoring it",
                    extra={"stream": index, "reason": "unrecognised kind"},
                )
                tagged.issues.append(
                    SampleIssue(stream=index, position=-1, reason="unrecognised kind")
                )
                continue

            if kind in claimed:
                logger.warning(
                    "Two streams report the same measurement kind; keeping the later one",
                    extra={"stream": index, "kind": kind.value, "reason": "duplicate kind"},
                )
                tagged.issues = [
                    issue for issue in tagged.issues if issue.stream != claimed[kind]
                ]
                tagged.issues.append(
                    SampleIssue(stream=index, position=-1, reason="duplicate kind")
                )

            samples, issues = self._parse_stream(index, stream, kind)
            claimed[kind] = index
            series = tagged.series(kind)
            series[:] = samples
            tagged.issues.extend(issues)

        return tagged

    def _parse_stream(
        self,
        index: int,
        stream: Sequence[Mapping[str, Any]],
        kind: MeasurementKind,
    ) -> tuple[List[RawSample], List[SampleIssue]]:
        samples: List[RawSample] = []
        issues: List[SampleIssue] = []
        tagged = False

        for position, payload in enumerate(stream):
            if not isinstance(payload, Mapping):
                issues.append(SampleIssue(stream=index, position=position, reason="not an object"))
                continue

            # only tags that are present and unknown are rejected once the kind is set
            tag = payload.get(_KIND_KEY)
            if MeasurementKind.from_tag(tag) is not None:
                tagged = True
            elif tag is not None or not tagged:
                issues.append(
                    SampleIssue(stream=index, position=position, reason="unrecognised kind")
                )
                continue

            raw_timestamp = next(
                (payload[key] for key in _TIMESTAMP_KEYS if payload.get(key) is not None),
                None,
            )
            if raw_timestamp is None:
                issues.append(
                    SampleIssue(stream=index, position=position, reason="missing timestamp")
                )
                continue

            try:
                timestamp = parse_timestamp(raw_timestamp)
            except ValueError:
                issues.append(
                    SampleIssue(stream=index, position=position, reason="invalid timestamp")
                )
                continue

            raw_value = payload.get(_VALUE_KEY)
            if raw_value is None:
                issues.append(
                    SampleIssue(stream=index, position=position, reason="missing measurement")
                )
                continue

            try:
                value = parse_measurement(raw_value)
            except ValueError:
                issues.append(
                    SampleIssue(stream=index, position=position, reason="invalid measurement")
                )
                continue

            samples.append(RawSample(timestamp=timestamp, value=value, kind=kind))

        for issue in issues:
            logger.warning(
                "Skipping malformed sample",
                extra={"stream": issue.stream, "position": issue.position, "reason": issue.reason},
            )
        return samples, issues
