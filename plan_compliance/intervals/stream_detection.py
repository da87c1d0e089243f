"""Hysteresis-based interval detection over a single metric stream.

Segments a heart-rate or power time series into sustained efforts at or above
a target zone. One forward pass over index-aligned arrays with an explicit
two-state machine:

- Outside: count consecutive samples at/above the entry threshold. After the
  debounce window, switch to Inside with the start backdated by the window and
  the window's samples counted into the interval.
- Inside: accumulate every sample (and heart rate alongside power), the
  closing below-exit run included. Count consecutive samples below the exit
  threshold; after the debounce window, close the interval with the end
  backdated by the window. An effort still open when the stream runs out
  closes at the final timestamp.

Entry threshold is zone min minus the margin, exit threshold zone min minus
twice the margin, so noise around the boundary does not flicker the state.
Streams are assumed to be 1 Hz (Strava), so the debounce is counted in samples.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from loguru import logger

from plan_compliance.core.numbers import round_half_up
from plan_compliance.zones.models import ZoneTable

StreamMetric = Literal["heartrate", "watts"]

WARMUP_EXCLUSION_SEC = 300
DEBOUNCE_SAMPLES = 10
MIN_DURATION_FRACTION = 0.5
HR_MARGIN_BPM = 5
POWER_MARGIN_WATTS = 10


@dataclass
class DetectedInterval:
    """A sustained effort found in a stream.

    Attributes:
        start_sec: Elapsed seconds at interval start
        end_sec: Elapsed seconds at interval end
        duration_sec: end_sec - start_sec
        avg_value: Rounded average of the detection metric
        max_value: Peak of the detection metric
        zone: Zone of avg_value (may differ from the targeted zone)
        metric: Detection metric
        avg_hr: Average heart rate during the interval (power detection only)
    """

    start_sec: float
    end_sec: float
    duration_sec: float
    avg_value: int
    max_value: float
    zone: int
    metric: StreamMetric
    avg_hr: int | None = None


@dataclass
class _Accumulator:
    total: float = 0.0
    count: int = 0
    peak: float = 0.0
    hr_total: float = 0.0
    hr_count: int = 0

    def add(self, value: float, hr: float | None) -> None:
        self.total += value
        self.count += 1
        self.peak = max(self.peak, value)
        if hr is not None:
            self.hr_total += hr
            self.hr_count += 1


@dataclass
class _DetectorState:
    """Tagged state carried across the pass."""

    phase: Literal["outside", "inside"] = "outside"
    above_run: int = 0
    below_run: int = 0
    start_sec: float = 0.0
    # Samples of the current above-threshold run while Outside.
    pending_entry: _Accumulator | None = None
    # Every sample seen while Inside, including the closing below-exit run.
    body: _Accumulator | None = None

    def reset(self) -> None:
        self.phase = "outside"
        self.above_run = 0
        self.below_run = 0
        self.pending_entry = None
        self.body = None


def detection_thresholds(zones: ZoneTable, target_zone: int, metric: StreamMetric) -> tuple[float, float] | None:
    """Get (entry, exit) thresholds for a target zone.

    Args:
        zones: Zone table for the metric
        target_zone: Target zone index
        metric: "heartrate" or "watts"

    Returns:
        (entry_threshold, exit_threshold) or None if the zone is unknown
    """
    bounds = zones.bounds(target_zone)
    if bounds is None:
        return None
    margin = HR_MARGIN_BPM if metric == "heartrate" else POWER_MARGIN_WATTS
    return (bounds.min - margin, bounds.min - 2 * margin)


def _close_interval(
    state: _DetectorState,
    end_sec: float,
    min_duration_sec: float,
    zones: ZoneTable,
    metric: StreamMetric,
) -> DetectedInterval | None:
    body = state.body
    if body is None or body.count == 0:
        return None

    duration = end_sec - state.start_sec
    if duration < min_duration_sec * MIN_DURATION_FRACTION:
        logger.debug(
            "Discarding short {} effort: start={} duration={}s (< {}% of {}s)",
            metric,
            state.start_sec,
            duration,
            int(MIN_DURATION_FRACTION * 100),
            min_duration_sec,
        )
        return None

    avg_value = round_half_up(body.total / body.count)
    avg_hr = round_half_up(body.hr_total / body.hr_count) if metric == "watts" and body.hr_count else None
    return DetectedInterval(
        start_sec=state.start_sec,
        end_sec=end_sec,
        duration_sec=duration,
        avg_value=avg_value,
        max_value=body.peak,
        zone=zones.zone_for(avg_value),
        metric=metric,
        avg_hr=avg_hr,
    )


def detect_intervals(
    time_data: Sequence[float],
    values: Sequence[float | None],
    zones: ZoneTable,
    target_zone: int,
    min_duration_sec: float,
    metric: StreamMetric = "heartrate",
    heartrate: Sequence[float | None] | None = None,
    warmup_sec: float = WARMUP_EXCLUSION_SEC,
) -> list[DetectedInterval]:
    """Detect sustained efforts in a metric stream.

    Args:
        time_data: Elapsed seconds, non-decreasing
        values: Metric samples aligned with time_data
        zones: Zone table for the metric
        target_zone: Zone the efforts are expected in (1-5)
        min_duration_sec: Target interval duration; efforts shorter than half
            of it are dropped
        metric: "heartrate" or "watts"
        heartrate: Heart rate aligned with time_data, carried along for
            power detection
        warmup_sec: Samples before this elapsed time are ignored

    Returns:
        Detected intervals in time order. Empty when the inputs are
        inconsistent (mismatched lengths, unknown zone), never raises.
    """
    if not time_data or len(time_data) != len(values):
        return []

    thresholds = detection_thresholds(zones, target_zone, metric)
    if thresholds is None:
        return []
    entry_threshold, exit_threshold = thresholds

    hr_aligned = heartrate if heartrate is not None and len(heartrate) == len(time_data) else None

    intervals: list[DetectedInterval] = []
    state = _DetectorState()

    for index, elapsed in enumerate(time_data):
        value = values[index]
        if elapsed is None or value is None or elapsed < warmup_sec:
            continue
        hr = hr_aligned[index] if hr_aligned is not None else None

        if state.phase == "outside":
            if value >= entry_threshold:
                if state.pending_entry is None:
                    state.pending_entry = _Accumulator()
                state.pending_entry.add(value, hr)
                state.above_run += 1
                if state.above_run >= DEBOUNCE_SAMPLES:
                    state.phase = "inside"
                    state.start_sec = elapsed - DEBOUNCE_SAMPLES
                    state.body = state.pending_entry
                    state.pending_entry = None
                    state.below_run = 0
            else:
                state.above_run = 0
                state.pending_entry = None
            continue

        if state.body is not None:
            state.body.add(value, hr)
        if value >= exit_threshold:
            state.below_run = 0
            continue

        state.below_run += 1
        if state.below_run >= DEBOUNCE_SAMPLES:
            interval = _close_interval(state, elapsed - DEBOUNCE_SAMPLES, min_duration_sec, zones, metric)
            if interval is not None:
                intervals.append(interval)
            state.reset()

    if state.phase == "inside":
        interval = _close_interval(state, time_data[-1], min_duration_sec, zones, metric)
        if interval is not None:
            intervals.append(interval)

    return intervals
