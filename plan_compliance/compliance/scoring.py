"""Compliance scoring for a workout/activity pair.

Combines up to four dimensions into one 0-100 score:

- duration: actual moving time vs target minutes
- heart rate / power: activity-wide average vs the intensity target
- intervals: the prescribed repeat structure as found in laps or streams
- activity done: always 100 once an activity is matched

When an interval structure was extracted and evaluated, the session-wide HR
and power averages are left out of the weighted sum: warm-up, cool-down and
recoveries drag averages away from the work intervals and would punish a
well-executed session.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial

from loguru import logger

from plan_compliance.compliance.interval_evaluation import DEFAULT_TARGET_ZONE, IntervalEvidence, evaluate_intervals
from plan_compliance.compliance.types import (
    ComplianceBreakdown,
    ComplianceResult,
    Direction,
    HeartRateDetails,
    IntervalCompliance,
    PowerDetails,
)
from plan_compliance.core.numbers import clamp_score, round_half_up
from plan_compliance.intervals.stream_detection import WARMUP_EXCLUSION_SEC
from plan_compliance.workouts.intensity import IntensityTarget, Metric, interpret_intensity
from plan_compliance.workouts.interval_structure import extract_interval_structure
from plan_compliance.workouts.schemas import Activity, ActivityStreams, Lap, RecordId, WorkoutTarget
from plan_compliance.zones.models import AthleteZones, ZoneTable

StreamLoader = Callable[[RecordId], ActivityStreams | None]

# (min ratio, max ratio, score), first band containing the ratio wins
DURATION_BANDS: tuple[tuple[float, float, int], ...] = (
    (0.8, 1.2, 100),
    (0.6, 1.4, 70),
    (0.4, float("inf"), 40),
)
DURATION_FLOOR_SCORE = 20

SCORE_ON_TARGET = 100
SCORE_NEAR_RANGE = 70
SCORE_ADJACENT_ZONE = 60
SCORE_OFF_TARGET = 30

ACTIVITY_DONE_SCORE = 100

WEIGHT_INTERVALS = 0.7
WEIGHT_DURATION_WITH_INTERVALS = 0.2
WEIGHT_ACTIVITY_WITH_INTERVALS = 0.1
WEIGHT_DURATION = 0.4
WEIGHT_INTENSITY_TOTAL = 0.4
WEIGHT_ACTIVITY = 0.2


@dataclass(frozen=True)
class _MetricRules:
    range_tolerance: float
    zone_edge_fallback: float


METRIC_RULES: dict[Metric, _MetricRules] = {
    "hr": _MetricRules(range_tolerance=10, zone_edge_fallback=20),
    "power": _MetricRules(range_tolerance=20, zone_edge_fallback=40),
}


def score_duration(target_minutes: float | None, moving_time_sec: int | None) -> tuple[int, float] | None:
    """Score actual moving time against the target duration.

    Args:
        target_minutes: Planned duration in minutes
        moving_time_sec: Activity moving time in seconds

    Returns:
        (score, ratio) or None when either side is missing
    """
    if not target_minutes or not moving_time_sec:
        return None

    ratio = (moving_time_sec / 60) / target_minutes
    for low, high, score in DURATION_BANDS:
        if low <= ratio <= high:
            return (score, ratio)
    return (DURATION_FLOOR_SCORE, ratio)


def _direction(actual: float, low: float, high: float) -> Direction:
    if actual < low:
        return "too_low"
    if actual > high:
        return "too_high"
    return "on_target"


def score_intensity(
    actual: float,
    target: IntensityTarget,
    zones: ZoneTable | None,
) -> tuple[int, dict[str, float | int | str | None]] | None:
    """Score an activity-wide average against an interpreted target.

    Absolute ranges: in range 100, within the metric tolerance 70, else 30.
    Zones: in zone 100, within the neighbouring zones 60, else 30.

    Returns:
        (score, details dict) or None if the target cannot be evaluated
        (zone target without a usable zone table)
    """
    rules = METRIC_RULES[target.metric]

    if target.kind == "range" and target.min is not None and target.max is not None:
        low, high = target.min, target.max
        if low <= actual <= high:
            score = SCORE_ON_TARGET
        elif low - rules.range_tolerance <= actual <= high + rules.range_tolerance:
            score = SCORE_NEAR_RANGE
        else:
            score = SCORE_OFF_TARGET
        details = {"target_zone": 0, "target_min": low, "target_max": high}
    else:
        if zones is None or not zones.is_usable or target.zone is None:
            return None
        bounds = zones.bounds(target.zone)
        span = zones.adjacent_bounds(target.zone, rules.zone_edge_fallback)
        if bounds is None or span is None:
            return None

        low, high = bounds.min, bounds.upper
        if bounds.contains(actual):
            score = SCORE_ON_TARGET
        elif span[0] <= actual <= span[1]:
            score = SCORE_ADJACENT_ZONE
        else:
            score = SCORE_OFF_TARGET
        details = {
            "target_zone": target.zone,
            "target_min": bounds.min,
            "target_max": None if bounds.is_open_ended else bounds.max,
        }

    details["actual_avg"] = round_half_up(actual)
    details["direction"] = _direction(actual, low, high)
    return (score, details)


def score_heart_rate(
    intensity_text: str | None,
    average_heartrate: float | None,
    zones: ZoneTable | None,
) -> tuple[int, HeartRateDetails] | None:
    if not intensity_text or not average_heartrate:
        return None
    target = interpret_intensity(intensity_text, "hr")
    if target is None:
        return None
    scored = score_intensity(average_heartrate, target, zones)
    if scored is None:
        return None
    return (scored[0], HeartRateDetails(**scored[1]))


def score_power(
    intensity_text: str | None,
    average_power: float | None,
    zones: ZoneTable | None,
) -> tuple[int, PowerDetails] | None:
    if not intensity_text or not average_power:
        return None
    target = interpret_intensity(intensity_text, "power")
    if target is None:
        return None
    scored = score_intensity(average_power, target, zones)
    if scored is None:
        return None
    return (scored[0], PowerDetails(**scored[1]))


def _load_streams_safely(loader: StreamLoader, activity_id: RecordId) -> ActivityStreams | None:
    try:
        return loader(activity_id)
    except Exception as e:
        logger.opt(exception=True).warning(
            "Stream fetch failed for activity {}, interval compliance skipped (non-critical): {}",
            activity_id,
            str(e),
        )
        return None


def weighted_score(
    duration: int | None,
    hr_zone: int | None,
    power_zone: int | None,
    intervals: IntervalCompliance | None,
) -> int:
    """Combine dimension scores using the weights for the available dimensions."""
    parts: list[tuple[float, float]] = []

    if intervals is not None:
        parts.append((intervals.score, WEIGHT_INTERVALS))
        if duration is not None:
            parts.append((duration, WEIGHT_DURATION_WITH_INTERVALS))
        parts.append((ACTIVITY_DONE_SCORE, WEIGHT_ACTIVITY_WITH_INTERVALS))
    else:
        if duration is not None:
            parts.append((duration, WEIGHT_DURATION))
        intensity_scores = [score for score in (hr_zone, power_zone) if score is not None]
        for score in intensity_scores:
            parts.append((score, WEIGHT_INTENSITY_TOTAL / len(intensity_scores)))
        parts.append((ACTIVITY_DONE_SCORE, WEIGHT_ACTIVITY))

    total_weight = sum(weight for _, weight in parts)
    if total_weight <= 0:
        return 0
    return clamp_score(sum(score * weight for score, weight in parts) / total_weight)


def calculate_compliance(
    workout: WorkoutTarget,
    activity: Activity | None,
    zones: AthleteZones | None = None,
    laps: Sequence[Lap] | None = None,
    streams: ActivityStreams | None = None,
    load_streams: StreamLoader | None = None,
    default_interval_zone: int = DEFAULT_TARGET_ZONE,
    warmup_sec: float = WARMUP_EXCLUSION_SEC,
) -> ComplianceResult:
    """Calculate the compliance score for a workout and its matched activity.

    Args:
        workout: Planned workout
        activity: Matched activity, or None when nothing was done
        zones: Athlete HR/power zones (None means no zone data)
        laps: Activity laps, if fetched
        streams: Activity streams, if already fetched
        load_streams: Fetches streams when no laps settle the interval set;
            failures are logged and the stream strategies are skipped
        default_interval_zone: Target zone for interval sets with no
            interpretable intensity
        warmup_sec: Warm-up exclusion for stream detection

    Returns:
        ComplianceResult with score in [0, 100] and the full breakdown
    """
    if activity is None:
        return ComplianceResult(score=0, breakdown=ComplianceBreakdown(activity_done=0))

    zones = zones or AthleteZones()

    duration = score_duration(workout.duration_target_minutes, activity.moving_time)
    heart_rate = score_heart_rate(workout.intensity_target, activity.average_heartrate, zones.heart_rate)
    power = score_power(workout.intensity_target, activity.power_for_scoring, zones.power)

    intervals: IntervalCompliance | None = None
    structure = extract_interval_structure(workout.session_name, workout.notes, workout.intensity_target)
    if structure is not None and (zones.hr_usable or zones.power_usable):
        loader = partial(_load_streams_safely, load_streams, activity.id) if load_streams is not None else None
        evidence = IntervalEvidence(zones=zones, laps=laps, streams=streams, warmup_sec=warmup_sec, load_streams=loader)
        intervals = evaluate_intervals(structure, evidence, default_zone=default_interval_zone)

    breakdown = ComplianceBreakdown(
        duration=duration[0] if duration else None,
        duration_ratio=duration[1] if duration else None,
        hr_zone=heart_rate[0] if heart_rate else None,
        hr_details=heart_rate[1] if heart_rate else None,
        power_zone=power[0] if power else None,
        power_details=power[1] if power else None,
        intervals=intervals,
        activity_done=ACTIVITY_DONE_SCORE,
    )
    score = weighted_score(breakdown.duration, breakdown.hr_zone, breakdown.power_zone, intervals)

    logger.debug(
        "Compliance workout={} activity={} score={} duration={} hr={} power={} intervals={}",
        workout.id,
        activity.id,
        score,
        breakdown.duration,
        breakdown.hr_zone,
        breakdown.power_zone,
        intervals.score if intervals else None,
    )
    return ComplianceResult(score=score, breakdown=breakdown)
