"""Interval-set evaluation over the available evidence.

Evidence sources are tried in priority order (laps, power stream, heart-rate
stream). Each strategy returns an optional IntervalCompliance; the first one
with at least one executed interval wins. When no source finds anything, the
first source that could be evaluated still reports its all-missing slots, so
"the session had no efforts" is distinguishable from "no evidence at all".
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from plan_compliance.compliance.interval_scoring import build_interval_result, summarize_intervals
from plan_compliance.compliance.types import IntervalCompliance, IntervalSource
from plan_compliance.intervals.lap_mapping import map_laps_to_intervals
from plan_compliance.intervals.stream_detection import WARMUP_EXCLUSION_SEC, StreamMetric, detect_intervals
from plan_compliance.workouts.intensity import Metric, interpret_zone
from plan_compliance.workouts.interval_structure import IntervalStructure
from plan_compliance.workouts.schemas import ActivityStreams, Lap
from plan_compliance.zones.models import AthleteZones

DEFAULT_TARGET_ZONE = 3
# Tables an absolute interval target is looked up in, in order.
TARGET_LOOKUP_METRICS: tuple[Metric, ...] = ("power", "hr")


@dataclass
class IntervalEvidence:
    """Everything known about how an activity was executed.

    Streams are a fallback for activities without usable laps. When they were
    not passed in, load_streams fetches them the first time a stream strategy
    asks, and never more than once.
    """

    zones: AthleteZones
    laps: Sequence[Lap] | None = None
    streams: ActivityStreams | None = None
    warmup_sec: float = WARMUP_EXCLUSION_SEC
    load_streams: Callable[[], ActivityStreams | None] | None = None
    _streams_requested: bool = field(default=False, init=False, repr=False)

    def get_streams(self) -> ActivityStreams | None:
        if self.streams is None and self.load_streams is not None and not self._streams_requested:
            self._streams_requested = True
            self.streams = self.load_streams()
        return self.streams


IntervalStrategy = Callable[[IntervalStructure, int, IntervalEvidence], IntervalCompliance | None]


def evaluate_from_laps(
    structure: IntervalStructure, target_zone: int, evidence: IntervalEvidence
) -> IntervalCompliance | None:
    if not evidence.laps:
        return None
    return map_laps_to_intervals(
        evidence.laps,
        expected_count=structure.count,
        target_duration_sec=structure.duration_sec,
        target_zone=target_zone,
        zones=evidence.zones,
        recovery_duration_sec=structure.recovery_duration_sec,
    )


def _stream_strategy(metric: StreamMetric, source: IntervalSource) -> IntervalStrategy:
    def evaluate(structure: IntervalStructure, target_zone: int, evidence: IntervalEvidence) -> IntervalCompliance | None:
        zones = evidence.zones.power if metric == "watts" else evidence.zones.heart_rate
        if zones is None or not zones.is_usable:
            return None

        streams = evidence.get_streams()
        if streams is None:
            return None

        values = streams.metric(metric)
        if values is None:
            return None

        detected = detect_intervals(
            streams.time,
            values,
            zones,
            target_zone,
            structure.duration_sec,
            metric=metric,
            heartrate=streams.metric("heartrate") if metric == "watts" else None,
            warmup_sec=evidence.warmup_sec,
        )
        logger.debug(f"{source}: detected {len(detected)} efforts for {structure.count}x{structure.duration_sec}s")

        results = [
            build_interval_result(
                index=position,
                duration_sec=interval.duration_sec,
                target_duration_sec=structure.duration_sec,
                target_zone=target_zone,
                actual_zone=interval.zone,
                avg_hr=interval.avg_value if metric == "heartrate" else interval.avg_hr,
                avg_power=interval.avg_value if metric == "watts" else None,
            )
            for position, interval in enumerate(detected[: structure.count], start=1)
        ]
        return summarize_intervals(
            results,
            expected=structure.count,
            target_duration_sec=structure.duration_sec,
            target_zone=target_zone,
            source=source,
            recovery_duration_sec=structure.recovery_duration_sec,
        )

    return evaluate


evaluate_from_power_stream = _stream_strategy("watts", "power_stream")
evaluate_from_hr_stream = _stream_strategy("heartrate", "hr_stream")

INTERVAL_STRATEGIES: tuple[IntervalStrategy, ...] = (
    evaluate_from_laps,
    evaluate_from_power_stream,
    evaluate_from_hr_stream,
)


def resolve_target_zone(
    structure: IntervalStructure, zones: AthleteZones, default_zone: int = DEFAULT_TARGET_ZONE
) -> int:
    """Zone the interval set is judged against.

    A named zone is used as written. An absolute target ("300W",
    "150-160bpm") is placed in the athlete's power or heart-rate table.
    Anything else falls back to default_zone.
    """
    if structure.target_zone is not None:
        return structure.target_zone

    if structure.target_text:
        for metric in TARGET_LOOKUP_METRICS:
            table = zones.power if metric == "power" else zones.heart_rate
            zone = interpret_zone(structure.target_text, metric, table)
            if zone is not None:
                logger.debug(f"Interval target '{structure.target_text}' resolved to Z{zone} via {metric} zones")
                return zone
        logger.debug(f"Interval target '{structure.target_text}' has no matching zone table, using Z{default_zone}")

    return default_zone


def _has_executed_interval(result: IntervalCompliance) -> bool:
    return any(slot.status != "missing" for slot in result.intervals)


def evaluate_intervals(
    structure: IntervalStructure,
    evidence: IntervalEvidence,
    default_zone: int = DEFAULT_TARGET_ZONE,
    strategies: Sequence[IntervalStrategy] = INTERVAL_STRATEGIES,
) -> IntervalCompliance | None:
    """Evaluate the prescribed interval set against the evidence.

    Args:
        structure: Prescribed interval structure
        evidence: Zones, laps and streams for the activity
        default_zone: Target zone when the structure names none that the
            athlete's zones can place
        strategies: Evaluators in priority order

    Returns:
        IntervalCompliance, or None when no source could be evaluated
    """
    target_zone = resolve_target_zone(structure, evidence.zones, default_zone)

    fallback: IntervalCompliance | None = None
    for strategy in strategies:
        result = strategy(structure, target_zone, evidence)
        if result is None:
            continue
        if _has_executed_interval(result):
            return result
        if fallback is None:
            fallback = result

    return fallback
