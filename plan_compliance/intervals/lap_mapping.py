"""Map lap splits onto the prescribed interval structure.

Athletes who press the lap button per rep give us the cleanest evidence. The
laps still include warm-up, cool-down and recovery, which are removed before
the remaining laps are aligned, in order, to the expected interval slots.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from plan_compliance.compliance.interval_scoring import build_interval_result, summarize_intervals
from plan_compliance.compliance.types import IntervalCompliance, IntervalResult
from plan_compliance.workouts.schemas import Lap
from plan_compliance.zones.models import AthleteZones, ZoneTable

WARMUP_COOLDOWN_FACTOR = 1.5
SHORT_LAP_FACTOR = 0.5
EASY_ZONE = 2
ZONES_BELOW_TARGET_FOR_RECOVERY = 2
MIN_LAPS = 2


def trim_warmup_cooldown(laps: Sequence[Lap], expected_count: int, target_duration_sec: int) -> list[Lap]:
    """Drop a long leading lap, then a long trailing lap, while over count.

    Args:
        laps: Laps in order
        expected_count: Number of prescribed intervals
        target_duration_sec: Prescribed interval duration

    Returns:
        Remaining laps in order
    """
    remaining = list(laps)
    threshold = target_duration_sec * WARMUP_COOLDOWN_FACTOR

    if len(remaining) > expected_count and remaining[0].duration_sec > threshold:
        logger.debug(f"Dropping lap {remaining[0].lap_index} as warm-up ({remaining[0].duration_sec}s)")
        remaining = remaining[1:]

    if len(remaining) > expected_count and remaining[-1].duration_sec > threshold:
        logger.debug(f"Dropping lap {remaining[-1].lap_index} as cool-down ({remaining[-1].duration_sec}s)")
        remaining = remaining[:-1]

    return remaining


def _easy_ceiling(zones: ZoneTable | None) -> float | None:
    if zones is None or not zones.is_usable:
        return None
    easy = zones.bounds(EASY_ZONE)
    return easy.upper if easy is not None else None


def is_recovery_lap(lap: Lap, target_duration_sec: int, target_zone: int, zones: AthleteZones) -> bool:
    """Heuristic: does this lap look like rest between intervals?

    A lap is recovery when it is short (< half the target) and either heart
    rate or power is low, or when both heart rate and power are low regardless
    of length.

    Low heart rate is at or under the zone-2 ceiling or two zones below the
    target; low power is at or under the zone-2 power ceiling.
    The zone-2 ceiling test is skipped for targets of zone 1 or 2, where every
    real rep sits under that ceiling and would otherwise count as rest.
    """
    hr_easy_ceiling = _easy_ceiling(zones.heart_rate)
    power_easy_ceiling = _easy_ceiling(zones.power)
    easy_target = target_zone <= EASY_ZONE

    low_hr = False
    if lap.average_heartrate is not None and zones.hr_usable:
        hr_zone = zones.heart_rate.zone_for(lap.average_heartrate)
        below_easy = not easy_target and hr_easy_ceiling is not None and lap.average_heartrate <= hr_easy_ceiling
        low_hr = below_easy or hr_zone <= target_zone - ZONES_BELOW_TARGET_FOR_RECOVERY

    low_power = False
    if lap.average_watts is not None and power_easy_ceiling is not None and not easy_target:
        low_power = lap.average_watts <= power_easy_ceiling

    short = lap.duration_sec < target_duration_sec * SHORT_LAP_FACTOR
    return (short and (low_hr or low_power)) or (low_hr and low_power)


def classify_lap_zone(lap: Lap, zones: AthleteZones) -> int | None:
    """Zone of a lap, preferring power over heart rate."""
    if lap.average_watts is not None and zones.power_usable:
        return zones.power.zone_for(lap.average_watts)
    if lap.average_heartrate is not None and zones.hr_usable:
        return zones.heart_rate.zone_for(lap.average_heartrate)
    return None


def map_laps_to_intervals(
    laps: Sequence[Lap],
    expected_count: int,
    target_duration_sec: int,
    target_zone: int,
    zones: AthleteZones,
    recovery_duration_sec: int | None = None,
) -> IntervalCompliance | None:
    """Evaluate the interval set from lap splits.

    Args:
        laps: Activity laps in order
        expected_count: Number of prescribed intervals
        target_duration_sec: Prescribed interval duration
        target_zone: Prescribed zone
        zones: Athlete zone tables
        recovery_duration_sec: Prescribed recovery, echoed in the result

    Returns:
        IntervalCompliance with source "laps", or None when the laps carry no
        usable interval evidence (a single auto-lap, or everything filtered)
    """
    if len(laps) < MIN_LAPS or expected_count <= 0:
        return None

    ordered = sorted(laps, key=lambda lap: lap.lap_index)
    trimmed = trim_warmup_cooldown(ordered, expected_count, target_duration_sec)
    work_laps = [lap for lap in trimmed if not is_recovery_lap(lap, target_duration_sec, target_zone, zones)]

    if not work_laps:
        logger.debug(f"No work laps left after filtering {len(laps)} laps")
        return None

    results: list[IntervalResult] = []
    for position, lap in enumerate(work_laps[:expected_count], start=1):
        results.append(
            build_interval_result(
                index=position,
                duration_sec=lap.duration_sec,
                target_duration_sec=target_duration_sec,
                target_zone=target_zone,
                actual_zone=classify_lap_zone(lap, zones),
                avg_hr=lap.average_heartrate,
                avg_power=lap.average_watts,
            )
        )

    return summarize_intervals(
        results,
        expected=expected_count,
        target_duration_sec=target_duration_sec,
        target_zone=target_zone,
        source="laps",
        recovery_duration_sec=recovery_duration_sec,
    )
