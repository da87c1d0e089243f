"""Per-interval status and score.

Fixed scoring table; the degraded values (70/50/30) are kept as-is for
compatibility with scores already shown to athletes.

| condition                              | status     | score                     |
|----------------------------------------|------------|---------------------------|
| zone match and ratio in [0.8, 1.2]     | completed  | 100                       |
| ratio < 0.8                            | too_short  | 70 match / 50 close / 30  |
| ratio > 1.2                            | too_long   | 70 match / 50 close / 30  |
| ratio in [0.8, 1.2], zone mismatch     | wrong_zone | 50 close / 30             |
| nothing executed                       | missing    | 0                         |
"""

from __future__ import annotations

from plan_compliance.compliance.types import IntervalCompliance, IntervalResult, IntervalSource, IntervalStatus
from plan_compliance.core.numbers import round_half_up

RATIO_LOW = 0.8
RATIO_HIGH = 1.2

SCORE_COMPLETED = 100
SCORE_OFF_DURATION_ZONE_MATCH = 70
SCORE_ZONE_CLOSE = 50
SCORE_ZONE_OFF = 30
SCORE_MISSING = 0


def score_interval(duration_ratio: float, zone_match: bool, zone_close: bool) -> tuple[IntervalStatus, int]:
    """Classify one executed interval.

    Args:
        duration_ratio: actual / target duration
        zone_match: actual zone equals target zone
        zone_close: actual zone is one zone away from target

    Returns:
        (status, score)
    """
    if zone_match and RATIO_LOW <= duration_ratio <= RATIO_HIGH:
        return ("completed", SCORE_COMPLETED)

    if zone_match:
        zone_score = SCORE_OFF_DURATION_ZONE_MATCH
    elif zone_close:
        zone_score = SCORE_ZONE_CLOSE
    else:
        zone_score = SCORE_ZONE_OFF

    if duration_ratio < RATIO_LOW:
        return ("too_short", zone_score)
    if duration_ratio > RATIO_HIGH:
        return ("too_long", zone_score)
    return ("wrong_zone", zone_score)


def build_interval_result(
    index: int,
    duration_sec: float,
    target_duration_sec: int,
    target_zone: int,
    actual_zone: int | None,
    avg_hr: float | None,
    avg_power: float | None = None,
) -> IntervalResult:
    """Score one executed interval into a result slot.

    An interval with no zone evidence (actual_zone None) is judged on duration
    alone.
    """
    ratio = duration_sec / target_duration_sec if target_duration_sec > 0 else 0.0
    if actual_zone is None:
        zone_match, zone_close = True, False
    else:
        zone_match = actual_zone == target_zone
        zone_close = abs(actual_zone - target_zone) == 1
    status, score = score_interval(ratio, zone_match, zone_close)

    return IntervalResult(
        index=index,
        duration_sec=duration_sec,
        target_duration_sec=target_duration_sec,
        avg_hr=round_half_up(avg_hr) if avg_hr is not None else 0,
        avg_power=round_half_up(avg_power) if avg_power is not None else None,
        target_zone=target_zone,
        actual_zone=actual_zone,
        status=status,
        score=score,
    )


def missing_interval(index: int, target_duration_sec: int, target_zone: int) -> IntervalResult:
    return IntervalResult(
        index=index,
        duration_sec=0,
        target_duration_sec=target_duration_sec,
        avg_hr=0,
        target_zone=target_zone,
        status="missing",
        score=SCORE_MISSING,
    )


def summarize_intervals(
    results: list[IntervalResult],
    expected: int,
    target_duration_sec: int,
    target_zone: int,
    source: IntervalSource,
    recovery_duration_sec: int | None = None,
) -> IntervalCompliance:
    """Pad results to `expected` slots and compute the set score.

    Args:
        results: Scored slots in order (at most `expected` are kept)
        expected: Number of prescribed intervals
        target_duration_sec: Prescribed interval duration
        target_zone: Prescribed zone
        source: Where the intervals came from
        recovery_duration_sec: Prescribed recovery, echoed for display

    Returns:
        IntervalCompliance with exactly `expected` slots
    """
    slots = list(results[:expected])
    while len(slots) < expected:
        slots.append(missing_interval(len(slots) + 1, target_duration_sec, target_zone))

    total = sum(slot.score for slot in slots)
    return IntervalCompliance(
        expected=expected,
        completed=sum(1 for slot in slots if slot.status == "completed"),
        score=round_half_up(total / expected) if expected else 0,
        target_duration_sec=target_duration_sec,
        target_zone=target_zone,
        recovery_duration_sec=recovery_duration_sec,
        source=source,
        intervals=slots,
    )
