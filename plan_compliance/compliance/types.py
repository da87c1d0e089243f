"""Compliance output models.

Handed to the caller for persistence and display. Fields are snake_case in
Python and serialise with camelCase aliases (model_dump(by_alias=True)), the
shape the dashboard consumes: durationRatio, hrZone, activityDone, ...
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

IntervalStatus = Literal["completed", "too_short", "too_long", "wrong_zone", "missing"]
IntervalSource = Literal["laps", "power_stream", "hr_stream"]
Direction = Literal["on_target", "too_low", "too_high"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IntervalResult(CamelModel):
    """One expected interval slot and how it was executed."""

    index: int
    duration_sec: float
    target_duration_sec: int
    avg_hr: int
    avg_power: int | None = None
    target_zone: int
    actual_zone: int | None = None
    status: IntervalStatus
    score: int


class IntervalCompliance(CamelModel):
    """Interval-set evaluation. `intervals` always has exactly `expected` slots."""

    expected: int
    completed: int
    score: int
    target_duration_sec: int
    target_zone: int
    recovery_duration_sec: int | None = None
    source: IntervalSource
    intervals: list[IntervalResult]


class ZoneDetails(CamelModel):
    """How an activity-wide average compared with its target.

    target_zone is 0 when the target was an absolute range rather than a zone.
    target_max is None for the open-ended top zone.
    """

    actual_avg: int
    target_zone: int
    target_min: float
    target_max: float | None
    direction: Direction


class HeartRateDetails(ZoneDetails):
    """Average heart rate vs target."""


class PowerDetails(ZoneDetails):
    """Average (weighted) power vs target."""


class ComplianceBreakdown(CamelModel):
    duration: int | None = None
    duration_ratio: float | None = None
    hr_zone: int | None = None
    hr_details: HeartRateDetails | None = None
    power_zone: int | None = None
    power_details: PowerDetails | None = None
    intervals: IntervalCompliance | None = None
    activity_done: int


class ComplianceResult(CamelModel):
    """Overall 0-100 compliance score with its breakdown."""

    score: int
    breakdown: ComplianceBreakdown
