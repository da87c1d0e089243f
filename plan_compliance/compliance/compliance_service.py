"""Compliance service for a planning window.

Runs auto-pairing for the window, then scores every workout against its
matched activity. Each workout's computation is self-contained; laps and
streams are looked up per matched activity.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, timedelta

from loguru import logger

from plan_compliance.compliance.interval_evaluation import DEFAULT_TARGET_ZONE
from plan_compliance.compliance.scoring import StreamLoader, calculate_compliance
from plan_compliance.compliance.types import CamelModel, ComplianceResult
from plan_compliance.core.numbers import round_half_up
from plan_compliance.intervals.stream_detection import WARMUP_EXCLUSION_SEC
from plan_compliance.pairing.auto_pairing_service import (
    auto_match_activities,
    find_unmatched_activities,
    get_expected_activity_types,
)
from plan_compliance.workouts.schemas import Activity, ActivityStreams, Lap, RecordId, WorkoutTarget
from plan_compliance.zones.models import AthleteZones

WEEK_DAYS = 7


class WorkoutCompliance(CamelModel):
    """A workout with its matched activity and compliance."""

    workout: WorkoutTarget
    matched_activity_id: RecordId | None = None
    expects_activity: bool
    compliance: ComplianceResult


class WeeklyComplianceReport(CamelModel):
    """Compliance for every workout in a window."""

    week_start: date
    week_end: date
    workouts: list[WorkoutCompliance]
    unmatched_activity_ids: list[RecordId]
    planned: int
    completed: int
    average_score: int | None = None


def week_bounds(week_start: date) -> tuple[date, date]:
    """Get the [start, end) bounds of the 7-day window starting at week_start."""
    return (week_start, week_start + timedelta(days=WEEK_DAYS))


class ComplianceService:
    """Service for matching and scoring a window of workouts."""

    @staticmethod
    def evaluate_workout(
        workout: WorkoutTarget,
        activity: Activity | None,
        zones: AthleteZones | None = None,
        laps: Sequence[Lap] | None = None,
        streams: ActivityStreams | None = None,
        load_streams: StreamLoader | None = None,
        default_interval_zone: int = DEFAULT_TARGET_ZONE,
        warmup_sec: float = WARMUP_EXCLUSION_SEC,
    ) -> WorkoutCompliance:
        """Score one workout against its matched activity.

        Args:
            workout: Planned workout
            activity: Matched activity or None
            zones: Athlete zones
            laps: Laps of the matched activity
            streams: Streams of the matched activity
            load_streams: On-demand stream fetcher
            default_interval_zone: Interval target zone when undetermined
            warmup_sec: Warm-up exclusion for stream detection

        Returns:
            WorkoutCompliance
        """
        compliance = calculate_compliance(
            workout,
            activity,
            zones=zones,
            laps=laps,
            streams=streams,
            load_streams=load_streams,
            default_interval_zone=default_interval_zone,
            warmup_sec=warmup_sec,
        )
        return WorkoutCompliance(
            workout=workout,
            matched_activity_id=activity.id if activity else None,
            expects_activity=bool(get_expected_activity_types(workout.session_name)),
            compliance=compliance,
        )

    @staticmethod
    def evaluate_week(
        week_start: date,
        workouts: Sequence[WorkoutTarget],
        activities: Sequence[Activity],
        zones: AthleteZones | None = None,
        laps_by_activity: Mapping[RecordId, Sequence[Lap]] | None = None,
        streams_by_activity: Mapping[RecordId, ActivityStreams] | None = None,
        load_streams: StreamLoader | None = None,
        default_interval_zone: int = DEFAULT_TARGET_ZONE,
        warmup_sec: float = WARMUP_EXCLUSION_SEC,
    ) -> WeeklyComplianceReport:
        """Match and score every workout in the week starting at week_start.

        Workouts and activities outside the window are ignored.

        Args:
            week_start: First day of the window
            workouts: Planned workouts
            activities: Candidate activities, in a stable order
            zones: Athlete zones
            laps_by_activity: Laps keyed by activity id
            streams_by_activity: Pre-fetched streams keyed by activity id
            load_streams: On-demand fetcher for streams not pre-fetched
            default_interval_zone: Interval target zone when undetermined
            warmup_sec: Warm-up exclusion for stream detection

        Returns:
            WeeklyComplianceReport
        """
        start, end = week_bounds(week_start)
        window_workouts = [workout for workout in workouts if start <= workout.date < end]
        window_activities = [
            activity
            for activity in activities
            if activity.local_date is not None and start <= activity.local_date < end
        ]
        laps_by_activity = laps_by_activity or {}
        streams_by_activity = streams_by_activity or {}

        matches = auto_match_activities(window_workouts, window_activities)

        results: list[WorkoutCompliance] = []
        for workout in window_workouts:
            activity = matches.get(workout.id)
            results.append(
                ComplianceService.evaluate_workout(
                    workout,
                    activity,
                    zones=zones,
                    laps=laps_by_activity.get(activity.id) if activity else None,
                    streams=streams_by_activity.get(activity.id) if activity else None,
                    load_streams=load_streams,
                    default_interval_zone=default_interval_zone,
                    warmup_sec=warmup_sec,
                )
            )

        expected = [result for result in results if result.expects_activity]
        completed = [result for result in expected if result.matched_activity_id is not None]
        average_score = (
            round_half_up(sum(result.compliance.score for result in expected) / len(expected)) if expected else None
        )
        unmatched = find_unmatched_activities(window_activities, matches)

        logger.info(
            "Evaluated week {}: planned={} completed={} average_score={} unmatched_activities={}",
            start,
            len(expected),
            len(completed),
            average_score,
            len(unmatched),
        )
        return WeeklyComplianceReport(
            week_start=start,
            week_end=end - timedelta(days=1),
            workouts=results,
            unmatched_activity_ids=[activity.id for activity in unmatched],
            planned=len(expected),
            completed=len(completed),
            average_score=average_score,
        )
