"""Auto-pairing of planned workouts with recorded activities.

Canonical pairing logic for a date window:
- Manual links always win (the linked activity, or None if it is gone)
- Same local calendar day
- Activity type expected for the session name
- Duration close to the target
- Longer activities preferred (more likely the main session)

Each workout is scored independently, so two workouts on the same day may
pick the same activity when both rank it first. That is a known limitation,
not a bijection guarantee. Ties keep the first candidate in the caller's
order; pass activities in a stable order for deterministic results.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date

from loguru import logger

from plan_compliance.workouts.schemas import Activity, RecordId, WorkoutTarget

TYPE_MATCH_POINTS = 10
DURATION_MATCH_POINTS = 5
DURATION_MATCH_LOW = 0.7
DURATION_MATCH_HIGH = 1.3
MAX_LENGTH_POINTS = 2.0

RIDE_TYPES = ["Ride", "VirtualRide"]
STRENGTH_TYPES = ["WeightTraining", "Workout", "Crossfit"]

# First key contained in the lower-cased session name wins.
SESSION_TYPE_MAP: tuple[tuple[str, list[str]], ...] = (
    # Cycling sessions
    ("endurance", ["Ride", "VirtualRide", "EBikeRide"]),
    ("long ride", RIDE_TYPES),
    ("easy trainer", ["VirtualRide", "Ride"]),
    ("trainer", ["VirtualRide", "Ride"]),
    ("controlled effort", RIDE_TYPES),
    ("tempo", RIDE_TYPES),
    ("intervals", RIDE_TYPES),
    ("cadence drills", RIDE_TYPES),
    # Strength/gym sessions
    ("strength", STRENGTH_TYPES),
    ("gym", STRENGTH_TYPES),
    # Rest days expect no activity
    ("off", []),
    ("rest", []),
    ("travel day", []),
    ("recovery", ["Walk", "Yoga"]),
)

DEFAULT_ACTIVITY_TYPES = ["Ride", "VirtualRide", "Run", "Walk", "WeightTraining", "Workout"]


def get_expected_activity_types(session_name: str | None) -> list[str]:
    """Get the activity types a session is expected to be done as.

    Args:
        session_name: Planned session name

    Returns:
        Expected activity types. Empty means no activity is expected (rest day).
    """
    lowered = (session_name or "").lower()
    for key, types in SESSION_TYPE_MAP:
        if key in lowered:
            return list(types)
    return list(DEFAULT_ACTIVITY_TYPES)


def score_candidate(workout: WorkoutTarget, activity: Activity, expected_types: Sequence[str]) -> float:
    """Score how likely an activity is the execution of a workout.

    +10 for an expected type, +5 for moving time within 70-130% of the target,
    plus up to 2 points for length (hours of moving time).
    """
    score = 0.0

    if activity.type and activity.type in expected_types:
        score += TYPE_MATCH_POINTS

    if workout.duration_target_minutes and activity.moving_time:
        ratio = (activity.moving_time / 60) / workout.duration_target_minutes
        if DURATION_MATCH_LOW <= ratio <= DURATION_MATCH_HIGH:
            score += DURATION_MATCH_POINTS

    if activity.moving_time:
        score += min(activity.moving_time / 3600, MAX_LENGTH_POINTS)

    return score


def group_activities_by_date(activities: Sequence[Activity]) -> dict[date, list[Activity]]:
    """Group activities by local start date, preserving input order."""
    by_date: dict[date, list[Activity]] = defaultdict(list)
    for activity in activities:
        local_date = activity.local_date
        if local_date is None:
            logger.debug(f"Activity {activity.id} has no start_date_local, cannot pair")
            continue
        by_date[local_date].append(activity)
    return by_date


def _pair_workout(workout: WorkoutTarget, day_activities: Sequence[Activity]) -> Activity | None:
    if not day_activities:
        logger.debug(f"Could not pair workout {workout.id} on {workout.date}: reason=no_activities_on_day")
        return None

    expected_types = get_expected_activity_types(workout.session_name)
    if not expected_types:
        logger.debug(
            f"Workout {workout.id} ({workout.session_name!r}) expects no activity, skipping {len(day_activities)} candidates"
        )
        return None

    best_match: Activity | None = None
    best_score = -1.0
    for activity in day_activities:
        score = score_candidate(workout, activity, expected_types)
        logger.debug(f"Workout {workout.id} candidate activity={activity.id} type={activity.type} score={score:.2f}")
        if score > best_score:
            best_score = score
            best_match = activity

    if best_match is not None:
        logger.info(
            "Auto-paired workout={} date={} session={!r} activity={} score={:.2f}",
            workout.id,
            workout.date,
            workout.session_name,
            best_match.id,
            best_score,
        )
    return best_match


def auto_match_activities(
    workouts: Sequence[WorkoutTarget],
    activities: Sequence[Activity],
) -> dict[RecordId, Activity | None]:
    """Assign at most one activity to each workout.

    Args:
        workouts: Planned workouts in the window
        activities: Candidate activities in the window, in a stable order

    Returns:
        Mapping of workout id to matched activity (None when unmatched)
    """
    activities_by_id = {activity.id: activity for activity in activities}
    activities_by_date = group_activities_by_date(activities)

    matches: dict[RecordId, Activity | None] = {}
    for workout in workouts:
        if workout.is_manually_linked and workout.matched_activity_id is not None:
            linked = activities_by_id.get(workout.matched_activity_id)
            if linked is None:
                logger.info(
                    f"Manually linked activity {workout.matched_activity_id} for workout {workout.id} "
                    "is not among the candidates"
                )
            matches[workout.id] = linked
            continue

        matches[workout.id] = _pair_workout(workout, activities_by_date.get(workout.date, []))

    return matches


def find_unmatched_activities(
    activities: Sequence[Activity],
    matches: dict[RecordId, Activity | None],
) -> list[Activity]:
    """List activities not assigned to any workout (candidates for manual linking)."""
    matched_ids = {activity.id for activity in matches.values() if activity is not None}
    return [activity for activity in activities if activity.id not in matched_ids]
