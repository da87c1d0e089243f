"""Manual pairing for explicit user-controlled links.

Manual links override auto-pairing. These functions only compute the updated
workout record; the caller persists it.
"""

from __future__ import annotations

from loguru import logger

from plan_compliance.workouts.schemas import RecordId, WorkoutTarget


def link_activity(workout: WorkoutTarget, activity_id: RecordId) -> WorkoutTarget:
    """Manually link an activity to a workout.

    Replaces any existing link (idempotent).

    Args:
        workout: Planned workout
        activity_id: Activity to link

    Returns:
        Updated copy of the workout

    Raises:
        ValueError: If activity_id is empty
    """
    if activity_id is None or activity_id == "":
        raise ValueError("Activity ID required")

    if workout.matched_activity_id is not None and workout.matched_activity_id != activity_id:
        logger.info(f"Replacing link for workout {workout.id}: {workout.matched_activity_id} -> {activity_id}")

    logger.info(f"Manually linked activity {activity_id} to workout {workout.id}")
    return workout.model_copy(update={"matched_activity_id": activity_id, "is_manually_linked": True})


def unlink_activity(workout: WorkoutTarget) -> WorkoutTarget:
    """Remove the link from a workout so auto-pairing applies again.

    Args:
        workout: Planned workout

    Returns:
        Updated copy of the workout
    """
    if workout.matched_activity_id is None:
        logger.debug(f"Workout {workout.id} has no linked activity, nothing to unlink")
    else:
        logger.info(f"Unlinked activity {workout.matched_activity_id} from workout {workout.id}")
    return workout.model_copy(update={"matched_activity_id": None, "is_manually_linked": False})
