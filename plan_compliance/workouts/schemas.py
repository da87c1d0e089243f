"""Input data contracts (Pydantic).

Planned workouts, recorded activities, laps and streams as handed to the
engine by the plan importer and the activity sync. The engine never mutates
these; manual link/unlink returns updated copies.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field

RecordId = int | str


class WorkoutTarget(BaseModel):
    """A planned workout from the coach's plan."""

    id: RecordId
    date: dt.date
    session_name: str
    duration_target_minutes: float | None = None
    intensity_target: str | None = None
    notes: str | None = None
    matched_activity_id: RecordId | None = None
    is_manually_linked: bool = False


class Activity(BaseModel):
    """A recorded activity (Strava summary shape)."""

    id: RecordId
    type: str | None = None
    start_date_local: dt.datetime | None = None
    moving_time: int | None = None
    average_heartrate: float | None = None
    average_watts: float | None = None
    weighted_average_watts: float | None = None

    @property
    def local_date(self) -> dt.date | None:
        """Calendar date the activity started on, in the athlete's local time."""
        if self.start_date_local is None:
            return None
        return self.start_date_local.date()

    @property
    def power_for_scoring(self) -> float | None:
        """Weighted average power when available, else plain average power."""
        if self.weighted_average_watts:
            return self.weighted_average_watts
        return self.average_watts


class Lap(BaseModel):
    """One lap split of an activity."""

    lap_index: int
    elapsed_time: int
    moving_time: int | None = None
    average_heartrate: float | None = None
    average_watts: float | None = None

    @property
    def duration_sec(self) -> int:
        """Moving time, falling back to elapsed time for laps with no moving time."""
        if self.moving_time:
            return self.moving_time
        return self.elapsed_time


class ActivityStreams(BaseModel):
    """Index-aligned time series for one activity.

    `time` holds elapsed seconds; metric sequences must be the same length to
    be usable.
    """

    time: list[float] = Field(default_factory=list)
    heartrate: list[float | None] | None = None
    watts: list[float | None] | None = None

    def metric(self, name: str) -> list[float | None] | None:
        """Get a metric stream if it is present and aligned with `time`."""
        values = self.heartrate if name == "heartrate" else self.watts if name == "watts" else None
        if not values or not self.time or len(values) != len(self.time):
            return None
        return values

    @classmethod
    def from_strava(cls, payload: dict[str, Any] | None) -> ActivityStreams | None:
        """Build streams from the Strava key_by_type shape ({"time": {"data": [...]}, ...})."""
        if not payload:
            return None

        def _data(key: str) -> list[Any] | None:
            stream = payload.get(key)
            if isinstance(stream, dict):
                return stream.get("data")
            return stream

        time_data = _data("time")
        if not time_data:
            return None
        return cls(time=time_data, heartrate=_data("heartrate"), watts=_data("watts"))
