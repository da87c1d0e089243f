"""JSON input bundle for offline evaluation.

Shape:

    {
      "workouts": [{"id": 1, "date": "2024-01-15", "session_name": "...", ...}],
      "activities": [{"id": 99, "type": "Ride", "start_date_local": "...", ...}],
      "zones": {"heart_rate": {"zones": [...]}, "power": {"zones": [...]}},
      "laps": {"99": [{"lap_index": 1, "elapsed_time": 600, ...}]},
      "streams": {"99": {"time": {"data": [...]}, "heartrate": {"data": [...]}}}
    }

Laps and streams are keyed by activity id as a string (JSON object keys).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from plan_compliance.core.errors import ComplianceInputError
from plan_compliance.workouts.schemas import Activity, ActivityStreams, Lap, RecordId, WorkoutTarget
from plan_compliance.zones.models import AthleteZones


class ComplianceBundle(BaseModel):
    workouts: list[WorkoutTarget] = Field(default_factory=list)
    activities: list[Activity] = Field(default_factory=list)
    zones: dict[str, Any] | None = None
    laps: dict[str, list[Lap]] = Field(default_factory=dict)
    streams: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def athlete_zones(self) -> AthleteZones:
        return AthleteZones.from_strava(self.zones)

    def laps_by_activity(self) -> dict[RecordId, list[Lap]]:
        return {activity.id: self.laps[str(activity.id)] for activity in self.activities if str(activity.id) in self.laps}

    def streams_by_activity(self) -> dict[RecordId, ActivityStreams]:
        streams: dict[RecordId, ActivityStreams] = {}
        for activity in self.activities:
            parsed = ActivityStreams.from_strava(self.streams.get(str(activity.id)))
            if parsed is not None:
                streams[activity.id] = parsed
        return streams


def load_bundle(path: Path) -> ComplianceBundle:
    """Read and validate a bundle file.

    Args:
        path: Path to the JSON bundle

    Returns:
        ComplianceBundle

    Raises:
        ComplianceInputError: If the file is unreadable, not JSON, or invalid
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ComplianceInputError(f"Cannot read bundle {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ComplianceInputError(f"Bundle {path} is not valid JSON: {e}") from e

    try:
        return ComplianceBundle.model_validate(raw)
    except ValidationError as e:
        raise ComplianceInputError(f"Bundle {path} failed validation: {e}") from e
