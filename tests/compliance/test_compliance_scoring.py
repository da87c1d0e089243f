"""Tests for workout compliance scoring.

Tests cover:
- Duration bands
- Zone and range intensity scoring with direction
- Weighting with and without an interval set
- Stream loading failures degrading gracefully
- Output shape (camelCase aliases)
"""

from collections.abc import Callable
from datetime import date, datetime

import pytest

from plan_compliance.compliance.scoring import (
    calculate_compliance,
    score_duration,
    score_heart_rate,
    score_power,
    weighted_score,
)
from plan_compliance.workouts.schemas import Activity, ActivityStreams, Lap, WorkoutTarget
from plan_compliance.zones.models import AthleteZones, ZoneTable

StreamBuilder = Callable[..., ActivityStreams]


def _activity(**overrides) -> Activity:
    fields = {"id": 501, "type": "Ride", "start_date_local": datetime(2024, 1, 15, 9, 0), "moving_time": 3600}
    fields.update(overrides)
    return Activity(**fields)


class TestScoreDuration:
    @pytest.mark.parametrize(
        ("moving_minutes", "score"),
        [
            (60, 100),
            (48, 100),
            (72, 100),
            (40, 70),
            (80, 70),
            (30, 40),
            (150, 40),
            (20, 20),
        ],
    )
    def test_bands(self, moving_minutes: int, score: int):
        result = score_duration(60, moving_minutes * 60)
        assert result is not None
        assert result[0] == score

    def test_missing_side(self):
        assert score_duration(None, 3600) is None
        assert score_duration(60, None) is None
        assert score_duration(0, 3600) is None


class TestIntensityScoring:
    def test_heart_rate_in_zone(self, hr_zones: ZoneTable):
        scored = score_heart_rate("Z2", 130, hr_zones)
        assert scored is not None
        score, details = scored
        assert score == 100
        assert details.direction == "on_target"
        assert (details.target_zone, details.target_min, details.target_max) == (2, 120, 140)

    def test_heart_rate_adjacent_zone(self, hr_zones: ZoneTable):
        scored = score_heart_rate("Z2", 145, hr_zones)
        assert scored is not None
        assert scored[0] == 60
        assert scored[1].direction == "too_high"

    def test_heart_rate_far_off(self, hr_zones: ZoneTable):
        scored = score_heart_rate("Z2", 175, hr_zones)
        assert scored is not None
        assert scored[0] == 30

    def test_heart_rate_range_tolerance(self):
        assert score_heart_rate("130-150 bpm", 158, None)[0] == 70
        assert score_heart_rate("130-150 bpm", 161, None)[0] == 30
        assert score_heart_rate("130-150 bpm", 128, None)[1].direction == "too_low"

    def test_power_range_tolerance(self):
        scored = score_power("200-220W", 240, None)
        assert scored is not None
        assert scored[0] == 70
        assert scored[1].target_zone == 0
        assert scored[1].actual_avg == 240

    def test_open_ended_top_zone_has_no_upper_bound(self, hr_zones: ZoneTable):
        scored = score_heart_rate("Z5", 180, hr_zones)
        assert scored is not None
        score, details = scored
        assert score == 100
        assert (details.target_min, details.target_max) == (170, None)
        assert details.model_dump(by_alias=True)["targetMax"] is None

    def test_zone_target_without_zones_is_skipped(self):
        assert score_heart_rate("Z3", 150, None) is None

    def test_undetermined_text_is_skipped(self, hr_zones: ZoneTable):
        assert score_heart_rate("see notes", 150, hr_zones) is None

    def test_missing_average_is_skipped(self, hr_zones: ZoneTable):
        assert score_heart_rate("Z2", None, hr_zones) is None


class TestWeightedScore:
    def test_activity_only(self):
        assert weighted_score(None, None, None, None) == 100

    def test_duration_only(self):
        assert weighted_score(40, None, None, None) == 60

    def test_single_intensity_takes_full_intensity_weight(self):
        assert weighted_score(100, 60, None, None) == 84


class TestCalculateCompliance:
    def test_no_activity(self, endurance_workout: WorkoutTarget):
        result = calculate_compliance(endurance_workout, None)
        assert result.score == 0
        assert result.breakdown.activity_done == 0
        assert result.breakdown.duration is None

    def test_perfect_endurance_ride(self, endurance_workout: WorkoutTarget, athlete_zones: AthleteZones):
        activity = _activity(moving_time=5400, average_heartrate=130, average_watts=175)

        result = calculate_compliance(endurance_workout, activity, zones=athlete_zones)

        assert result.score == 100
        assert result.breakdown.duration == 100
        assert result.breakdown.hr_zone == 100
        assert result.breakdown.power_zone == 100
        assert result.breakdown.intervals is None

    def test_range_power_target(self, athlete_zones: AthleteZones):
        workout = WorkoutTarget(
            id=7,
            date=date(2024, 1, 15),
            session_name="Sweet spot ride",
            duration_target_minutes=60,
            intensity_target="200-220W",
        )

        result = calculate_compliance(workout, _activity(average_watts=240, average_heartrate=150), zones=athlete_zones)

        assert result.breakdown.hr_zone is None
        assert result.breakdown.power_zone == 70
        assert result.breakdown.power_details.direction == "too_high"
        assert result.score == 88

    def test_prefers_weighted_average_power(self, athlete_zones: AthleteZones):
        workout = WorkoutTarget(id=8, date=date(2024, 1, 15), session_name="Threshold", intensity_target="Z4")

        result = calculate_compliance(
            workout, _activity(average_watts=150, weighted_average_watts=260), zones=athlete_zones
        )

        assert result.breakdown.power_zone == 100
        assert result.breakdown.power_details.actual_avg == 260

    def test_interval_set_dominates_score(
        self, tempo_workout: WorkoutTarget, hr_only_zones: AthleteZones, make_streams: StreamBuilder
    ):
        streams = make_streams(
            hr=[(400, 125), (600, 150), (300, 125), (600, 150), (300, 125), (300, 150), (600, 125)],
        )
        # Session average sits in zone 2 because of the recoveries; it must not pull the score down.
        activity = _activity(average_heartrate=125)

        result = calculate_compliance(tempo_workout, activity, zones=hr_only_zones, streams=streams)

        intervals = result.breakdown.intervals
        assert intervals is not None
        assert intervals.source == "hr_stream"
        assert [slot.status for slot in intervals.intervals] == ["completed", "completed", "too_short"]
        assert intervals.score == 90
        assert intervals.recovery_duration_sec == 300
        assert result.breakdown.hr_zone == 60
        assert result.score == 93

    def test_stream_loader_failure_is_not_fatal(self, tempo_workout: WorkoutTarget, hr_only_zones: AthleteZones):
        calls: list = []

        def failing_loader(activity_id):
            calls.append(activity_id)
            raise ConnectionError("rate limited")

        result = calculate_compliance(
            tempo_workout, _activity(average_heartrate=148), zones=hr_only_zones, load_streams=failing_loader
        )

        assert calls == [501]
        assert result.breakdown.intervals is None
        assert result.score == 100

    def test_laps_spare_the_stream_fetch(self, tempo_workout: WorkoutTarget, hr_only_zones: AthleteZones):
        laps = [Lap(lap_index=index, elapsed_time=600, average_heartrate=150) for index in (1, 2, 3)]
        calls: list = []

        def loader(activity_id):
            calls.append(activity_id)
            return None

        result = calculate_compliance(
            tempo_workout, _activity(), zones=hr_only_zones, laps=laps, load_streams=loader
        )

        intervals = result.breakdown.intervals
        assert intervals is not None
        assert intervals.source == "laps"
        assert intervals.completed == 3
        assert calls == []

    def test_streams_not_loaded_without_zones(self, tempo_workout: WorkoutTarget):
        def loader(activity_id):
            raise AssertionError("should not fetch streams")

        result = calculate_compliance(tempo_workout, _activity(), zones=None, load_streams=loader)

        assert result.breakdown.intervals is None
        assert result.breakdown.duration == 100

    def test_loader_used_when_streams_missing(
        self, tempo_workout: WorkoutTarget, hr_only_zones: AthleteZones, make_streams: StreamBuilder
    ):
        streams = make_streams(hr=[(400, 125), (600, 150), (300, 125), (600, 150), (300, 125), (600, 150), (300, 125)])

        result = calculate_compliance(
            tempo_workout, _activity(), zones=hr_only_zones, load_streams=lambda activity_id: streams
        )

        assert result.breakdown.intervals is not None
        assert result.breakdown.intervals.completed == 3
        assert result.score == 100

    def test_score_bounds(self, endurance_workout: WorkoutTarget, athlete_zones: AthleteZones):
        activity = _activity(moving_time=60, average_heartrate=190, average_watts=500)

        result = calculate_compliance(endurance_workout, activity, zones=athlete_zones)

        assert 0 <= result.score <= 100

    def test_camel_case_output(self, endurance_workout: WorkoutTarget, hr_zones: ZoneTable):
        activity = _activity(moving_time=5400, average_heartrate=130)

        dumped = calculate_compliance(endurance_workout, activity, zones=AthleteZones(heart_rate=hr_zones)).model_dump(
            by_alias=True
        )

        breakdown = dumped["breakdown"]
        assert breakdown["activityDone"] == 100
        assert breakdown["durationRatio"] == pytest.approx(1.0)
        assert breakdown["hrDetails"]["actualAvg"] == 130
        assert breakdown["hrDetails"]["direction"] == "on_target"


class TestScenarios:
    def test_endurance_ride_on_target(self, hr_zones: ZoneTable):
        workout = WorkoutTarget(
            id=20,
            date=date(2024, 1, 15),
            session_name="Endurance",
            duration_target_minutes=60,
            intensity_target="Z2 endurance",
        )

        result = calculate_compliance(
            workout, _activity(moving_time=3600, average_heartrate=130), zones=AthleteZones(heart_rate=hr_zones)
        )

        assert result.breakdown.duration == 100
        assert result.breakdown.hr_zone == 100
        assert result.breakdown.activity_done == 100
        assert result.score == 100

    def test_interval_session_without_efforts(self, hr_only_zones: AthleteZones, make_streams: StreamBuilder):
        workout = WorkoutTarget(id=21, date=date(2024, 1, 15), session_name="3x10min tempo", duration_target_minutes=60)

        result = calculate_compliance(
            workout, _activity(), zones=hr_only_zones, streams=make_streams(hr=[(3600, 125)])
        )

        intervals = result.breakdown.intervals
        assert intervals is not None
        assert intervals.completed == 0
        assert intervals.score == 0
        assert [slot.status for slot in intervals.intervals] == ["missing", "missing", "missing"]
