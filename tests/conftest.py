"""Root conftest for all tests.

Shared zone tables, workouts and a synthetic 1 Hz stream builder.
"""

from collections.abc import Callable
from datetime import date

import pytest
from loguru import logger

from plan_compliance.workouts.schemas import ActivityStreams, WorkoutTarget
from plan_compliance.zones.models import AthleteZones, ZoneTable

HR_BANDS = [
    {"min": 0, "max": 120},
    {"min": 120, "max": 140},
    {"min": 140, "max": 155},
    {"min": 155, "max": 170},
    {"min": 170, "max": -1},
]

POWER_BANDS = [
    {"min": 0, "max": 150},
    {"min": 150, "max": 200},
    {"min": 200, "max": 240},
    {"min": 240, "max": 280},
    {"min": 280, "max": 330},
    {"min": 330, "max": 400},
    {"min": 400, "max": -1},
]

StreamBuilder = Callable[..., ActivityStreams]


@pytest.fixture(autouse=True)
def _quiet_logger():
    """Keep test output readable; individual tests add sinks when they assert on logs."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def hr_zones() -> ZoneTable:
    """Five-band heart-rate zone table."""
    table = ZoneTable.from_bands(HR_BANDS)
    assert table is not None
    return table


@pytest.fixture
def power_zones() -> ZoneTable:
    """Seven-band (Coggan style) power zone table."""
    table = ZoneTable.from_bands(POWER_BANDS)
    assert table is not None
    return table


@pytest.fixture
def athlete_zones(hr_zones: ZoneTable, power_zones: ZoneTable) -> AthleteZones:
    """Athlete with both heart-rate and power zones."""
    return AthleteZones(heart_rate=hr_zones, power=power_zones)


@pytest.fixture
def hr_only_zones(hr_zones: ZoneTable) -> AthleteZones:
    """Athlete with heart-rate zones only."""
    return AthleteZones(heart_rate=hr_zones)


@pytest.fixture
def strava_zones_payload() -> dict:
    """Athlete zones as returned by Strava's /athlete/zones."""
    return {
        "heart_rate": {"custom_zones": False, "zones": HR_BANDS},
        "power": {"zones": POWER_BANDS},
    }


@pytest.fixture
def make_streams() -> StreamBuilder:
    """Build 1 Hz streams from (seconds, value) segments.

    Example:
        make_streams(hr=[(600, 130), (600, 160), (300, 130)])
        gives 1500 samples: 10 min at 130 bpm, 10 min at 160 bpm, 5 min at 130 bpm.
    """

    def build(
        hr: list[tuple[int, float]] | None = None,
        watts: list[tuple[int, float]] | None = None,
    ) -> ActivityStreams:
        def expand(segments: list[tuple[int, float]]) -> list[float]:
            values: list[float] = []
            for seconds, value in segments:
                values.extend([value] * seconds)
            return values

        heartrate = expand(hr) if hr else None
        power = expand(watts) if watts else None
        length = len(heartrate or power or [])
        return ActivityStreams(time=list(range(length)), heartrate=heartrate, watts=power)

    return build


@pytest.fixture
def monday() -> date:
    """Start of the test week."""
    return date(2024, 1, 15)


@pytest.fixture
def tempo_workout(monday: date) -> WorkoutTarget:
    """Tempo ride with a 3x10min interval set."""
    return WorkoutTarget(
        id=1,
        date=monday,
        session_name="Tempo intervals",
        duration_target_minutes=60,
        intensity_target="Z3",
        notes="3x10min @ Z3 / 5min recovery",
    )


@pytest.fixture
def endurance_workout(monday: date) -> WorkoutTarget:
    """Steady endurance ride with no interval structure."""
    return WorkoutTarget(
        id=2,
        date=monday,
        session_name="Endurance ride",
        duration_target_minutes=90,
        intensity_target="Z2",
    )

