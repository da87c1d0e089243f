"""Tests for interval structure extraction from workout text."""

import pytest

from plan_compliance.workouts.interval_structure import (
    IntervalStructure,
    extract_interval_structure,
    extract_recovery_duration,
)


class TestExtractIntervalStructure:
    @pytest.mark.parametrize(
        ("text", "count", "duration_sec", "zone"),
        [
            ("3x10min tempo", 3, 600, 3),
            ("6x1' hard", 6, 60, 4),
            ("4x5mins Z4", 4, 300, 4),
            ('8x30" @ vo2', 8, 30, 5),
            ("5 x 3 minutes threshold", 5, 180, 4),
            ("10×40sec", 10, 40, None),
        ],
    )
    def test_patterns(self, text: str, count: int, duration_sec: int, zone: int | None):
        structure = extract_interval_structure(text)
        assert structure is not None
        assert structure.count == count
        assert structure.duration_sec == duration_sec
        assert structure.target_zone == zone

    def test_zone_falls_back_to_intensity_target(self):
        structure = extract_interval_structure("Intervals 4x8min", intensity_target="Z4")
        assert structure is not None
        assert structure.target_zone == 4

    def test_inline_intensity_beats_intensity_target(self):
        structure = extract_interval_structure("3x10min @ Z3", intensity_target="Z5")
        assert structure is not None
        assert structure.target_zone == 3

    @pytest.mark.parametrize(
        ("text", "target_text"),
        [
            ("5x3min @ 300W", "300W"),
            ("4x8min @ 150-160 bpm", "150-160 bpm"),
            ("6x2min 250-270W", "250-270W"),
        ],
    )
    def test_absolute_inline_target_kept_for_zone_lookup(self, text: str, target_text: str):
        structure = extract_interval_structure(text, intensity_target="Z2")
        assert structure is not None
        assert structure.target_zone is None
        assert structure.target_text == target_text

    def test_absolute_intensity_target_used_when_no_inline_token(self):
        structure = extract_interval_structure("Intervals 4x8min", intensity_target="200-220W")
        assert structure is not None
        assert structure.target_zone is None
        assert structure.target_text == "200-220W"

    def test_rest_shorthand_is_not_a_wattage(self):
        structure = extract_interval_structure("3x5min w/ 2min rest")
        assert structure is not None
        assert structure.target_text is None
        assert structure.target_zone is None

    def test_searches_notes_after_session_name(self):
        structure = extract_interval_structure("Tempo ride", notes="3x10min @ Z3 / 5min recovery")
        assert structure is not None
        assert (structure.count, structure.duration_sec, structure.recovery_duration_sec) == (3, 600, 300)

    def test_no_structure(self):
        assert extract_interval_structure("Endurance ride", notes="Keep it steady", intensity_target="Z2") is None
        assert extract_interval_structure(None) is None

    @pytest.mark.parametrize("text", ["25x1min", "0x5min", "3x5sec", "2x90min"])
    def test_implausible_values_yield_nothing(self, text: str):
        assert extract_interval_structure(text) is None

    def test_first_hit_decides(self):
        assert extract_interval_structure("25x1min then 3x10min") is None

    def test_raw_text_is_matched_fragment(self):
        structure = extract_interval_structure("Session: 4x5min Z4 with 2min rest")
        assert structure is not None
        assert structure.raw_text == "4x5min Z4"


class TestRecoveryDuration:
    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("3x10min / 2min recovery", 120),
            ("4x5min with 90sec rest", 90),
            ("6x1' (3' recovery)", 180),
            ("8x30\" / 30\" easy", 30),
        ],
    )
    def test_patterns(self, text: str, seconds: int):
        assert extract_recovery_duration(text) == seconds

    def test_out_of_range(self):
        assert extract_recovery_duration("with 5sec rest") is None
        assert extract_recovery_duration("/ 45min recovery") is None

    def test_absent(self):
        assert extract_recovery_duration("3x10min tempo") is None


class TestCanonicalText:
    @pytest.mark.parametrize(
        "structure",
        [
            IntervalStructure(count=3, duration_sec=600, target_zone=4, recovery_duration_sec=120),
            IntervalStructure(count=8, duration_sec=30, target_zone=5, recovery_duration_sec=30),
            IntervalStructure(count=5, duration_sec=300),
            IntervalStructure(count=5, duration_sec=180, target_text="300W"),
        ],
    )
    def test_canonical_text_parses_back(self, structure: IntervalStructure):
        parsed = extract_interval_structure(structure.canonical_text())
        assert parsed is not None
        assert (
            parsed.count,
            parsed.duration_sec,
            parsed.target_zone,
            parsed.target_text,
            parsed.recovery_duration_sec,
        ) == (
            structure.count,
            structure.duration_sec,
            structure.target_zone,
            structure.target_text,
            structure.recovery_duration_sec,
        )

    def test_rendering(self):
        structure = IntervalStructure(count=3, duration_sec=600, target_zone=4, recovery_duration_sec=120)
        assert structure.canonical_text() == "3x10min @ Z4 / 2min recovery"
