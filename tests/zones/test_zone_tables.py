"""Tests for heart-rate and power zone tables."""

import pytest

from plan_compliance.zones.models import AthleteZones, ZoneRange, ZoneTable


class TestZoneRange:
    def test_negative_max_is_open_ended(self):
        band = ZoneRange(min=170, max=-1)
        assert band.is_open_ended
        assert band.upper == float("inf")
        assert band.contains(230)

    def test_contains_is_inclusive(self):
        band = ZoneRange(min=140, max=155)
        assert band.contains(140)
        assert band.contains(155)
        assert not band.contains(156)


class TestZoneFor:
    @pytest.mark.parametrize(
        ("value", "zone"),
        [
            (90, 1),
            (120, 2),
            (139, 2),
            (150, 3),
            (160, 4),
            (185, 5),
        ],
    )
    def test_classifies_highest_zone_with_min_below_value(self, hr_zones: ZoneTable, value: float, zone: int):
        assert hr_zones.zone_for(value) == zone

    def test_values_below_zone_one_are_zone_one(self):
        table = ZoneTable.from_bands([{"min": 100, "max": 120}] * 5)
        assert table is not None
        assert table.zone_for(50) == 1

    def test_seven_band_power_table_clamps_to_zone_five(self, power_zones: ZoneTable):
        assert power_zones.zone_for(350) == 5
        assert power_zones.zone_for(900) == 5
        assert power_zones.zone_for(260) == 4


class TestZoneTable:
    def test_needs_five_bands_to_be_usable(self):
        table = ZoneTable.from_bands([{"min": 0, "max": 120}, {"min": 120, "max": -1}])
        assert table is not None
        assert not table.is_usable

    def test_from_bands_empty_is_none(self):
        assert ZoneTable.from_bands([]) is None
        assert ZoneTable.from_bands(None) is None

    def test_bounds_outside_table(self, hr_zones: ZoneTable):
        assert hr_zones.bounds(0) is None
        assert hr_zones.bounds(6) is None
        assert hr_zones.bounds(3) == ZoneRange(min=140, max=155)

    def test_adjacent_bounds_spans_neighbours(self, hr_zones: ZoneTable):
        assert hr_zones.adjacent_bounds(3, fallback=20) == (120, 170)

    def test_adjacent_bounds_widens_past_first_band(self, hr_zones: ZoneTable):
        assert hr_zones.adjacent_bounds(1, fallback=20) == (-20, 140)


class TestAthleteZones:
    def test_from_strava_payload(self, strava_zones_payload: dict):
        zones = AthleteZones.from_strava(strava_zones_payload)
        assert zones.hr_usable
        assert zones.power_usable
        assert len(zones.power.ranges) == 7

    def test_missing_sections(self):
        zones = AthleteZones.from_strava({"heart_rate": None})
        assert zones.heart_rate is None
        assert zones.power is None
        assert not zones.hr_usable

    def test_empty_payload(self):
        assert AthleteZones.from_strava(None) == AthleteZones()


class TestZoneScanProperty:
    def test_every_value_maps_into_range(self, hr_zones: ZoneTable):
        for value in range(0, 251):
            zone = hr_zones.zone_for(value)
            assert 1 <= zone <= 5
            assert hr_zones.ranges[zone - 1].min <= value
            if zone < 5:
                assert value < hr_zones.ranges[zone].min
