"""Heart-rate and power zone tables.

Zones come from the athlete's tracking service as ascending, non-overlapping
{min, max} bands. Heart rate always has 5 bands; power may carry 7 (Coggan
style), in which case everything above zone 5 is folded into zone 5.
Bounds are caller-supplied and not validated here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

MIN_ZONE = 1
MAX_ZONE = 5
REQUIRED_ZONE_COUNT = 5


class ZoneRange(BaseModel):
    """One zone band. A negative max means open-ended (top zone)."""

    min: float
    max: float

    @property
    def is_open_ended(self) -> bool:
        return self.max < 0

    @property
    def upper(self) -> float:
        """Upper bound with the open-ended convention resolved."""
        if self.is_open_ended:
            return float("inf")
        return self.max

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.upper


class ZoneTable(BaseModel):
    """Ordered list of zone bands for a single metric."""

    ranges: list[ZoneRange] = Field(default_factory=list)

    @property
    def is_usable(self) -> bool:
        """Whether the table has enough bands to classify against."""
        return len(self.ranges) >= REQUIRED_ZONE_COUNT

    def bounds(self, zone: int) -> ZoneRange | None:
        """Get the band for a 1-based zone index.

        Args:
            zone: Zone index (1 = recovery)

        Returns:
            ZoneRange or None if the zone is outside the table
        """
        if zone < MIN_ZONE or zone > len(self.ranges):
            return None
        return self.ranges[zone - 1]

    def zone_for(self, value: float) -> int:
        """Classify a value as the highest zone whose min is <= value.

        Values below zone 1 min are reported as zone 1. The result is always
        clamped to [1, 5] even for 7-band power tables.

        Args:
            value: Heart rate (bpm) or power (W)

        Returns:
            Zone index in [1, 5]
        """
        zone = MIN_ZONE
        for index in range(len(self.ranges) - 1, -1, -1):
            if value >= self.ranges[index].min:
                zone = index + 1
                break
        return max(MIN_ZONE, min(MAX_ZONE, zone))

    def adjacent_bounds(self, zone: int, fallback: float) -> tuple[float, float] | None:
        """Get the span covering the zone and its immediate neighbours.

        Args:
            zone: Target zone index
            fallback: Widening applied past the first/last band

        Returns:
            (lower, upper) tuple or None if the zone is outside the table
        """
        target = self.bounds(zone)
        if target is None:
            return None

        below = self.bounds(zone - 1)
        above = self.bounds(zone + 1)
        lower = below.min if below is not None else target.min - fallback
        upper = above.upper if above is not None else target.upper + fallback
        return (lower, upper)

    @classmethod
    def from_bands(cls, bands: list[dict[str, Any]] | list[ZoneRange] | None) -> ZoneTable | None:
        if not bands:
            return None
        return cls(ranges=[band if isinstance(band, ZoneRange) else ZoneRange(**band) for band in bands])


class AthleteZones(BaseModel):
    """Heart-rate and power zone tables for one athlete (either may be absent)."""

    heart_rate: ZoneTable | None = None
    power: ZoneTable | None = None

    @property
    def hr_usable(self) -> bool:
        return self.heart_rate is not None and self.heart_rate.is_usable

    @property
    def power_usable(self) -> bool:
        return self.power is not None and self.power.is_usable

    @classmethod
    def from_strava(cls, payload: dict[str, Any] | None) -> AthleteZones:
        """Build zone tables from a Strava athlete zones payload.

        Accepts {"heart_rate": {"custom_zones": bool, "zones": [...]},
        "power": {"zones": [...]}} with either section missing or null.
        """
        if not payload:
            return cls()

        heart_rate = payload.get("heart_rate") or {}
        power = payload.get("power") or {}
        return cls(
            heart_rate=ZoneTable.from_bands(heart_rate.get("zones")),
            power=ZoneTable.from_bands(power.get("zones")),
        )
