"""Deterministic interpretation of free-text intensity targets.

Coaches write targets like "Z3", "85% FTP", "200-220W", "130-150 bpm" or just
"tempo". This module turns that text into either a zone index (1-5) or an
absolute numeric range for one metric (heart rate or power).

Rules are tried in a fixed order and the first match wins:
1. explicit zone token ("z4", "zone 4"; zones 6-7 clamp to 5)
2. explicit absolute range ("130-150bpm" for HR, "200-220W" for power)
3. single wattage with an inferred +-5% band (power only)
4. FTP percentage bucketed into a zone
5. keyword lookup (separate tables for HR and power)

No match means "undetermined" (None). Callers must skip the dimension, not
treat it as zone 1.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from plan_compliance.zones.models import MAX_ZONE, MIN_ZONE, ZoneTable

Metric = Literal["hr", "power"]

MAX_SANE_WATTS = 2000
SINGLE_WATT_TOLERANCE = 0.05

# Upper FTP percentage (inclusive) for each zone; anything above is zone 5.
# Zone 1 is strictly below 55%.
FTP_ZONE_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (75.0, 2),
    (90.0, 3),
    (105.0, 4),
)
FTP_RECOVERY_CEILING = 55.0

# Ordered: multi-word and more specific phrases before the words they contain.
HR_KEYWORD_ZONES: tuple[tuple[str, int], ...] = (
    ("very easy", 1),
    ("recovery", 1),
    ("easy", 2),
    ("endurance", 2),
    ("aerobic", 2),
    ("steady", 2),
    ("tempo", 3),
    ("moderate", 3),
    ("controlled", 3),
    ("sweet spot", 4),
    ("threshold", 4),
    ("lactate", 4),
    ("hard", 4),
    ("vo2max", 5),
    ("vo2", 5),
    ("anaerobic", 5),
    ("max", 5),
)

POWER_KEYWORD_ZONES: tuple[tuple[str, int], ...] = (
    ("very easy", 1),
    ("recovery", 1),
    ("active recovery", 1),
    ("easy", 2),
    ("endurance", 2),
    ("aerobic", 2),
    ("tempo", 3),
    ("moderate", 3),
    ("controlled", 3),
    ("sweet spot", 4),
    ("threshold", 4),
    ("ftp", 4),
    ("hard", 4),
    ("vo2max", 5),
    ("vo2", 5),
    ("anaerobic", 5),
    ("sprint", 5),
    ("neuromuscular", 5),
    ("max", 5),
)

_ZONE_TOKEN = re.compile(r"\b(?:z|zone\s*)(\d)\b", re.IGNORECASE)
_BPM_RANGE = re.compile(r"(\d+)\s*[-–]\s*(\d+)\s*bpm", re.IGNORECASE)
_WATT_RANGE = re.compile(r"(\d+)\s*(?:w|watts?)?\s*[-–]\s*(\d+)\s*(?:w|watts?)\b", re.IGNORECASE)
# A unit followed by "/" is shorthand ("w/ 2min rest", "W/kg"), not a wattage.
_SINGLE_WATTS = re.compile(r"(?<![\d\-–])(\d+)\s*(?:w|watts?)\b(?!\s*/)", re.IGNORECASE)
_FTP_PERCENT = re.compile(r"(\d+)(?:\s*[-–]\s*(\d+))?\s*%\s*(?:of\s+)?ftp", re.IGNORECASE)


@dataclass(frozen=True)
class IntensityTarget:
    """Interpreted intensity target for one metric.

    Attributes:
        metric: "hr" or "power"
        kind: "zone" when only a zone index is known, "range" for absolute bounds
        rule: Name of the rule that produced this target
        zone: Zone index in [1, 5] for zone targets
        min: Lower bound for range targets (bpm or W)
        max: Upper bound for range targets (bpm or W)
    """

    metric: Metric
    kind: Literal["zone", "range"]
    rule: str
    zone: int | None = None
    min: float | None = None
    max: float | None = None

    def zone_index(self, zones: ZoneTable | None) -> int | None:
        """Resolve this target to a zone index.

        Range targets are classified by their midpoint, which needs a usable
        zone table.
        """
        if self.kind == "zone":
            return self.zone
        if zones is None or not zones.is_usable or self.min is None or self.max is None:
            return None
        return zones.zone_for((self.min + self.max) / 2)


def ftp_percent_to_zone(percent: float) -> int:
    """Bucket an FTP percentage into a zone index."""
    if percent < FTP_RECOVERY_CEILING:
        return 1
    for ceiling, zone in FTP_ZONE_BREAKPOINTS:
        if percent <= ceiling:
            return zone
    return MAX_ZONE


def _match_zone_token(text: str, metric: Metric) -> IntensityTarget | None:
    match = _ZONE_TOKEN.search(text)
    if not match:
        return None
    zone = int(match.group(1))
    if zone < MIN_ZONE:
        return None
    return IntensityTarget(metric=metric, kind="zone", rule="zone_token", zone=min(zone, MAX_ZONE))


def _match_absolute_range(text: str, metric: Metric) -> IntensityTarget | None:
    pattern = _BPM_RANGE if metric == "hr" else _WATT_RANGE
    match = pattern.search(text)
    if not match:
        return None

    low = float(match.group(1))
    high = float(match.group(2))
    if high <= low:
        return None
    if metric == "power" and high >= MAX_SANE_WATTS:
        return None
    return IntensityTarget(metric=metric, kind="range", rule="absolute_range", min=low, max=high)


def _match_single_watts(text: str, metric: Metric) -> IntensityTarget | None:
    if metric != "power":
        return None
    match = _SINGLE_WATTS.search(text)
    if not match:
        return None

    watts = float(match.group(1))
    if watts <= 0 or watts >= MAX_SANE_WATTS:
        return None
    return IntensityTarget(
        metric=metric,
        kind="range",
        rule="single_watts",
        min=round(watts * (1 - SINGLE_WATT_TOLERANCE), 1),
        max=round(watts * (1 + SINGLE_WATT_TOLERANCE), 1),
    )


def _match_ftp_percent(text: str, metric: Metric) -> IntensityTarget | None:
    match = _FTP_PERCENT.search(text)
    if not match:
        return None

    low = float(match.group(1))
    percent = (low + float(match.group(2))) / 2 if match.group(2) else low
    return IntensityTarget(metric=metric, kind="zone", rule="ftp_percent", zone=ftp_percent_to_zone(percent))


def _match_keyword(text: str, metric: Metric) -> IntensityTarget | None:
    table = HR_KEYWORD_ZONES if metric == "hr" else POWER_KEYWORD_ZONES
    for keyword, zone in table:
        if re.search(rf"\b{re.escape(keyword)}\b", text):
            return IntensityTarget(metric=metric, kind="zone", rule=f"keyword:{keyword}", zone=zone)
    return None


INTENSITY_RULES: tuple[tuple[str, Callable[[str, Metric], IntensityTarget | None]], ...] = (
    ("zone_token", _match_zone_token),
    ("absolute_range", _match_absolute_range),
    ("single_watts", _match_single_watts),
    ("ftp_percent", _match_ftp_percent),
    ("keyword", _match_keyword),
)


def interpret_intensity(text: str | None, metric: Metric) -> IntensityTarget | None:
    """Interpret free-text intensity for one metric.

    Args:
        text: Coach-authored intensity text (may be None)
        metric: "hr" or "power"

    Returns:
        IntensityTarget or None when no rule matches

    Examples:
        >>> interpret_intensity("200-220W", "power")
        IntensityTarget(metric='power', kind='range', rule='absolute_range', zone=None, min=200.0, max=220.0)

        >>> interpret_intensity("Z2 endurance", "hr").zone
        2
    """
    if not text or not text.strip():
        return None

    lowered = text.lower()
    for _name, rule in INTENSITY_RULES:
        target = rule(lowered, metric)
        if target is not None:
            return target
    return None


def interpret_zone(text: str | None, metric: Metric = "hr", zones: ZoneTable | None = None) -> int | None:
    """Interpret free text straight to a zone index (None if undetermined)."""
    target = interpret_intensity(text, metric)
    if target is None:
        return None
    return target.zone_index(zones)
