"""Interval structure extraction from workout text.

Finds the repeat pattern a coach wrote ("3x10min tempo", "6x1' hard",
"4x5mins Z4", "8x30\" @ vo2") in the session name, notes or intensity text,
plus an optional recovery duration ("/ 2min recovery", "with 90sec rest",
"(3' recovery)").

Fields are searched in order (session name, notes, intensity target) and
patterns in table order; the first regex hit decides. A hit with an
implausible count or duration yields no structure at all, which means interval
detection is skipped for the workout.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from plan_compliance.workouts.intensity import interpret_intensity, interpret_zone

MIN_COUNT = 1
MAX_COUNT = 20
MIN_INTERVAL_SEC = 10
MAX_INTERVAL_SEC = 3600
MIN_RECOVERY_SEC = 10
MAX_RECOVERY_SEC = 1800

_REPEAT = r"(\d+)\s*[x×]\s*(\d+)\s*"
_INLINE_INTENSITY = r"\s*(?:@\s*)?(\S+(?:\s+(?:bpm|watts?|w|ftp)\b(?!/))?)?"

# (pattern, seconds per unit)
INTERVAL_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(_REPEAT + r"min(?:ute)?s?" + _INLINE_INTENSITY, re.IGNORECASE), 60),
    (re.compile(_REPEAT + r"['′]" + _INLINE_INTENSITY, re.IGNORECASE), 60),
    (re.compile(_REPEAT + r"sec(?:ond)?s?" + _INLINE_INTENSITY, re.IGNORECASE), 1),
    (re.compile(_REPEAT + r"[\"″]" + _INLINE_INTENSITY, re.IGNORECASE), 1),
)

_RECOVERY_UNIT = r"(\d+)\s*(min(?:ute)?s?|['′]|sec(?:ond)?s?|[\"″])"
RECOVERY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/\s*" + _RECOVERY_UNIT + r"\s*(?:recovery|recoveries|rec|rest|easy)", re.IGNORECASE),
    re.compile(r"with\s+" + _RECOVERY_UNIT + r"\s*(?:recovery|rec|rest|easy)", re.IGNORECASE),
    re.compile(r"\(\s*" + _RECOVERY_UNIT + r"\s*(?:recovery|rec|rest|easy)[^)]*\)", re.IGNORECASE),
)


@dataclass(frozen=True)
class IntervalStructure:
    """The repeat pattern a coach prescribed.

    Attributes:
        count: Number of work intervals
        duration_sec: Duration of each work interval in seconds
        target_zone: Target zone (1-5) when the text names one outright
        target_text: Absolute target ("300W", "150-160bpm") left for the
            evaluator to place in the athlete's zones; set only when
            target_zone is None
        recovery_duration_sec: Recovery between intervals in seconds, if stated
        raw_text: The matched text fragment
    """

    count: int
    duration_sec: int
    target_zone: int | None = None
    target_text: str | None = None
    recovery_duration_sec: int | None = None
    raw_text: str = ""

    def canonical_text(self) -> str:
        """Render the structure back to text that parses to the same structure."""
        text = f"{self.count}x{_format_duration(self.duration_sec)}"
        if self.target_zone is not None:
            text += f" @ Z{self.target_zone}"
        elif self.target_text:
            text += f" @ {self.target_text}"
        if self.recovery_duration_sec is not None:
            text += f" / {_format_duration(self.recovery_duration_sec)} recovery"
        return text


def _format_duration(seconds: int) -> str:
    if seconds % 60 == 0:
        return f"{seconds // 60}min"
    return f"{seconds}sec"


def _unit_seconds(unit: str) -> int:
    unit = unit.lower()
    if unit.startswith("sec") or unit in {'"', "″"}:
        return 1
    return 60


def _interval_target(inline: str | None, intensity_target: str | None) -> tuple[int | None, str | None]:
    """Read the set's target from the inline token, else the intensity field.

    Zone-like text resolves right away. Watt and bpm targets need the
    athlete's zone tables, so the text is kept for the evaluator.
    """
    for text in (inline, intensity_target):
        if not text:
            continue
        zone = interpret_zone(text, "hr")
        if zone is not None:
            return zone, None
        if interpret_intensity(text, "power") is not None or interpret_intensity(text, "hr") is not None:
            return None, text.strip()
    return None, None


def extract_recovery_duration(text: str) -> int | None:
    """Find a recovery duration in text.

    Args:
        text: Text to search

    Returns:
        Recovery seconds in [10, 1800], or None
    """
    for pattern in RECOVERY_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        seconds = int(match.group(1)) * _unit_seconds(match.group(2))
        if MIN_RECOVERY_SEC <= seconds <= MAX_RECOVERY_SEC:
            return seconds
        return None
    return None


def extract_interval_structure(
    session_name: str | None,
    notes: str | None = None,
    intensity_target: str | None = None,
) -> IntervalStructure | None:
    """Extract the interval structure from workout text fields.

    Args:
        session_name: Workout session name
        notes: Coach notes
        intensity_target: Intensity target text

    Returns:
        IntervalStructure, or None when no plausible structure is written
    """
    for text in (session_name, notes, intensity_target):
        if not text:
            continue

        for pattern, unit_seconds in INTERVAL_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue

            count = int(match.group(1))
            duration_sec = int(match.group(2)) * unit_seconds
            if not (MIN_COUNT <= count <= MAX_COUNT and MIN_INTERVAL_SEC <= duration_sec <= MAX_INTERVAL_SEC):
                return None

            target_zone, target_text = _interval_target(match.group(3), intensity_target)

            return IntervalStructure(
                count=count,
                duration_sec=duration_sec,
                target_zone=target_zone,
                target_text=target_text,
                recovery_duration_sec=extract_recovery_duration(text),
                raw_text=match.group(0).strip(),
            )

    return None
