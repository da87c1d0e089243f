"""Markdown training plan table parser.

Regex-based parser for pipe-separated tables such as:

    | Day   | Session        | Duration  | Intensity    | Notes              |
    |-------|----------------|-----------|--------------|--------------------|
    | Mon 5 | Rest           | Off       |              |                    |
    | Tue 6 | 3x10min tempo  | 1:00-1:15 | Z3           | 5min recovery      |

Columns are located by header name; without a recognisable header the
standard Day | Session | Duration | Intensity | Notes order is assumed. Rows
whose day cell cannot be parsed are reported in `errors` and skipped.
"""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date

from loguru import logger

from plan_compliance.core.errors import PlanParseError
from plan_compliance.workouts.schemas import WorkoutTarget

DAY_OFFSETS: dict[str, int] = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}

DEFAULT_COLUMNS: dict[str, int] = {"day": 0, "session": 1, "duration": 2, "intensity": 3, "notes": 4}

_DURATION_RANGE = re.compile(r"(\d+):(\d+)\s*[-–]\s*(\d+):(\d+)")
_DURATION_SINGLE = re.compile(r"(\d+):(\d+)")
_DURATION_MINUTES = re.compile(r"^(\d+)")
_DAY_CELL = re.compile(r"^([A-Za-z]{3})\s+(\d{1,2})$")
_SEPARATOR_ROW = re.compile(r"^\|?\s*[-:]+\s*\|")


@dataclass
class ParsedWorkout:
    """One row of the plan table."""

    day_of_week: str
    day_number: int
    session_name: str
    duration_minutes: int | None
    duration_raw: str | None
    intensity_target: str | None
    notes: str | None


@dataclass
class ParsedPlan:
    workouts: list[ParsedWorkout] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_duration(duration: str | None) -> int | None:
    """Parse "1:00-1:15", "0:45" or "90" into minutes (the maximum of a range).

    Args:
        duration: Duration cell text

    Returns:
        Minutes, or None for blank/"off"/unparseable cells
    """
    if not duration or not duration.strip() or duration.strip().lower() == "off":
        return None

    cleaned = duration.strip()

    range_match = _DURATION_RANGE.search(cleaned)
    if range_match:
        return int(range_match.group(3)) * 60 + int(range_match.group(4))

    single_match = _DURATION_SINGLE.search(cleaned)
    if single_match:
        return int(single_match.group(1)) * 60 + int(single_match.group(2))

    minutes_match = _DURATION_MINUTES.match(cleaned)
    if minutes_match:
        return int(minutes_match.group(1))

    return None


def parse_day(day: str) -> tuple[str, int] | None:
    """Parse "Mon 5" into ("Mon", 5)."""
    match = _DAY_CELL.match(day.strip())
    if not match:
        return None
    return (match.group(1), int(match.group(2)))


def resolve_date_from_day(day_of_week: str, day_number: int, reference_date: date) -> date:
    """Resolve a "Mon 5" style reference to a calendar date.

    Picks the month of the reference year in which that day of the month
    falls on that weekday, closest to the reference date. Falls back to the
    reference month when the weekday is unknown or never lines up.

    Args:
        day_of_week: Three-letter weekday ("Mon")
        day_number: Day of the month
        reference_date: Date anchoring the year (typically the plan's Monday)

    Returns:
        Resolved date
    """
    expected_offset = DAY_OFFSETS.get(day_of_week.lower())
    candidates: list[date] = []

    if expected_offset is not None:
        for month in range(1, 13):
            if day_number > monthrange(reference_date.year, month)[1]:
                continue
            candidate = date(reference_date.year, month, day_number)
            if candidate.weekday() == expected_offset:
                candidates.append(candidate)

    if not candidates:
        last_day = monthrange(reference_date.year, reference_date.month)[1]
        return date(reference_date.year, reference_date.month, min(max(day_number, 1), last_day))

    return min(candidates, key=lambda candidate: abs((candidate - reference_date).days))


def _split_row(row: str) -> list[str]:
    cleaned = row.strip()
    if "|" not in cleaned:
        return []
    cells = [cell.strip() for cell in cleaned.split("|")]
    if cleaned.startswith("|"):
        cells = cells[1:]
    if cleaned.endswith("|"):
        cells = cells[:-1]
    return cells


def _is_separator_row(row: str) -> bool:
    return bool(_SEPARATOR_ROW.match(row.strip()))


def _header_columns(cells: list[str]) -> dict[str, int] | None:
    lowered = [cell.lower() for cell in cells]
    if not any("day" in cell or "session" in cell for cell in lowered):
        return None

    columns: dict[str, int] = {}
    for index, cell in enumerate(lowered):
        if "day" in cell:
            columns["day"] = index
        elif "session" in cell:
            columns["session"] = index
        elif "duration" in cell:
            columns["duration"] = index
        elif "intensity" in cell:
            columns["intensity"] = index
        elif "note" in cell:
            columns["notes"] = index
    return columns


def parse_training_plan_table(markdown: str) -> ParsedPlan:
    """Parse a markdown plan table.

    Args:
        markdown: Markdown containing the table

    Returns:
        ParsedPlan with workouts and per-row errors
    """
    lines = [line for line in markdown.splitlines() if line.strip()]
    plan = ParsedPlan()

    columns = DEFAULT_COLUMNS
    start = 0
    for index, line in enumerate(lines):
        if _is_separator_row(line):
            continue
        cells = _split_row(line)
        if not cells:
            continue
        header = _header_columns(cells)
        if header is not None:
            columns = {**DEFAULT_COLUMNS, **header}
            start = index + 1
        break

    def cell(cells: list[str], name: str) -> str:
        position = columns[name]
        return cells[position] if position < len(cells) else ""

    for line in lines[start:]:
        if _is_separator_row(line):
            continue
        cells = _split_row(line)
        if not cells:
            continue

        day_cell = cell(cells, "day")
        day = parse_day(day_cell)
        if day is None:
            if day_cell:
                plan.errors.append(f'Could not parse day: "{day_cell}"')
            continue

        duration_cell = cell(cells, "duration")
        plan.workouts.append(
            ParsedWorkout(
                day_of_week=day[0],
                day_number=day[1],
                session_name=cell(cells, "session") or "Workout",
                duration_minutes=parse_duration(duration_cell),
                duration_raw=duration_cell or None,
                intensity_target=cell(cells, "intensity") or None,
                notes=cell(cells, "notes") or None,
            )
        )

    logger.debug(f"Parsed plan table: workouts={len(plan.workouts)} errors={len(plan.errors)}")
    return plan


def convert_to_workouts(plan: ParsedPlan, reference_date: date, start_id: int = 1) -> list[WorkoutTarget]:
    """Turn parsed rows into workout targets with resolved dates.

    Args:
        plan: Parsed plan
        reference_date: Date anchoring day-of-month resolution
        start_id: Id assigned to the first workout, incremented per row

    Returns:
        Workout targets in table order
    """
    return [
        WorkoutTarget(
            id=start_id + offset,
            date=resolve_date_from_day(row.day_of_week, row.day_number, reference_date),
            session_name=row.session_name,
            duration_target_minutes=row.duration_minutes,
            intensity_target=row.intensity_target,
            notes=row.notes,
        )
        for offset, row in enumerate(plan.workouts)
    ]


def load_plan_workouts(markdown: str, reference_date: date, start_id: int = 1) -> list[WorkoutTarget]:
    """Parse a plan table and convert it, requiring at least one workout.

    Raises:
        PlanParseError: If the table yields no workouts
    """
    plan = parse_training_plan_table(markdown)
    if not plan.workouts:
        raise PlanParseError("No workouts found in table", errors=plan.errors)
    for error in plan.errors:
        logger.warning(f"Plan table row skipped: {error}")
    return convert_to_workouts(plan, reference_date, start_id=start_id)
