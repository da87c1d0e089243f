"""CLI for the training compliance engine.

Developer CLI to run matching and compliance scoring offline against a JSON
bundle of workouts, activities, zones, laps and streams, exercising the same
code path the dashboard uses.
"""

import json
import sys
from datetime import UTC, date, datetime
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from plan_compliance.compliance.compliance_service import ComplianceService, WeeklyComplianceReport
from plan_compliance.config.settings import settings
from plan_compliance.core.errors import ComplianceInputError, PlanParseError
from plan_compliance.core.logger import configure_logging
from plan_compliance.pairing.auto_pairing_service import auto_match_activities, find_unmatched_activities
from plan_compliance.plans.table_parser import load_plan_workouts
from plan_compliance.workouts.bundle import ComplianceBundle, load_bundle

console = Console()

app = typer.Typer(
    name="plan-compliance",
    help="Training compliance engine - match activities to planned workouts and score them",
    add_completion=False,
)


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from e


def _load_inputs(bundle_path: Path, plan_path: Path | None, reference_date: date | None) -> ComplianceBundle:
    """Load the bundle, replacing its workouts with the plan table when given.

    Raises:
        typer.Exit: If inputs are invalid
    """
    try:
        bundle = load_bundle(bundle_path)
        if plan_path is not None:
            markdown = plan_path.read_text(encoding="utf-8")
            bundle.workouts = load_plan_workouts(markdown, reference_date or datetime.now(UTC).date())
    except (ComplianceInputError, PlanParseError, OSError) as e:
        console.print(Panel(Text(str(e), style="bold red"), title="Invalid input", border_style="red"))
        raise typer.Exit(1) from e
    return bundle


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def _print_report(report: WeeklyComplianceReport) -> None:
    table = Table(title=f"Compliance {report.week_start} - {report.week_end}")
    table.add_column("Date")
    table.add_column("Session")
    table.add_column("Activity")
    table.add_column("Score", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("HR", justify="right")
    table.add_column("Power", justify="right")
    table.add_column("Intervals")

    def fmt(value: int | None) -> str:
        return "-" if value is None else str(value)

    for entry in report.workouts:
        breakdown = entry.compliance.breakdown
        intervals = breakdown.intervals
        interval_text = (
            f"{intervals.completed}/{intervals.expected} ({intervals.score}, {intervals.source})" if intervals else "-"
        )
        score = entry.compliance.score
        table.add_row(
            str(entry.workout.date),
            entry.workout.session_name,
            fmt(entry.matched_activity_id),
            Text(str(score), style=_score_style(score)),
            fmt(breakdown.duration),
            fmt(breakdown.hr_zone),
            fmt(breakdown.power_zone),
            interval_text,
        )

    console.print(table)
    console.print(
        f"Planned: {report.planned}  Completed: {report.completed}  "
        f"Average score: {fmt(report.average_score)}  Unmatched activities: {len(report.unmatched_activity_ids)}"
    )


@app.command()
def match(
    bundle_path: Path = typer.Argument(..., help="JSON bundle with workouts and activities"),
    plan: Path | None = typer.Option(None, "--plan", help="Markdown plan table (replaces bundle workouts)"),
    reference_date: str | None = typer.Option(None, "--reference-date", help="Date anchoring plan days (YYYY-MM-DD)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Show which activity each planned workout is paired with."""
    configure_logging(settings, debug)
    bundle = _load_inputs(bundle_path, plan, _parse_date(reference_date))

    matches = auto_match_activities(bundle.workouts, bundle.activities)

    table = Table(title="Workout pairing")
    table.add_column("Workout")
    table.add_column("Date")
    table.add_column("Session")
    table.add_column("Activity")
    table.add_column("Type")
    for workout in bundle.workouts:
        activity = matches.get(workout.id)
        table.add_row(
            str(workout.id),
            str(workout.date),
            workout.session_name,
            str(activity.id) if activity else "-",
            (activity.type or "-") if activity else "-",
        )
    console.print(table)

    unmatched = find_unmatched_activities(bundle.activities, matches)
    if unmatched:
        console.print(f"[yellow]Unmatched activities:[/yellow] {', '.join(str(activity.id) for activity in unmatched)}")


@app.command()
def score(
    bundle_path: Path = typer.Argument(..., help="JSON bundle with workouts, activities, zones, laps and streams"),
    week: str = typer.Option(..., "--week", "-w", help="First day of the week to evaluate (YYYY-MM-DD)"),
    plan: Path | None = typer.Option(None, "--plan", help="Markdown plan table (replaces bundle workouts)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as camelCase JSON"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Match and score every workout in a week."""
    configure_logging(settings, debug)
    week_start = _parse_date(week)
    bundle = _load_inputs(bundle_path, plan, week_start)

    report = ComplianceService.evaluate_week(
        week_start,
        bundle.workouts,
        bundle.activities,
        zones=bundle.athlete_zones(),
        laps_by_activity=bundle.laps_by_activity(),
        streams_by_activity=bundle.streams_by_activity(),
        default_interval_zone=settings.default_interval_zone,
        warmup_sec=settings.warmup_exclusion_sec,
    )

    if as_json:
        sys.stdout.write(report.model_dump_json(by_alias=True, indent=2) + "\n")
        return
    _print_report(report)


@app.command("parse-plan")
def parse_plan(
    plan: Path = typer.Argument(..., help="Markdown plan table"),
    reference_date: str = typer.Option(..., "--reference-date", help="Date anchoring plan days (YYYY-MM-DD)"),
) -> None:
    """Parse a markdown plan table and print the workouts as JSON."""
    configure_logging(settings)
    try:
        workouts = load_plan_workouts(plan.read_text(encoding="utf-8"), _parse_date(reference_date))
    except (PlanParseError, OSError) as e:
        console.print(Panel(Text(str(e), style="bold red"), title="Invalid plan", border_style="red"))
        raise typer.Exit(1) from e

    logger.info(f"Parsed {len(workouts)} workouts from {plan}")
    sys.stdout.write(json.dumps([workout.model_dump(mode="json") for workout in workouts], indent=2) + "\n")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
