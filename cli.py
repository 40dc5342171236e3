#!/usr/bin/env python3
"""
Chanjo CLI

Command-line interface for immunization schedules, defaulter lists and
coverage reports.
"""

import copy
import json
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from chanjo import __version__
from chanjo.errors import ChanjoError

console = Console()

# Acting user for commands that run reports from a local dataset.
CLI_USER_ID = "cli"

# Child id given to --history records that do not name one.
CLI_CHILD_ID = "cli-child"

STATUS_COLORS = {
    "completed": "green",
    "up-to-date": "green",
    "not-started": "yellow",
    "behind": "red",
    "upcoming": "cyan",
    "overdue": "red",
    "on_target": "green",
    "near_target": "yellow",
    "off_target": "red",
}


def _color(value: str) -> str:
    color = STATUS_COLORS.get(value, "white")
    return f"[{color}]{value}[/{color}]"


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value else None


def _load_history(path: Optional[str]) -> list:
    """Read a JSON list of vaccination records; child_id may be omitted."""
    from chanjo.models import VaccinationRecord

    if not path:
        return []
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("records", [])
    return [VaccinationRecord.model_validate({"child_id": CLI_CHILD_ID, **row}) for row in data]


def _settings(completed_only: bool):
    from chanjo.config import get_settings

    settings = copy.copy(get_settings())
    if completed_only:
        settings.count_completed_only = True
    return settings


@click.group()
@click.version_option(version=__version__, prog_name="chanjo")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """
    Chanjo - Childhood Immunization Tracker

    Compute vaccine due dates, find defaulters and report coverage.
    """
    from chanjo.config import configure_logging

    configure_logging("DEBUG" if verbose else None)


@cli.command()
@click.option("--schedule", "schedule_name", default="kepi", help="Bundled schedule name")
def catalog(schedule_name: str):
    """
    List the vaccines in a bundled schedule.

    Example:

        chanjo catalog --schedule kepi
    """
    from knowledge.schedules import load_catalog

    try:
        vaccines = load_catalog(schedule_name)
    except ValueError as e:
        raise click.ClickException(str(e))

    table = Table(title=f"{schedule_name.upper()} schedule")
    table.add_column("Code", style="bold")
    table.add_column("Vaccine")
    table.add_column("Dose 1")
    table.add_column("Boosters")
    table.add_column("Route")

    for vaccine in vaccines:
        boosters = ", ".join(
            f"#{b.sequence} @ {b.recommended_age}" for b in vaccine.booster_doses
        )
        table.add_row(
            vaccine.code,
            vaccine.name,
            str(vaccine.recommended_age),
            boosters or "-",
            vaccine.route.value if vaccine.route else "-",
        )

    console.print(table)


@cli.command()
@click.option("--dob", type=click.DateTime(formats=["%Y-%m-%d"]), required=True,
              help="Child's date of birth (YYYY-MM-DD)")
@click.option("--history", type=click.Path(exists=True), help="JSON file of vaccination records")
@click.option("--schedule", "schedule_name", default="kepi", help="Bundled schedule name")
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), help="Evaluate as of this date")
@click.option("--completed-only", is_flag=True,
              help="Count only completed records as doses given")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
def schedule(
    dob: datetime,
    history: Optional[str],
    schedule_name: str,
    today: Optional[datetime],
    completed_only: bool,
    as_json: bool,
):
    """
    Show the next due dose of every vaccine for one child.

    Examples:

        chanjo schedule --dob 2024-03-01

        chanjo schedule --dob 2024-03-01 --history records.json --today 2024-06-01
    """
    from knowledge.schedules import load_catalog
    from chanjo.engines.schedule import compute_status, compute_upcoming_doses, derive_child_status

    settings = _settings(completed_only)
    try:
        records = _load_history(history)
        due = compute_upcoming_doses(
            dob.date(),
            load_catalog(schedule_name),
            records,
            today=_as_date(today),
            count_completed_only=settings.count_completed_only,
        )
    except (ChanjoError, ValueError) as e:
        raise click.ClickException(str(e))

    status = compute_status(due, settings.defaulter_grace_days)
    label = derive_child_status(records, due, settings.defaulter_grace_days)

    if as_json:
        click.echo(json.dumps({
            "status": status.value,
            "vaccination_status": label.value,
            "due_doses": [d.model_dump(mode="json") for d in due],
        }, indent=2))
        return

    console.print(Panel(
        f"DOB: {dob.date().isoformat()}\n"
        f"Doses on record: {len(records)}\n"
        f"Status: {_color(status.value)}  (label: {_color(label.value)})",
        title="Child",
        border_style="blue",
    ))

    if not due:
        console.print("[green]No doses outstanding[/green]")
        return

    table = Table(title="Due Doses")
    table.add_column("Vaccine")
    table.add_column("Due")
    table.add_column("Days", justify="right")
    table.add_column("Status")
    for dose in due:
        table.add_row(
            dose.display_name,
            dose.due_date.isoformat(),
            str(dose.days_left),
            _color(dose.status.value),
        )
    console.print(table)


@cli.command()
@click.argument("dataset", type=click.Path(exists=True))
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), help="Evaluate as of this date")
@click.option("--completed-only", is_flag=True,
              help="Count only completed records as doses given")
def defaulters(dataset: str, today: Optional[datetime], completed_only: bool):
    """
    List children more than two weeks behind on any dose.

    Example:

        chanjo defaulters ./dataset.json
    """
    from chanjo.db import InMemoryStore
    from chanjo.services import ImmunizationService

    settings = _settings(completed_only)
    try:
        store = InMemoryStore.from_json(dataset)
        service = ImmunizationService(store, store, children=store, settings=settings)
        children = store.list_children()
        schedules = service.schedules_for_children(children, today=_as_date(today))
    except (ChanjoError, ValueError) as e:
        raise click.ClickException(str(e))

    behind = [(c, s) for c, s in zip(children, schedules) if s.status.value == "behind"]
    console.print(f"[bold]Children:[/bold] {len(children)}   "
                  f"[bold]Defaulters:[/bold] [red]{len(behind)}[/red]")

    if not behind:
        console.print("[green]No defaulters[/green]")
        return

    tree = Tree("[bold]Defaulters[/bold]")
    for child, sched in behind:
        branch = tree.add(f"[red]{child.name}[/red] (DOB {child.date_of_birth.isoformat()})")
        for dose in sched.due_doses:
            if dose.is_overdue:
                branch.add(f"{dose.display_name}: {-dose.days_left} days overdue")
    console.print(tree)


@cli.command()
@click.argument("dataset", type=click.Path(exists=True))
@click.option("--period", required=True, help="Reporting month (YYYY-MM)")
@click.option("--target", type=int, help="Coverage target percentage")
@click.option("--hospital", "hospital_id", help="Hospital id to stamp on the report")
def coverage(dataset: str, period: str, target: Optional[int], hospital_id: Optional[str]):
    """
    Monthly coverage report and gap analysis for a dataset.

    Example:

        chanjo coverage ./dataset.json --period 2024-05
    """
    from chanjo.db import InMemoryStore
    from chanjo.models import CoveragePeriod, Role, User
    from chanjo.services import CoverageService

    try:
        store = InMemoryStore.from_json(dataset)
        service = CoverageService(store, store, store)
        user = User(id=CLI_USER_ID, name="Chanjo CLI", role=Role.ADMIN)
        report = service.generate_report(
            CoveragePeriod.parse(period), user, hospital_id=hospital_id, target=target,
        )
        gaps = service.gap_analysis(report, target)
    except (ChanjoError, ValueError) as e:
        raise click.ClickException(str(e))

    table = Table(title=f"Coverage {report.period} (Q{report.quarter})")
    table.add_column("Vaccine")
    table.add_column("Given", justify="right")
    table.add_column("Eligible", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Trend")
    table.add_column("Status")
    for entry in report.coverage_data:
        table.add_row(
            entry.vaccine_code,
            str(entry.vaccinations_given),
            str(entry.eligible_children),
            f"{entry.actual}%",
            entry.trend.value,
            _color(entry.status.value),
        )
    console.print(table)
    console.print(f"[bold]Total coverage:[/bold] {report.total_coverage}%")

    if gaps.gaps:
        tree = Tree(f"[bold]Gaps below {gaps.target}%[/bold] ({gaps.critical_gaps} critical)")
        for gap in gaps.gaps:
            branch = tree.add(f"{gap.vaccine_code}: {gap.gap} points ({gap.priority.value})")
            for rec in gap.recommendations:
                branch.add(rec)
        console.print(tree)
        impact = gaps.estimated_impact
        console.print(
            f"[dim]Closing all gaps: ~{impact.additional_vaccinations} more vaccinations, "
            f"{impact.estimated_time_to_close}[/dim]"
        )


@cli.command()
@click.option("--schedule", "schedule_name", default="kepi", help="Bundled schedule name")
def seed(schedule_name: str):
    """
    Upsert a bundled schedule into the Supabase vaccines table.

    Requires SUPABASE_URL, SUPABASE_ANON_KEY and SUPABASE_SERVICE_KEY.
    """
    from knowledge.schedules import load_catalog
    from chanjo.db import VaccineRepository, is_configured

    if not is_configured():
        raise click.ClickException("Database not configured (set SUPABASE_URL and SUPABASE_ANON_KEY)")

    try:
        vaccines = load_catalog(schedule_name, active_only=False)
        rows = VaccineRepository(use_admin=True).upsert_many(vaccines)
    except (ChanjoError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓ Seeded {len(rows)} vaccines from {schedule_name}[/green]")


@cli.command()
def info():
    """
    Show information about Chanjo.
    """
    from knowledge.schedules import available_schedules

    console.print(Panel(
        "[bold]Chanjo[/bold]\n\n"
        "Childhood immunization tracking for:\n"
        "• Mothers following their children's schedules\n"
        "• Community health workers chasing defaulters\n"
        "• Facilities and administrators reporting coverage\n\n"
        "[dim]Schedules: " + ", ".join(available_schedules()) + "[/dim]",
        title="About",
        border_style="blue",
    ))

    console.print("\n[bold]Quick Start:[/bold]")
    console.print("  chanjo catalog")
    console.print("  chanjo schedule --dob 2024-03-01")
    console.print("  chanjo defaulters ./dataset.json")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
