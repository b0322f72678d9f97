"""Schedule CLI commands.

This module provides CLI commands for previewing, inspecting and editing
project schedules, for showing project progress and for managing the
stage templates new schedules are built from.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from studioplan.scheduling.engine import generate_schedule
from studioplan.scheduling.models import Stage, StageTemplate
from studioplan.scheduling.progress import (
    completion_percentage,
    days_remaining,
    project_health,
    project_progress,
    stage_status,
)
from studioplan.scheduling.workdays import (
    ScheduleInputError,
    business_days_between,
    format_calendar_date,
)
from studioplan.studio.models import StudioNotFoundError

app = typer.Typer(help="Schedule commands")
console = Console()

_STATUS_COLORS = {
    "completed": "blue",
    "late": "red",
    "upcoming": "yellow",
    "on_track": "green",
}


def _stages_payload(stages: Sequence[Stage]) -> list[dict[str, Any]]:
    return [stage.model_dump(mode="json") for stage in stages]


def _print_stages(
    stages: Sequence[Stage],
    title: str,
    today: date,
    window_days: int,
) -> None:
    """Render stages as a Rich table."""
    if not stages:
        console.print("[yellow]No stages scheduled (missing start date)[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Stage", style="bold")
    table.add_column("Days", justify="right")
    table.add_column("Start", no_wrap=True)
    table.add_column("Deadline", no_wrap=True)
    table.add_column("Completed", no_wrap=True)
    table.add_column("Status")

    for stage in stages:
        status = stage_status(stage, today, window_days).value
        color = _STATUS_COLORS.get(status, "white")
        table.add_row(
            str(stage.id),
            stage.name,
            str(stage.duration_work_days),
            format_calendar_date(stage.start_date) or "-",
            format_calendar_date(stage.deadline) or "-",
            format_calendar_date(stage.completion_date) or "-",
            f"[{color}]{status}[/{color}]",
        )

    console.print(table)


def _emit(stages: Sequence[Stage], title: str, format: str) -> None:
    from studioplan.main import get_app_context

    if format == "json":
        typer.echo(json.dumps(_stages_payload(stages), indent=2, ensure_ascii=False))
        return

    ctx = get_app_context()
    _print_stages(stages, title, date.today(), ctx.config.schedule.upcoming_window_days)


@app.command()
def preview(
    start: Annotated[str, typer.Argument(help="Project start date (YYYY-MM-DD)")],
    completed: Annotated[
        int,
        typer.Option(
            "--completed",
            "-n",
            min=0,
            help="Mark the first N stages as completed on their deadlines",
        ),
    ] = 0,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Preview the schedule the stage templates produce for a start date.

    Args:
        start: Project start date
        completed: Number of leading stages to mark completed
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        stages = generate_schedule(ctx.service.state.stage_templates, start, completed)
    except ScheduleInputError as e:
        console.print(f"[red]Invalid start date:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(stages, f"Schedule preview from {start}", format)


@app.command()
def show(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show the schedule of a contract.

    Args:
        contract_id: Contract whose schedule to show
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.get_schedule(contract_id)
    except StudioNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(schedule.stages, f"{schedule.client_name} - {schedule.project_name}", format)


@app.command("set-start")
def set_start(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    start_date: Annotated[
        str, typer.Argument(help="New project start date (YYYY-MM-DD, empty to clear)")
    ],
) -> None:
    """Move the project start date and recalculate every stage.

    Args:
        contract_id: Contract whose schedule to edit
        start_date: New start date
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.set_project_start_date(contract_id, start_date)
    except (StudioNotFoundError, ValueError) as e:
        console.print(f"[red]Error updating start date:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(schedule.stages, "Recalculated schedule", "table")


@app.command("set-duration")
def set_duration(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    stage_id: Annotated[int, typer.Argument(help="Stage ID")],
    days: Annotated[int, typer.Argument(help="Duration in working days")],
) -> None:
    """Change the duration of a stage and recalculate the chain.

    Args:
        contract_id: Contract whose schedule to edit
        stage_id: Stage to change
        days: New duration in working days
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.set_stage_duration(contract_id, stage_id, days)
    except (StudioNotFoundError, ValueError) as e:
        console.print(f"[red]Error updating duration:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(schedule.stages, "Recalculated schedule", "table")


@app.command()
def complete(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    stage_id: Annotated[int, typer.Argument(help="Stage ID")],
    completion_date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Completion date (defaults to today)"),
    ] = None,
    undo: Annotated[
        bool,
        typer.Option("--undo", help="Clear the completion date instead"),
    ] = False,
) -> None:
    """Mark a stage as completed (or not completed) and recalculate.

    Args:
        contract_id: Contract whose schedule to edit
        stage_id: Stage to mark
        completion_date: Completion date, today when omitted
        undo: Clear the completion date
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.set_stage_completion(
            contract_id,
            stage_id,
            completed=not undo,
            completion_date=completion_date,
        )
    except (StudioNotFoundError, ValueError) as e:
        console.print(f"[red]Error updating completion:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(schedule.stages, "Recalculated schedule", "table")


@app.command()
def reset(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
) -> None:
    """Rebuild a schedule from the current stage templates.

    Args:
        contract_id: Contract whose schedule to rebuild
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.reset_schedule(contract_id)
    except StudioNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    _emit(schedule.stages, "Rebuilt schedule", "table")


@app.command()
def progress(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show phase progress and health of a project.

    Args:
        contract_id: Contract whose project to summarise
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        schedule = ctx.service.get_schedule(contract_id)
    except StudioNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    today = date.today()
    mapping = ctx.service.state.phase_mapping
    phases = project_progress(schedule, mapping, today)
    health = project_health(schedule, today)
    percent = completion_percentage(schedule)
    remaining = days_remaining(schedule, mapping, today)
    delivery = schedule.stages[-1] if schedule.stages else None
    to_delivery = (
        business_days_between(today, delivery.deadline)
        if delivery is not None and not delivery.is_completed and delivery.deadline is not None
        else None
    )

    if format == "json":
        output = {
            "contract_id": contract_id,
            "health": health.value,
            "completion_percentage": percent,
            "days_remaining": remaining,
            "work_days_to_delivery": to_delivery,
            "phases": [phase.model_dump(mode="json") for phase in phases],
        }
        typer.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    remaining_text = "-" if remaining is None else f"{remaining} days"
    delivery_text = "-" if to_delivery is None else f"{to_delivery} work days"
    console.print(
        Panel(
            f"[bold]Client:[/bold] {schedule.client_name}\n"
            f"[bold]Project:[/bold] {schedule.project_name}\n"
            f"[bold]Health:[/bold] {health.value}\n"
            f"[bold]Completed:[/bold] {percent}%\n"
            f"[bold]Current stage due in:[/bold] {remaining_text}\n"
            f"[bold]Delivery in:[/bold] {delivery_text}",
            title=f"Contract {contract_id}",
            border_style="cyan",
        )
    )

    table = Table(title="Phases")
    table.add_column("Phase", style="bold")
    table.add_column("Status", style="magenta")
    table.add_column("Progress", justify="right")
    table.add_column("Start", no_wrap=True)
    table.add_column("End", no_wrap=True)
    for phase in phases:
        table.add_row(
            phase.name,
            phase.status.value,
            f"{phase.progress:.0f}%",
            format_calendar_date(phase.start_date) or "-",
            format_calendar_date(phase.end_date) or "-",
        )
    console.print(table)


_TEMPLATES_ADAPTER = TypeAdapter(list[StageTemplate])


@app.command()
def templates(
    load: Annotated[
        Optional[Path],
        typer.Option(
            "--load",
            "-l",
            help="Replace the templates with a JSON list read from this file",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show, or replace, the stage templates used for new schedules.

    Existing schedules pick up replaced templates through ``schedule reset``.

    Args:
        load: JSON file holding the new template list
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    if load is not None:
        try:
            new_templates = _TEMPLATES_ADAPTER.validate_json(load.read_bytes())
            ctx.service.set_stage_templates(new_templates)
        except ValueError as e:
            console.print(f"[red]Error loading templates:[/red] {e}")
            raise typer.Exit(code=1)

    current = ctx.service.state.stage_templates

    if format == "json":
        output = [t.model_dump(mode="json") for t in current]
        typer.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    table = Table(title="Stage Templates")
    table.add_column("Order", style="cyan", justify="right")
    table.add_column("ID", no_wrap=True)
    table.add_column("Stage", style="bold")
    table.add_column("Days", justify="right")
    for t in current:
        table.add_row(str(t.sequence), str(t.id), t.name, str(t.duration_work_days))
    console.print(table)
