"""Contract management CLI commands.

This module provides CLI commands for creating, listing and deleting
contracts, and for tracking their payment installments.
"""

from __future__ import annotations

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from studioplan.studio.models import ContractStatus, StudioNotFoundError

app = typer.Typer(help="Contract management commands")
console = Console()


@app.command()
def create(
    client_name: Annotated[str, typer.Argument(help="Client name")],
    project_name: Annotated[str, typer.Argument(help="Project name")],
    signing_date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Signing date (YYYY-MM-DD); anchors the schedule"),
    ] = None,
    total_value: Annotated[
        float,
        typer.Option("--value", help="Contracted amount"),
    ] = 0.0,
) -> None:
    """Create a contract and generate its project schedule.

    Args:
        client_name: Client display name
        project_name: Project display name
        signing_date: Signing date
        total_value: Contracted amount
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        contract = ctx.service.create_contract(
            client_name=client_name,
            project_name=project_name,
            signing_date=signing_date,
            total_value=total_value,
        )
    except ValueError as e:
        console.print(f"[red]Error creating contract:[/red] {e}")
        raise typer.Exit(code=1)

    schedule = ctx.service.get_schedule(contract.id)
    last_deadline = schedule.stages[-1].deadline if schedule.stages else None

    panel = Panel(
        f"[green]Contract created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {contract.id}\n"
        f"[bold]Client:[/bold] {contract.client_name}\n"
        f"[bold]Project:[/bold] {contract.project_name}\n"
        f"[bold]Value:[/bold] {contract.total_value:.2f}\n"
        f"[bold]Signed:[/bold] {contract.signing_date or '-'}\n"
        f"[bold]Stages:[/bold] {len(schedule.stages)}\n"
        f"[bold]Delivery:[/bold] {last_deadline or '-'}",
        title="Contract Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_contracts(
    status: Annotated[
        Optional[str],
        typer.Option(
            "--status",
            "-s",
            help="Filter by status (active, completed, cancelled)",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List contracts.

    Args:
        status: Optional status filter
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    status_filter = None
    if status is not None:
        try:
            status_filter = ContractStatus(status)
        except ValueError:
            console.print(
                f"[red]Invalid status:[/red] {status}. "
                f"Valid values: {', '.join(s.value for s in ContractStatus)}"
            )
            raise typer.Exit(code=1)

    contracts = [
        c
        for c in ctx.service.state.contracts
        if status_filter is None or c.status is status_filter
    ]

    if format == "json":
        output = [c.model_dump(mode="json") for c in contracts]
        typer.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not contracts:
        console.print("[yellow]No contracts found[/yellow]")
        return

    table = Table(title="Contracts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Client", style="bold")
    table.add_column("Project")
    table.add_column("Value", justify="right")
    table.add_column("Status", style="magenta")
    table.add_column("Signed", style="dim", no_wrap=True)

    for c in contracts:
        status_color = {
            "active": "green",
            "completed": "blue",
            "cancelled": "dim",
        }.get(c.status.value, "white")

        table.add_row(
            str(c.id),
            c.client_name,
            c.project_name,
            f"{c.total_value:.2f}",
            f"[{status_color}]{c.status.value}[/{status_color}]",
            c.signing_date.isoformat() if c.signing_date else "-",
        )

    console.print(table)


@app.command()
def delete(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation"),
    ] = False,
) -> None:
    """Delete a contract with its schedule and installments.

    Args:
        contract_id: Contract to delete
        force: Skip the confirmation prompt
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    if not force:
        typer.confirm(f"Delete contract {contract_id}?", abort=True)

    try:
        ctx.service.delete_contract(contract_id)
    except StudioNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Contract {contract_id} deleted[/green]")


@app.command("add-installment")
def add_installment(
    contract_id: Annotated[int, typer.Argument(help="Contract ID")],
    label: Annotated[str, typer.Argument(help="Installment label, e.g. 'Entrada'")],
    due_date: Annotated[str, typer.Argument(help="Due date (YYYY-MM-DD)")],
    value: Annotated[float, typer.Argument(help="Amount due")],
) -> None:
    """Schedule a payment installment for a contract.

    Args:
        contract_id: Owning contract
        label: Display label
        due_date: Date the payment is due
        value: Amount due
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        installment = ctx.service.add_installment(contract_id, label, due_date, value)
    except (StudioNotFoundError, ValueError) as e:
        console.print(f"[red]Error adding installment:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Installment {installment.id} added[/green] "
        f"({installment.label}, due {installment.due_date.isoformat()})"
    )


@app.command()
def pay(
    installment_id: Annotated[int, typer.Argument(help="Installment ID")],
    payment_date: Annotated[str, typer.Argument(help="Payment date (YYYY-MM-DD)")],
) -> None:
    """Register the payment of an installment.

    Args:
        installment_id: Installment being paid
        payment_date: Date the payment was received
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()

    try:
        installment = ctx.service.register_payment(installment_id, payment_date)
    except (StudioNotFoundError, ValueError) as e:
        console.print(f"[red]Error registering payment:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Installment {installment.id}:[/green] {installment.status.value}")


@app.command()
def late(
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List pending installments past their due date.

    Args:
        format: Output format (table or json)
    """
    from studioplan.main import get_app_context

    ctx = get_app_context()
    late_items = ctx.service.late_installments()

    if format == "json":
        output = [item.model_dump(mode="json") for item in late_items]
        typer.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not late_items:
        console.print("[green]No late payments[/green]")
        return

    table = Table(title="Late Payments")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Contract", no_wrap=True)
    table.add_column("Installment", style="bold")
    table.add_column("Due", no_wrap=True)
    table.add_column("Value", justify="right")
    table.add_column("Days Late", style="red", justify="right")

    for item in late_items:
        i = item.installment
        table.add_row(
            str(i.id),
            str(i.contract_id),
            i.label,
            i.due_date.isoformat(),
            f"{i.value:.2f}",
            str(item.days_late),
        )

    console.print(table)
