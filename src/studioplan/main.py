"""Main CLI entry point for Studioplan.

This module provides the main Typer application with sub-commands for
contract management, schedule editing and the HTTP server.

Usage:
    studioplan schedule preview 2024-01-06
    studioplan contract create "Ana Souza" "Apartamento Jardins" --date 2024-01-08
    studioplan schedule complete 1 3 --date 2024-02-01
    studioplan serve --port 8000
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from studioplan.cli import contract as contract_cli
from studioplan.cli import schedule as schedule_cli
from studioplan.config import StudioplanConfig, load_config
from studioplan.logging import setup_logging
from studioplan.studio.service import StudioService
from studioplan.studio.store import StudioStore, StudioStoreError

app = typer.Typer(
    name="studioplan",
    help="Studioplan: contracts, schedules and payments for design studios",
    no_args_is_help=True,
)

app.add_typer(contract_cli.app, name="contract", help="Manage contracts and payments")
app.add_typer(schedule_cli.app, name="schedule", help="Inspect and edit project schedules")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Studioplan configuration
        store: JSON document store for the studio state
        service: Studio service operating on the stored state
    """

    def __init__(self, config: StudioplanConfig):
        """Initialize application context.

        Args:
            config: Studioplan configuration

        Raises:
            StudioStoreError: If the stored document cannot be read.
        """
        self.config = config
        self.store = StudioStore(config.storage.data_file)
        self.service = StudioService(store=self.store)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: StudioplanConfig) -> AppContext:
    """Initialize the global application context.

    Args:
        config: Studioplan configuration

    Returns:
        Initialized AppContext instance
    """
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (defaults to config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (defaults to config)"),
    ] = None,
) -> None:
    """Start the Studioplan HTTP API.

    Args:
        host: Host address to bind to
        port: Port number to bind to
    """
    import uvicorn

    from studioplan.web.app import create_app

    ctx = get_app_context()
    bind_host = host or ctx.config.web.host
    bind_port = port or ctx.config.web.port

    console.print("[bold cyan]Starting Studioplan API[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print(f"[dim]Data:[/dim] {ctx.config.storage.data_file}")
    console.print()

    app_instance = create_app(ctx.config, service=ctx.service)

    uvicorn.run(
        app_instance,
        host=bind_host,
        port=bind_port,
        log_level="info",
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure global options and initialize application context.

    Args:
        config_path: Optional path to TOML configuration file
        verbose: Enable debug-level logging
    """
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1)

    # Command output goes to stdout, so CLI logs go to stderr and stay quiet
    # unless asked for
    log_config = config.logging.model_copy(
        update={"level": "DEBUG" if verbose else "WARNING", "format": "console"}
    )
    setup_logging(log_config, stream=sys.stderr)

    try:
        initialize_context(config)
    except StudioStoreError as e:
        console.print(f"[red]Error loading studio data:[/red] {e}")
        raise typer.Exit(code=1)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
