"""
Main CLI entry point for jobhealth.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from jobhealth import __version__
from jobhealth.commands import emit, run
from jobhealth.completion import COMPLETION_STATUS_LABELS
from jobhealth.config import STDOUT_MARKER, get_log_file, load_config
from jobhealth.formatting import format_nanoseconds

app = typer.Typer(
    name="jobhealth",
    help="Write job health events, timings and completions as log lines",
    no_args_is_help=True,
)

app.add_typer(emit.app, name="emit")
app.command("run", context_settings={"ignore_unknown_options": True})(run.run_command)

console = Console()


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/jobhealth.yml or ./jobhealth.yml)",
    ),
    log_file: Optional[str] = typer.Option(
        None,
        "--log-file",
        "-o",
        help="Append records to this file ('-' for stdout). Overrides config.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
):
    """
    jobhealth: structured job instrumentation as plain text lines.
    """
    state = {"config": {}, "log_file": None, "verbose": verbose}

    setup_logging(verbose)

    # Every command works without a config file
    commands_without_config = ["version", "duration", "statuses"]
    if ctx.invoked_subcommand and ctx.invoked_subcommand not in commands_without_config:
        try:
            state["config"] = load_config(config_path)
            logging.debug(f"Loaded config from: {config_path or 'default location'}")
        except FileNotFoundError as e:
            if config_path:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(1)
            logging.debug("No config file found, using defaults")
        except yaml.YAMLError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    if log_file is not None:
        state["config"]["log_file"] = log_file
    state["log_file"] = get_log_file(state["config"])
    logging.debug(f"Writing records to: {state['log_file'] or STDOUT_MARKER}")

    ctx.obj = state


@app.command()
def version():
    """Show version information."""
    typer.echo(f"jobhealth version {__version__}")


@app.command()
def duration(
    nanoseconds: int = typer.Argument(..., help="Elapsed time in nanoseconds"),
):
    """Show how a duration is rendered in time: fields.

    Examples:
        jobhealth duration 1204000
        jobhealth duration 34567890
    """
    try:
        typer.echo(format_nanoseconds(nanoseconds))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def statuses():
    """List completion statuses and their labels."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Status")
    table.add_column("Label")
    for status, label in COMPLETION_STATUS_LABELS.items():
        table.add_row(status.name, label)
    console.print(table)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
