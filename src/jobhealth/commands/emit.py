"""
Emit command for jobhealth.

Writes a single event, error, timing or completion record.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from typing import Callable, List, Optional

import typer

from jobhealth.commands.common import command_kvs, open_destination
from jobhealth.completion import UnknownCompletionStatusError, parse_status
from jobhealth.sink import LogfileWriterSink

app = typer.Typer(help="Write a single health record")

KV_OPTION_HELP = "Metadata as key=value (repeatable)"


def _emit(ctx: typer.Context, kv: Optional[List[str]], write: Callable) -> None:
    """Resolve kvs and destination, then call write(sink, kvs)."""
    state = ctx.obj or {}
    try:
        kvs = command_kvs(state, kv)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    try:
        with open_destination(state.get("log_file")) as writer:
            write(LogfileWriterSink(writer), kvs)
    except (ValueError, UnknownCompletionStatusError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"Error: could not write record: {e}", err=True)
        raise typer.Exit(1)


@app.command("event")
def event_command(
    ctx: typer.Context,
    job: str = typer.Argument(..., help="Job name"),
    event: str = typer.Argument(..., help="Event name"),
    kv: Optional[List[str]] = typer.Option(None, "--kv", help=KV_OPTION_HELP),
):
    """Record that something happened in a job.

    Examples:
        jobhealth emit event import_contacts fetched --kv count=42
    """
    _emit(ctx, kv, lambda sink, kvs: sink.emit_event(job, event, kvs))


@app.command("error")
def error_command(
    ctx: typer.Context,
    job: str = typer.Argument(..., help="Job name"),
    event: str = typer.Argument(..., help="Event name"),
    message: str = typer.Argument(..., help="Error message"),
    kv: Optional[List[str]] = typer.Option(None, "--kv", help=KV_OPTION_HELP),
):
    """Record a failed event with its error message."""
    _emit(
        ctx, kv, lambda sink, kvs: sink.emit_event_err(job, event, Exception(message), kvs)
    )


@app.command("timing")
def timing_command(
    ctx: typer.Context,
    job: str = typer.Argument(..., help="Job name"),
    event: str = typer.Argument(..., help="Event name"),
    nanoseconds: int = typer.Argument(..., help="Elapsed time in nanoseconds"),
    kv: Optional[List[str]] = typer.Option(None, "--kv", help=KV_OPTION_HELP),
):
    """Record how long an event took."""
    _emit(ctx, kv, lambda sink, kvs: sink.emit_timing(job, event, nanoseconds, kvs))


@app.command("complete")
def complete_command(
    ctx: typer.Context,
    job: str = typer.Argument(..., help="Job name"),
    status: str = typer.Argument(..., help="Completion status label, e.g. success"),
    nanoseconds: int = typer.Argument(..., help="Job run time in nanoseconds"),
    kv: Optional[List[str]] = typer.Option(None, "--kv", help=KV_OPTION_HELP),
):
    """Record how a job run ended.

    Examples:
        jobhealth emit complete import_contacts success 1204000
        jobhealth emit complete import_contacts validation_error 34567890
    """
    try:
        completion = parse_status(status)
    except UnknownCompletionStatusError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _emit(
        ctx,
        kv,
        lambda sink, kvs: sink.emit_job_completion(job, completion, nanoseconds, kvs),
    )
