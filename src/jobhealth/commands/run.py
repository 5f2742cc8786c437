"""
Run command for jobhealth.

Runs a shell command as a job and records its start, outcome and run time.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import shlex
import subprocess
from typing import List, Optional

import typer

from jobhealth.commands.common import command_kvs, open_destination
from jobhealth.completion import CompletionStatus
from jobhealth.sink import LogfileWriterSink
from jobhealth.stream import Stream

logger = logging.getLogger(__name__)


def run_command(
    ctx: typer.Context,
    job: str = typer.Argument(..., help="Job name to report under"),
    command: List[str] = typer.Argument(..., help="Command to run (after --)"),
    kv: Optional[List[str]] = typer.Option(
        None, "--kv", help="Metadata as key=value (repeatable)"
    ),
):
    """Run a command and record how it went.

    A single argument is passed to the shell as-is; several arguments are
    quoted and joined first. Exits with the command's return code.

    Examples:
        jobhealth run nightly_backup -- rsync -a ~/data /mnt/backup
        jobhealth -o ~/health.log run report "make report && make publish"
    """
    state = ctx.obj or {}
    try:
        kvs = command_kvs(state, kv)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    command_line = command[0] if len(command) == 1 else shlex.join(command)

    with open_destination(state.get("log_file")) as writer:
        stream = Stream([LogfileWriterSink(writer)])
        for key, value in kvs.items():
            stream.key_value(key, value)

        health_job = stream.job(job)
        health_job.event("started")
        # Keep the started line ahead of anything the command writes
        _flush(writer)

        logger.info(f"Executing: {command_line}")
        result = subprocess.run(command_line, shell=True)
        returncode = {"returncode": str(result.returncode)}

        if result.returncode == 0:
            health_job.complete(CompletionStatus.SUCCESS, returncode)
        else:
            error = subprocess.CalledProcessError(result.returncode, command_line)
            logger.error(f"Command failed with exit code {result.returncode}")
            health_job.event_err("command", error, returncode)
            health_job.complete(CompletionStatus.ERROR, returncode)
        _flush(writer)

    if result.returncode != 0:
        raise typer.Exit(result.returncode)


def _flush(writer) -> None:
    flush = getattr(writer, "flush", None)
    if flush is not None:
        flush()
