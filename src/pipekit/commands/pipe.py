"""
Pipe command for pipekit.

Downloads, lists and runs pipes in the workspace.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from pathlib import Path

import typer

from pipekit.config import get_github_token, get_runtime_path, get_workspace_root
from pipekit.event_client import EventClient
from pipekit.pipes import (
    NonZeroExitError,
    PipeError,
    download_pipe,
    find_deno,
    list_pipes,
    run_pipe,
)
from pipekit.pipes.runtime import DENO_INSTALL_URL

app = typer.Typer(help="Download and run Deno pipes")


def _settings(ctx: typer.Context) -> dict:
    obj = ctx.obj or {}
    return obj.get("config", {})


def _get_event_client(root: Path) -> EventClient:
    """Get the event client for run history."""
    return EventClient.for_workspace(root)


@app.command("download")
def download_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="GitHub folder URL or local directory"),
):
    """Download a pipe into the workspace.

    Examples:
        pipekit pipe download https://github.com/owner/repo/tree/main/pipes/hello
        pipekit pipe download ./my-pipe
    """
    config = _settings(ctx)
    root = get_workspace_root(config)

    try:
        dest_dir = download_pipe(source, root, token=get_github_token(config))
    except PipeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Pipe downloaded to: {dest_dir}")


@app.command("run")
def run_command(
    ctx: typer.Context,
    pipe: str = typer.Argument(..., help="Pipe id (directory name under <workspace>/pipes)"),
):
    """Run an installed pipe.

    The exit code mirrors the pipe's exit code.

    Examples:
        pipekit pipe run hello
    """
    config = _settings(ctx)
    root = get_workspace_root(config)

    try:
        run_pipe(
            pipe,
            root,
            runtime=get_runtime_path(config),
            events=_get_event_client(root),
        )
    except NonZeroExitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(e.returncode if e.returncode > 0 else 1)
    except PipeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("list")
def list_command(ctx: typer.Context):
    """List pipes installed in the workspace."""
    root = get_workspace_root(_settings(ctx))
    pipes = list_pipes(root)

    if not pipes:
        typer.echo(f"No pipes found in {root / 'pipes'}")
        return

    typer.echo("Installed pipes:\n")
    for pipe in pipes:
        entry = pipe["entry_file"] or "(no pipe.js/pipe.ts)"
        typer.echo(f"  {pipe['name']}")
        typer.echo(f"    Entry: {entry}")


@app.command("runtime")
def runtime_command(ctx: typer.Context):
    """Show which deno executable will be used."""
    runtime = get_runtime_path(_settings(ctx))
    if runtime is None:
        runtime = find_deno()

    if runtime is None:
        typer.echo(f"Error: deno not found. please install deno: {DENO_INSTALL_URL}", err=True)
        raise typer.Exit(1)

    typer.echo(str(runtime))


@app.command("history")
def history_command(
    ctx: typer.Context,
    pipe: str = typer.Argument(..., help="Pipe id"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of most recent runs to show"),
):
    """Show the most recent runs of a pipe."""
    root = get_workspace_root(_settings(ctx))
    runs = _get_event_client(root).history(pipe)

    if not runs:
        typer.echo(f"No runs recorded for {pipe}")
        return

    for run in runs[-limit:]:
        exit_code = "-" if run["exit_code"] is None else run["exit_code"]
        line = f"{run['started']}  {run['status']:<10} exit={exit_code}"
        if run.get("error_message"):
            line += f"  {run['error_message']}"
        typer.echo(line)
