# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config commands for pipekit.

Both commands act on the config selected by the global --config option
(or $PIPEKIT_CONFIG, or ~/.pipekit/config.yml).
"""

from typing import Any, Dict, List

import typer
import yaml

from pipekit.config import KNOWN_KEYS, get_runtime_path, get_workspace_root

app = typer.Typer(help="Inspect and validate configuration")


def _config(ctx: typer.Context) -> Dict[str, Any]:
    return (ctx.obj or {}).get("config", {})


def check_config(config: Dict[str, Any]) -> List[str]:
    """Return a list of problems with the loaded config (empty when fine)."""
    problems = []

    for key in config:
        if key not in KNOWN_KEYS:
            problems.append(f"unknown key '{key}' (expected one of: {', '.join(KNOWN_KEYS)})")

    runtime = get_runtime_path(config)
    if runtime is not None and not runtime.is_file():
        problems.append(f"runtime '{runtime}' is not a file")

    workspace = get_workspace_root(config)
    if workspace.exists() and not workspace.is_dir():
        problems.append(f"workspace '{workspace}' exists but is not a directory")

    token = config.get("github_token")
    if token is not None and not isinstance(token, str):
        problems.append("github_token must be a string")

    return problems


@app.command("show")
def show_command(ctx: typer.Context):
    """Print the resolved settings as YAML (the token is masked)."""
    config = _config(ctx)
    runtime = get_runtime_path(config)
    resolved = {
        "config_file": str((ctx.obj or {}).get("config_path", "")),
        "workspace": str(get_workspace_root(config)),
        "runtime": str(runtime) if runtime else None,
        "github_token": "***" if config.get("github_token") else None,
    }
    typer.echo(yaml.safe_dump(resolved, sort_keys=False).rstrip())


@app.command("validate")
def validate_command(ctx: typer.Context):
    """Check the config for unknown keys and unusable paths.

    Exits with status 1 when any problem is found.
    """
    problems = check_config(_config(ctx))

    if problems:
        for problem in problems:
            typer.echo(f"Error: {problem}", err=True)
        raise typer.Exit(1)

    typer.echo("Configuration is valid")
