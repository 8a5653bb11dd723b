# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for pipekit.

Parses global options, sets up logging and hands off to the sub-commands.
"""

import logging
from typing import Optional

import typer

from pipekit import __version__
from pipekit.config import ConfigError, get_config_path, load_config


app = typer.Typer(
    name="pipekit",
    help="Fetch and run sandboxed Deno pipes",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Fetch and run sandboxed Deno pipes."""
    _setup_logging(verbose)

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    ctx.obj = {"config": config, "config_path": get_config_path(config_path), "verbose": verbose}


@app.command()
def version():
    """Show version information."""
    typer.echo(f"pipekit version {__version__}")


# Static commands (config, pipe)
from pipekit.commands import config, pipe

app.add_typer(config.app, name="config")
app.add_typer(pipe.app, name="pipe")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
