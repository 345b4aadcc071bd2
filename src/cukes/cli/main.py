"""Command line entry point: ``cukes run``, ``cukes list``, ``cukes init``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from cukes import __version__
from cukes.cli import run

console = Console()

app = typer.Typer(
    name="cukes",
    help="Run behavior-driven features against registered step definitions",
    add_completion=True,
    no_args_is_help=True,
)

app.command("run")(run.run_features)
app.command("list")(run.list_features)
app.command("init")(run.init_config)


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich.

    Stays at WARNING unless verbose so that log lines do not break up the
    reporter's output.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"Cukes version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file, applied on top of the project's .cukes.yaml",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log step resolution and capture details",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Cukes - match steps to handlers, run them, report what happened."""
    setup_logging(verbose)
    ctx.obj = {"config_file": config_file, "verbose": verbose}


if __name__ == "__main__":
    app()
