"""Quarry CLI entry point."""

from __future__ import annotations

import importlib.metadata
import sys
from typing import Annotated

import typer
from loguru import logger

from quarry.cli.ask import ask_cmd
from quarry.cli.search import search_cmd
from quarry.cli.status import status_cmd


def _package_version() -> str:
    try:
        return importlib.metadata.version("quarry")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"quarry {_package_version()}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route loguru to stderr: DEBUG with --verbose, otherwise WARNING and up."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


app = typer.Typer(
    name="quarry",
    help=(
        "Quarry: retrieval over a document knowledge base.\n\n"
        "  quarry status   Build the knowledge base and report its health.\n"
        "  quarry search   Rank passages for a query.\n"
        "  quarry ask      Answer a question from retrieved passages."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr."),
    ] = False,
) -> None:
    """Quarry: retrieval over a document knowledge base."""
    configure_logging(verbose)


app.command("status")(status_cmd)
app.command("search")(search_cmd)
app.command("ask")(ask_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Quarry version."""
    typer.echo(f"quarry {_package_version()}")


if __name__ == "__main__":
    app()
