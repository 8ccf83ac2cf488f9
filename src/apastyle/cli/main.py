"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging

import typer

from apastyle import __version__
from apastyle.cli.commands import barplot_cmd, table_cmd

app = typer.Typer(
    name="apastyle",
    help="APA-style tables and factorial bar plots.",
    add_completion=False,
)

app.command("barplot")(barplot_cmd)
app.command("table")(table_cmd)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"apastyle {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """apastyle: APA-style tables and bar plots for manuscripts."""
    pass


if __name__ == "__main__":
    app()
