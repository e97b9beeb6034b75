"""Command line interface for sulfur."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from . import __version__
from .config import load_config
from .errors import SulfurError
from .factory import build_driver, start

app = typer.Typer(help="Drive a browser through a local WebDriver binary")

_LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Repeat for more output: -v shows driver lifecycle, -vv wire traffic.",
        ),
    ] = 0,
) -> None:
    level = _LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the installed sulfur version."""

    typer.echo(f"sulfur {__version__}")


@app.command()
def check(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with configuration values."),
    ] = None,
    driver: Annotated[
        Optional[str],
        typer.Option("--driver", help="Driver backend or path to the driver binary."),
    ] = None,
) -> None:
    """Start the driver, report where it listens and shut it down again."""

    overrides: dict[str, Any] = {}
    if driver:
        overrides["driver"] = {"name": driver}
    config = load_config(config_path, env_file=env_file, **overrides)
    try:
        with build_driver(config) as process:
            typer.echo(f"{config.driver.name} healthy on port {process.port}")
    except SulfurError as exc:
        typer.echo(f"Driver check failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def visit(
    url: Annotated[str, typer.Argument(help="Address to open in the browser.")],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with configuration values."),
    ] = None,
    driver: Annotated[
        Optional[str],
        typer.Option("--driver", help="Driver backend or path to the driver binary."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    screenshot: Annotated[
        Optional[Path],
        typer.Option("--screenshot", help="Write a PNG screenshot of the page to this path."),
    ] = None,
) -> None:
    """Open ``url`` in a fresh session and print the resulting title and address."""

    overrides: dict[str, Any] = {}
    if driver:
        overrides["driver"] = {"name": driver}
    if headless is not None:
        overrides["browser"] = {"headless": headless}
    config = load_config(config_path, env_file=env_file, **overrides)
    try:
        with start(config) as session:
            session.visit(url)
            typer.echo(f"Title: {session.title()}")
            typer.echo(f"URL: {session.current_url()}")
            if screenshot is not None:
                screenshot.write_bytes(session.screenshot())
                typer.echo(f"Screenshot written to {screenshot}")
    except SulfurError as exc:
        typer.echo(f"Visit failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
