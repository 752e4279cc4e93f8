"""Command-line front end for EcoShield."""

from __future__ import annotations

import base64
import dataclasses
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import click

from config.settings import get_settings
from ecoshield import __version__
from ecoshield.analyzer import (
    IMAGE_FALLBACK_ERROR,
    TEXT_FALLBACK_ERROR,
    build_analyzer,
    build_session_log,
    error_text,
)
from ecoshield.core.validation import IMAGE_PREFIX


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _load_image(source: str) -> str:
    """Accept a data URI as-is, or read an image file into one."""
    if source.startswith(IMAGE_PREFIX):
        return source
    path = Path(source)
    if not path.is_file():
        raise click.BadParameter(f"{source} is neither a file nor an image data URI", param_hint="SOURCE")
    mime_type, _ = mimetypes.guess_type(path.name)
    mime_type = mime_type or "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def _build_analyzer():
    try:
        return build_analyzer(get_settings())
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc


def _emit_analysis(run, value: str, fallback: str) -> None:
    try:
        result = run(value)
    except Exception as exc:
        logging.getLogger("ecoshield").debug("Analysis failed", exc_info=True)
        click.echo(error_text(exc, fallback), err=True)
        sys.exit(1)
    click.echo(result)


@click.group()
@click.version_option(version=__version__, prog_name="ecoshield")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """EcoShield: environmental-impact analysis for products.

    Describe a product or point at a photo of it, and get a breakdown of its
    materials, impact and recycling options. Past exchanges are kept in a
    small local history (the last 10 messages).
    """
    _configure_logging(verbose)


@cli.command()
@click.argument("description")
def analyze(description: str):
    """Analyze a text description of a product.

    Example:
        ecoshield analyze "500ml PET water bottle with polypropylene cap"
    """
    _emit_analysis(_build_analyzer().run_prompt, description, TEXT_FALLBACK_ERROR)


@cli.command("analyze-image")
@click.argument("source")
def analyze_image(source: str):
    """Analyze a product photo (image file path or data URI)."""
    image_data = _load_image(source)
    _emit_analysis(_build_analyzer().run_image, image_data, IMAGE_FALLBACK_ERROR)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw session record")
def history(as_json: bool):
    """Show the recent analysis history."""
    session_log = build_session_log(get_settings())
    if as_json:
        click.echo(session_log.session().model_dump_json(by_alias=True, exclude_none=True, indent=2))
        return

    messages = session_log.read()
    if not messages:
        click.echo("No analyses yet.")
        return
    for msg in messages:
        label = click.style(msg.role.upper(), bold=True)
        content = msg.content
        if msg.image_data:
            content += " [image]"
        click.echo(f"{label}: {content}")
        click.echo()


@cli.command()
def clear():
    """Forget the analysis history."""
    build_session_log(get_settings()).clear()
    click.echo("History cleared.")


@cli.command()
@click.option("--lat", type=float, required=True, help="Latitude")
@click.option("--lng", type=float, required=True, help="Longitude")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def dealers(lat: float, lng: float, as_json: bool):
    """Find scrap dealers near a location via the search proxy."""
    from ecoshield.tools.dealers import DealerFinder

    results = DealerFinder.from_settings(get_settings()).find_nearby(lat, lng)
    if as_json:
        click.echo(json.dumps([r.model_dump() for r in results], indent=2))
        return
    if not results:
        click.echo("No scrap dealers found.")
        return
    for r in results:
        click.echo(click.style(r.title, bold=True))
        click.echo(f"  {r.link}")
        if r.snippet:
            click.echo(f"  {r.snippet}")


@cli.command()
@click.option("--port", type=int, default=None, help="Port to listen on (default: $PORT or 5000)")
def serve(port: Optional[int]):
    """Run the search proxy."""
    import uvicorn

    from app.main import create_app

    settings = get_settings()
    if port is not None:
        settings = dataclasses.replace(settings, port=port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    cli()
