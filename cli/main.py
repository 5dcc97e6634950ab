"""Linksnap CLI — ingest a URL from the terminal.

Usage:
    linksnap --help
    python cli/main.py --help

Commands:
    ingest    → fetch a URL and print its content record
    classify  → print the content type guessed from the URL alone
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from linksnap.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json

import typer

from linksnap.config import settings
from linksnap.observability import configure_logging
from linksnap.scraper.classifier import classify, requires_rendering
from linksnap.scraper.models import InvalidURLError
from linksnap.scraper.orchestrator import ingest_sync
from linksnap.scraper.urls import parse_url

app = typer.Typer(
    name="linksnap",
    help="Turn a URL into a normalized content record.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


# ---------------------------------------------------------------------------
# ingest
# ---------------------------------------------------------------------------
@app.command("ingest")
def ingest_cmd(
    url: str = typer.Argument(..., help="URL to ingest."),
    as_json: bool = typer.Option(False, "--json", help="Print the full record as JSON."),
) -> None:
    """Fetch a URL and print its content record."""
    try:
        record = ingest_sync(url)
    except InvalidURLError as exc:
        typer.echo(f"[ingest] {exc}", err=True)
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
        return

    meta = record.meta
    typer.echo(f"[ingest] Title   : {record.title}")
    typer.echo(f"[ingest] Type    : {record.content_type.value}")
    typer.echo(f"[ingest] Method  : {record.method.value}")
    typer.echo(f"[ingest] Image   : {record.image or '(none)'}")
    if meta.price:
        typer.echo(f"[ingest] Price   : {meta.price} {meta.currency or ''}".rstrip())
    if meta.reading_time_minutes:
        typer.echo(f"[ingest] Reading : {meta.reading_time_minutes} min")
    if record.description:
        typer.echo("")
        typer.echo(record.description)


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------
@app.command("classify")
def classify_cmd(
    url: str = typer.Argument(..., help="URL to classify."),
) -> None:
    """Print the content type inferred from the URL alone (no network)."""
    try:
        url = parse_url(url)
    except InvalidURLError as exc:
        typer.echo(f"[classify] {exc}", err=True)
        raise typer.Exit(2)

    typer.echo(classify(url).value)
    if requires_rendering(url, settings.render_first_hosts):
        typer.echo("[classify] host needs JavaScript rendering; direct fetch is skipped")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
