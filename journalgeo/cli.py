"""Typer CLI for journalgeo."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import DEFAULT_CONFIG, resolve_output_dir
from .geocode import Geocoder
from .ingest import InvalidJournalFileError, UnsupportedFileError, load_journal
from .locations import parse_location_string
from .pipeline import run_geocoding
from .publication import COLLECTIONS, STATUSES, PublicationStore
from .repositories import create_journal_repository
from .storage import JsonFileStorage
from .utils import save_locations

app = typer.Typer(help="Geocode travel journal locations and manage the local content store.")


def _open_storage(path: Optional[Path]) -> JsonFileStorage:
    return JsonFileStorage(path or DEFAULT_CONFIG.storage_path, quota_bytes=DEFAULT_CONFIG.storage_quota_bytes)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def geocode(
    path: Path = typer.Argument(..., exists=True, readable=True, help="Path to a journal .json export."),
    output_dir: Path = typer.Option("outputs", help="Directory to store outputs."),
    token: Optional[str] = typer.Option(None, help="Mapbox access token. Defaults to MAPBOX_ACCESS_TOKEN."),
):
    """Geocode every location of a journal and write the review files."""
    try:
        entries = load_journal(path)
    except (UnsupportedFileError, InvalidJournalFileError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = DEFAULT_CONFIG.with_token(token) if token else DEFAULT_CONFIG
    if not config.remote_geocoding_enabled:
        typer.secho("No Mapbox token: resolving with the gazetteer only.", fg=typer.colors.YELLOW)

    total = sum(len(parse_location_string(entry.location)) for entry in entries)
    with typer.progressbar(length=total, label="Geocoding") as bar:

        def on_progress(current: int, total: int) -> None:
            bar.update(1)

        report = run_geocoding(entries, Geocoder(config), on_progress=on_progress)

    save_locations(report.pending, report.failed, resolve_output_dir(output_dir))
    typer.secho(
        f"Geocoded {len(report.pending)} of {report.total} locations, {len(report.failed)} need review.",
        fg=typer.colors.GREEN,
    )
    for failed in report.failed:
        typer.echo(f"- day {failed.day}: {failed.name} ({failed.reason})")


@app.command()
def inspect(path: Path = typer.Argument(..., exists=True, readable=True, help="Path to pending_locations.json")):
    data = json.loads(path.read_text(encoding="utf-8"))
    typer.echo(f"Found {len(data)} locations:")
    for entry in data[:10]:
        lon, lat = entry["coordinates"]
        typer.echo(f"- day {entry['day']} {entry['name']} [{entry['type']}] -> ({lon}, {lat})")


@app.command(name="storage-status")
def storage_status(storage_path: Optional[Path] = typer.Option(None, help="Storage file to inspect.")):
    """Show journal statistics and which backup generations exist."""
    storage = _open_storage(storage_path)
    repository = create_journal_repository(storage, PublicationStore(storage))
    stats = repository.stats()
    snapshot = repository.inspect_storage()
    typer.echo(f"Entries: {stats.total_entries} (days {stats.min_day}-{stats.max_day})")
    typer.echo(f"Storage version: {stats.storage_version}")
    typer.echo(f"Main: {'yes' if snapshot.main else 'no'}")
    typer.echo(f"Backup 1: {'yes' if snapshot.backup1 else 'no'}")
    typer.echo(f"Backup 2: {'yes' if snapshot.backup2 else 'no'}")


@app.command()
def publish(
    collection: str = typer.Argument(..., help="journal, food, books or map"),
    item_id: str = typer.Argument(..., help="Item identifier (the day number for journal entries)."),
    status: str = typer.Argument("published", help="draft or published"),
    storage_path: Optional[Path] = typer.Option(None, help="Storage file to update."),
):
    """Set the publication status of one content item."""
    if collection not in COLLECTIONS or status not in STATUSES:
        typer.secho(f"Expected one of {', '.join(COLLECTIONS)} and one of {', '.join(STATUSES)}.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    store = PublicationStore(_open_storage(storage_path))
    store.set_status(collection, item_id, status)
    typer.secho(f"{collection}/{item_id} is now {status}.", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
