"""Misc helpers."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable

import pandas as pd

from .models import FailedLocation, MapLocation


def save_json(data, path: Path) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def locations_frame(pending: Iterable[MapLocation], failed: Iterable[FailedLocation]) -> pd.DataFrame:
    """One row per location attempt, resolved or not, in itinerary order."""
    rows = [
        {
            "day": loc.day,
            "name": loc.name,
            "type": loc.type,
            "longitude": loc.coordinates[0],
            "latitude": loc.coordinates[1],
            "status": "pending",
            "reason": None,
        }
        for loc in pending
    ]
    rows.extend(
        {
            "day": loc.day,
            "name": loc.name,
            "type": None,
            "longitude": None,
            "latitude": None,
            "status": "failed",
            "reason": loc.reason,
        }
        for loc in failed
    )
    columns = ["day", "name", "type", "longitude", "latitude", "status", "reason"]
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values("day", kind="stable").reset_index(drop=True)


def save_locations(pending: Iterable[MapLocation], failed: Iterable[FailedLocation], output_dir: Path) -> Dict[str, Path]:
    pending_list = list(pending)
    failed_list = list(failed)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "pending": output_dir / "pending_locations.json",
        "failed": output_dir / "failed_locations.json",
        "csv": output_dir / "locations.csv",
    }
    save_json([loc.model_dump(mode="json", by_alias=True) for loc in pending_list], paths["pending"])
    save_json([loc.model_dump(mode="json", by_alias=True) for loc in failed_list], paths["failed"])
    locations_frame(pending_list, failed_list).to_csv(paths["csv"], index=False)
    return paths
