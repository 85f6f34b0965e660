"""Place references shown on the map."""
from __future__ import annotations

import logging
import math
import re
import unicodedata
from typing import Any, Dict, Iterable, List, Optional

from ..data import canonical_place_references
from ..models import MapLocation, PlaceReference, PublicationState, StorageWriteResult
from ..publication import PublicationStore, StatusFilter, filter_by_status
from ..storage import JsonStorageClient, Storage, StorageKeys
from .base import dump_items, log_write_result

logger = logging.getLogger(__name__)

PLACE_STORAGE_KEY = "jordan-place-references"
PLACE_STORAGE_VERSION = "1"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", ascii_value.lower()).strip("-")


def _coerce_place(item: Any) -> Optional[PlaceReference]:
    if not isinstance(item, dict):
        return None
    if not isinstance(item.get("id"), str) or not isinstance(item.get("name"), str):
        return None
    day = item.get("day")
    if not isinstance(day, int) or isinstance(day, bool):
        return None
    coordinates = item.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        return None
    if not all(isinstance(c, (int, float)) and not isinstance(c, bool) and math.isfinite(c) for c in coordinates):
        return None
    media = item.get("mediaAssetIds")
    media_ids = None
    if isinstance(media, list):
        media_ids = [m.strip() for m in media if isinstance(m, str) and m.strip()] or None
    summary = item.get("summary")
    return PlaceReference(
        id=item["id"],
        day=day,
        name=item["name"],
        summary=summary if isinstance(summary, str) else "",
        coordinates=(float(coordinates[0]), float(coordinates[1])),
        media_asset_ids=media_ids,
    )


def place_from_location(location: MapLocation) -> PlaceReference:
    return PlaceReference(
        id=f"place-day{location.day}-{slugify(location.name)}",
        day=location.day,
        name=location.name,
        summary=location.journal_entry.title,
        coordinates=location.coordinates,
        media_asset_ids=location.journal_entry.media_asset_ids,
    )


class PlaceRepository:
    """Canonical place references layered with stored overrides and custom places."""

    def __init__(
        self,
        client: JsonStorageClient,
        publication: Optional[PublicationStore] = None,
        canonical_places: Optional[List[PlaceReference]] = None,
    ) -> None:
        self.client = client
        self.publication = publication
        self.canonical_places = canonical_places if canonical_places is not None else canonical_place_references()
        self._canonical_ids = {place.id for place in self.canonical_places}

    def load_stored(self) -> List[PlaceReference]:
        data = self.client.read()
        if not isinstance(data, list):
            return []
        return [place for place in (_coerce_place(item) for item in data) if place is not None]

    def _default_status(self, place: PlaceReference) -> str:
        return "published" if place.id in self._canonical_ids else "draft"

    def list_places(self, status: StatusFilter = "published") -> List[PlaceReference]:
        """Return canonical places (overrides applied) then custom places, filtered by status."""
        stored = self.load_stored()
        overrides = {place.id: place for place in stored}
        merged = [overrides.get(place.id, place) for place in self.canonical_places]
        merged.extend(place for place in stored if place.id not in self._canonical_ids)
        state = self.publication.state if self.publication is not None else PublicationState()
        return filter_by_status(state, "map", merged, lambda place: place.id, status, self._default_status)

    def _write(self, places: Iterable[PlaceReference]) -> StorageWriteResult:
        stored = list(places)
        result = self.client.write(dump_items(stored))
        log_write_result(logger, result, "place references")
        if result.success and self.publication is not None:
            active = list(self._canonical_ids) + [p.id for p in stored if p.id not in self._canonical_ids]
            self.publication.ensure("map", active, self._canonical_ids)
        return result

    def _upsert(self, places: Iterable[PlaceReference]) -> StorageWriteResult:
        merged: Dict[str, PlaceReference] = {place.id: place for place in self.load_stored()}
        for place in places:
            merged[place.id] = place
        return self._write(merged.values())

    def save_place(self, place: PlaceReference) -> StorageWriteResult:
        return self._upsert([place])

    def remove_place(self, place_id: str) -> StorageWriteResult:
        """Drop a stored place; a canonical place only loses its override."""
        return self._write(place for place in self.load_stored() if place.id != place_id)

    def save_map_locations(self, locations: Iterable[MapLocation]) -> StorageWriteResult:
        """Store validated geocoding output as place references."""
        return self._upsert(place_from_location(location) for location in locations)


def create_place_repository(storage: Storage, publication: Optional[PublicationStore] = None) -> PlaceRepository:
    client = JsonStorageClient(storage, StorageKeys.for_collection(PLACE_STORAGE_KEY), PLACE_STORAGE_VERSION)
    return PlaceRepository(client, publication)
