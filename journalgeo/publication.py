"""Draft/published status tracking for journal, food, books and map content.

All state transitions are pure: functions take a frozen ``PublicationState``
and return either the very same object (nothing changed) or a new one, so
callers can detect changes with ``is``.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Collection, Dict, Iterable, List, Literal, Optional, TypeVar, Union

from .models import ContentStatus, PublicationMetadata, PublicationState
from .storage import Storage

logger = logging.getLogger(__name__)

STORAGE_KEY = "content-publication-state.v1"

PublicationCollection = Literal["journal", "food", "books", "map"]
COLLECTIONS = ("journal", "food", "books", "map")
STATUSES = ("draft", "published")

StatusFilter = Union[ContentStatus, Literal["all"]]
T = TypeVar("T")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown publication collection {collection!r}")


def _with_collection(
    state: PublicationState, collection: str, records: Dict[str, PublicationMetadata]
) -> PublicationState:
    return state.model_copy(update={collection: records})


def ensure_publication_entries(
    state: PublicationState,
    collection: PublicationCollection,
    active_ids: Iterable[str],
    canonical_ids: Collection[str],
) -> PublicationState:
    """Track exactly the ids of ``active_ids``.

    New ids default to ``published`` when canonical and ``draft`` otherwise;
    tracked ids missing from ``active_ids`` are dropped.
    """
    _check_collection(collection)
    ids = list(dict.fromkeys(active_ids))
    current: Dict[str, PublicationMetadata] = getattr(state, collection)
    wanted = set(ids)

    missing = [item_id for item_id in ids if item_id not in current]
    stale = [item_id for item_id in current if item_id not in wanted]
    if not missing and not stale:
        return state

    updated_at = _now()
    records = {item_id: meta for item_id, meta in current.items() if item_id in wanted}
    for item_id in missing:
        status: ContentStatus = "published" if item_id in canonical_ids else "draft"
        records[item_id] = PublicationMetadata(status=status, updated_at=updated_at)
    return _with_collection(state, collection, records)


def update_publication_status(
    state: PublicationState,
    collection: PublicationCollection,
    item_id: str,
    status: ContentStatus,
) -> PublicationState:
    _check_collection(collection)
    if status not in STATUSES:
        raise ValueError(f"Unknown publication status {status!r}")
    current: Dict[str, PublicationMetadata] = getattr(state, collection)
    existing = current.get(item_id)
    if existing is not None and existing.status == status:
        return state
    records = dict(current)
    records[item_id] = PublicationMetadata(status=status, updated_at=_now())
    return _with_collection(state, collection, records)


def remove_publication_entry(
    state: PublicationState,
    collection: PublicationCollection,
    item_id: str,
) -> PublicationState:
    _check_collection(collection)
    current: Dict[str, PublicationMetadata] = getattr(state, collection)
    if item_id not in current:
        return state
    records = {key: meta for key, meta in current.items() if key != item_id}
    return _with_collection(state, collection, records)


def resolve_publication_status(
    state: PublicationState,
    collection: PublicationCollection,
    item_id: str,
    default_status: ContentStatus,
) -> ContentStatus:
    _check_collection(collection)
    metadata = getattr(state, collection).get(item_id)
    return metadata.status if metadata is not None else default_status


def count_publication_by_status(
    state: PublicationState,
    collection: PublicationCollection,
    status: ContentStatus,
    ids: Iterable[str],
    default_status: ContentStatus,
) -> int:
    return sum(
        1 for item_id in ids if resolve_publication_status(state, collection, item_id, default_status) == status
    )


def filter_by_status(
    state: PublicationState,
    collection: PublicationCollection,
    items: Iterable[T],
    key: Callable[[T], str],
    status_filter: StatusFilter,
    default_status: Union[ContentStatus, Callable[[T], ContentStatus]],
) -> List[T]:
    """Keep the items whose resolved status matches ``status_filter``.

    ``default_status`` may be a callable so canonical and custom items can
    fall back to different statuses.
    """
    if status_filter == "all":
        return list(items)
    selected: List[T] = []
    for item in items:
        fallback = default_status(item) if callable(default_status) else default_status
        if resolve_publication_status(state, collection, key(item), fallback) == status_filter:
            selected.append(item)
    return selected


def _normalize_collection(value: object) -> Dict[str, PublicationMetadata]:
    if not isinstance(value, dict):
        return {}
    records: Dict[str, PublicationMetadata] = {}
    for item_id, metadata in value.items():
        if not isinstance(metadata, dict):
            continue
        status = metadata.get("status")
        if status not in STATUSES:
            continue
        updated_at = metadata.get("updatedAt")
        records[str(item_id)] = PublicationMetadata(
            status=status,
            updated_at=updated_at if isinstance(updated_at, str) else _now(),
        )
    return records


def load_publication_state(storage: Optional[Storage]) -> PublicationState:
    """Load the persisted state; missing or malformed data yields an empty state."""
    if storage is None:
        return PublicationState()
    raw = storage.get_item(STORAGE_KEY)
    if not raw:
        return PublicationState()
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Corrupt publication state under %s, starting fresh", STORAGE_KEY)
        return PublicationState()
    if not isinstance(parsed, dict):
        logger.warning("Unexpected publication state layout under %s, starting fresh", STORAGE_KEY)
        return PublicationState()
    return PublicationState(**{name: _normalize_collection(parsed.get(name)) for name in COLLECTIONS})


def save_publication_state(state: PublicationState, storage: Optional[Storage]) -> bool:
    if storage is None:
        return False
    try:
        storage.set_item(STORAGE_KEY, state.model_dump_json(by_alias=True))
    except OSError as exc:
        logger.error("Could not save publication state: %s", exc)
        return False
    return True


class PublicationStore:
    """Persisted publication state; writes only when a transition changed it."""

    def __init__(self, storage: Optional[Storage]) -> None:
        self.storage = storage
        self.state = load_publication_state(storage)

    def _commit(self, updated: PublicationState) -> PublicationState:
        if updated is not self.state:
            self.state = updated
            save_publication_state(updated, self.storage)
        return self.state

    def reload(self) -> PublicationState:
        self.state = load_publication_state(self.storage)
        return self.state

    def ensure(
        self, collection: PublicationCollection, active_ids: Iterable[str], canonical_ids: Collection[str]
    ) -> PublicationState:
        return self._commit(ensure_publication_entries(self.state, collection, active_ids, canonical_ids))

    def set_status(self, collection: PublicationCollection, item_id: str, status: ContentStatus) -> PublicationState:
        return self._commit(update_publication_status(self.state, collection, item_id, status))

    def remove(self, collection: PublicationCollection, item_id: str) -> PublicationState:
        return self._commit(remove_publication_entry(self.state, collection, item_id))

    def status_of(self, collection: PublicationCollection, item_id: str, default_status: ContentStatus) -> ContentStatus:
        return resolve_publication_status(self.state, collection, item_id, default_status)

    def count(
        self, collection: PublicationCollection, status: ContentStatus, ids: Iterable[str], default_status: ContentStatus
    ) -> int:
        return count_publication_by_status(self.state, collection, status, ids, default_status)
