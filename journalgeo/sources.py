"""Tracks which journal days are canonical seed content and which are custom."""
from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import ContentSource, JournalEntry
from .storage import Storage

logger = logging.getLogger(__name__)

SOURCE_STATE_KEY = "contentStore_sources"


class SourceState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    journal: Dict[int, ContentSource] = Field(default_factory=dict)
    has_imported: bool = Field(default=False, alias="hasImported")


def _fingerprint(entry: JournalEntry) -> Tuple[int, str, str, str]:
    return entry.day, entry.title, entry.location, entry.story


class JournalSourceTracker:
    """Persisted day -> canonical/custom map.

    An entry counts as canonical while its day, title, location and story are
    identical to a built-in entry.
    """

    def __init__(self, storage: Storage, canonical_entries: Iterable[JournalEntry]) -> None:
        self.storage = storage
        self._canonical = {_fingerprint(entry) for entry in canonical_entries}

    def load(self) -> SourceState:
        raw = self.storage.get_item(SOURCE_STATE_KEY)
        if not raw:
            return SourceState()
        try:
            return SourceState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Corrupt content source state, starting fresh")
            return SourceState()

    def save(self, state: SourceState) -> None:
        try:
            self.storage.set_item(SOURCE_STATE_KEY, state.model_dump_json(by_alias=True))
        except OSError as exc:
            logger.error("Could not save content source state: %s", exc)

    def source_of(self, entry: JournalEntry) -> ContentSource:
        return "canonical" if _fingerprint(entry) in self._canonical else "custom"

    def sync(self, entries: Iterable[JournalEntry]) -> List[Tuple[JournalEntry, ContentSource]]:
        """Recompute the source of every entry and forget days that are gone."""
        state = self.load()
        changed = False
        synced: List[Tuple[JournalEntry, ContentSource]] = []
        days: Set[int] = set()
        for entry in entries:
            source = self.source_of(entry)
            days.add(entry.day)
            if state.journal.get(entry.day) != source:
                state.journal[entry.day] = source
                changed = True
            synced.append((entry, source))
        for day in [d for d in state.journal if d not in days]:
            del state.journal[day]
            changed = True
        if changed:
            self.save(state)
        return synced

    def register_canonical(self, entries: Iterable[JournalEntry]) -> None:
        self.save(SourceState(journal={entry.day: "canonical" for entry in entries}))

    def mark_custom(self, day: int) -> None:
        state = self.load()
        if state.journal.get(day) != "custom":
            state.journal[day] = "custom"
            self.save(state)

    def register_imported(self, entries: Iterable[JournalEntry]) -> None:
        state = self.load()
        for entry in entries:
            state.journal[entry.day] = "custom"
        state.has_imported = True
        self.save(state)

    def is_custom(self, day: int) -> bool:
        return self.load().journal.get(day) == "custom"

    def canonical_days(self, state: Optional[SourceState] = None) -> Set[int]:
        state = state or self.load()
        return {day for day, source in state.journal.items() if source == "canonical"}

    def clear(self) -> None:
        self.storage.remove_item(SOURCE_STATE_KEY)
