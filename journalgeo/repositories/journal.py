"""Journal entries persisted in local storage."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..data import canonical_journal_entries
from ..models import ImportResult, JournalEntry, JournalStats, StorageSnapshot, StorageWriteResult
from ..publication import PublicationStore
from ..sources import JournalSourceTracker
from ..storage import JsonStorageClient, Storage, StorageKeys
from .base import dump_items, ensure_version, log_write_result, validate_items

logger = logging.getLogger(__name__)

JOURNAL_STORAGE_KEY = "journalEntries"
JOURNAL_STORAGE_VERSION = "3.0"

EntryLike = Union[JournalEntry, Dict[str, Any]]


def _sorted_unique(entries: Iterable[JournalEntry]) -> List[JournalEntry]:
    by_day: Dict[int, JournalEntry] = {}
    for entry in entries:
        by_day[entry.day] = entry
    return [by_day[day] for day in sorted(by_day)]


class JournalRepository:
    """CRUD, backup recovery and diagnostics for journal entries."""

    def __init__(
        self,
        client: JsonStorageClient,
        sources: JournalSourceTracker,
        publication: Optional[PublicationStore] = None,
        canonical_entries: Optional[List[JournalEntry]] = None,
    ) -> None:
        self.client = client
        self.sources = sources
        self.publication = publication
        self.canonical_entries = canonical_entries if canonical_entries is not None else canonical_journal_entries()

    # -- internals ---------------------------------------------------------

    def _sync(self, entries: List[JournalEntry]) -> None:
        synced = self.sources.sync(entries)
        if self.publication is None:
            return
        canonical_ids = {str(entry.day) for entry, source in synced if source == "canonical"}
        self.publication.ensure("journal", [str(entry.day) for entry in entries], canonical_ids)

    def _persist(self, entries: Iterable[JournalEntry]) -> StorageWriteResult:
        ordered = _sorted_unique(entries)
        result = self.client.write(dump_items(ordered))
        log_write_result(logger, result, "journal entries")
        if result.success:
            self._sync(ordered)
        return result

    def _parse_stored(self, raw: str) -> Optional[List[JournalEntry]]:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Stored journal entries are not valid JSON, trying backups: %s", exc)
            return None
        if not isinstance(parsed, list):
            logger.error("Stored journal entries are not a list, trying backups")
            return None
        valid = validate_items(JournalEntry, parsed)
        if len(valid) != len(parsed):
            logger.warning("Dropped %d corrupted journal entries", len(parsed) - len(valid))
            self._persist(valid)
        return valid

    # -- lifecycle ---------------------------------------------------------

    def bootstrap(self) -> None:
        """Seed storage with the canonical entries when it holds nothing."""
        raw = self.client.read_raw()
        if raw and raw != "[]":
            ensure_version(logger, self.client)
            return
        result = self.client.write(dump_items(self.canonical_entries))
        log_write_result(logger, result, "canonical journal entries")
        if result.success:
            self.sources.register_canonical(self.canonical_entries)

    def load_entries(self) -> List[JournalEntry]:
        self.bootstrap()
        raw = self.client.read_raw()
        if not raw:
            ensure_version(logger, self.client)
            return []
        entries = self._parse_stored(raw)
        if entries is None:
            return self.recover_from_backup()
        ensure_version(logger, self.client)
        self._sync(entries)
        return entries

    def save_entries(self, entries: Iterable[EntryLike]) -> StorageWriteResult:
        items = list(entries)
        valid = validate_items(JournalEntry, items)
        if len(valid) != len(items):
            logger.warning("Ignoring %d invalid journal entries", len(items) - len(valid))
        if not valid:
            logger.warning("No valid journal entries to save")
            return StorageWriteResult(success=False, bytes=0, error="No valid journal entries to save")
        return self._persist(valid)

    def add_entry(self, entry: EntryLike) -> StorageWriteResult:
        """Insert ``entry`` or replace the entry with the same day."""
        new_entry = JournalEntry.model_validate(entry)
        current = [e for e in self.load_entries() if e.day != new_entry.day]
        result = self._persist([*current, new_entry])
        if result.success:
            self.sources.mark_custom(new_entry.day)
        return result

    def update_entry(self, entry: EntryLike) -> StorageWriteResult:
        return self.add_entry(entry)

    def remove_entry(self, day: int) -> StorageWriteResult:
        current = self.load_entries()
        remaining = [e for e in current if e.day != day]
        if len(remaining) == len(current):
            return StorageWriteResult(success=False, bytes=0, error=f"No journal entry for day {day}")
        return self._persist(remaining)

    def recover_from_backup(self) -> List[JournalEntry]:
        """Restore the newest usable backup, falling back to the canonical entries."""
        for slot in ("primary", "secondary"):
            restored = validate_items(JournalEntry, self.client.restore_from_backup(slot))
            if restored:
                logger.info("Recovered %d journal entries from the %s backup", len(restored), slot)
                self._sync(restored)
                return restored

        logger.warning("No usable backup, restoring the canonical journal entries")
        canonical = list(self.canonical_entries)
        result = self.client.write(dump_items(canonical))
        log_write_result(logger, result, "canonical journal entries")
        self._sync(canonical)
        return canonical

    def reset_storage(self) -> List[JournalEntry]:
        self.client.clear()
        self.sources.clear()
        return self.load_entries()

    def force_migration(self) -> List[JournalEntry]:
        self.client.clear_version()
        return self.load_entries()

    # -- diagnostics -------------------------------------------------------

    def stats(self) -> JournalStats:
        days = sorted(entry.day for entry in self.load_entries())
        snapshot = self.client.snapshot()
        return JournalStats(
            total_entries=len(days),
            min_day=days[0] if days else 0,
            max_day=days[-1] if days else 0,
            days=days,
            storage_version=snapshot.version or "unknown",
            has_backups=bool(snapshot.backup1 and snapshot.backup2),
        )

    def inspect_storage(self) -> StorageSnapshot:
        return self.client.snapshot()

    def export_all(self) -> Dict[str, Any]:
        entries = self.load_entries()
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "entries": dump_items(entries),
            "stats": self.stats().model_dump(by_alias=True),
            "storage": self.inspect_storage().model_dump(),
            "metadata": {
                "version": JOURNAL_STORAGE_VERSION,
                "totalEntries": len(entries),
                "entryDays": [entry.day for entry in entries],
            },
        }

    def import_entries(self, payload: Any) -> ImportResult:
        raw_entries = payload.get("entries") if isinstance(payload, dict) else None
        if not isinstance(raw_entries, list):
            return ImportResult(success=False, error="Invalid data format")
        valid = validate_items(JournalEntry, raw_entries)
        if not valid:
            return ImportResult(success=False, error="No valid entries to import")
        result = self._persist(valid)
        if not result.success:
            return ImportResult(success=False, error=result.failure_message or "Save failed")
        self.sources.register_imported(valid)
        return ImportResult(success=True, imported=len(valid))


def create_journal_repository(
    storage: Storage,
    publication: Optional[PublicationStore] = None,
    canonical_entries: Optional[List[JournalEntry]] = None,
) -> JournalRepository:
    canonical = canonical_entries if canonical_entries is not None else canonical_journal_entries()
    client = JsonStorageClient(storage, StorageKeys.for_collection(JOURNAL_STORAGE_KEY), JOURNAL_STORAGE_VERSION)
    return JournalRepository(client, JournalSourceTracker(storage, canonical), publication, canonical)
