"""Versioned JSON client with rotating backups over a Storage."""
from __future__ import annotations

import errno
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from ..models import StorageSnapshot, StorageWriteResult
from .backends import QuotaExceededError, Storage

logger = logging.getLogger(__name__)

BackupSlot = Union[str, int]

_NAMED_SLOTS = {"primary": 0, "secondary": 1}


@dataclass(frozen=True)
class StorageKeys:
    main: str
    backups: Tuple[str, ...]
    version: str

    @classmethod
    def for_collection(cls, base: str, generations: int = 2) -> "StorageKeys":
        """Build ``base``, ``base_backup``, ``base_backup2``... and ``base_version``."""
        if generations < 1:
            raise ValueError("At least one backup generation is required")
        backups = tuple(f"{base}_backup" if i == 1 else f"{base}_backup{i}" for i in range(1, generations + 1))
        return cls(main=base, backups=backups, version=f"{base}_version")


def is_quota_exceeded(error: BaseException) -> bool:
    if isinstance(error, QuotaExceededError):
        return True
    return isinstance(error, OSError) and error.errno in (errno.ENOSPC, errno.EDQUOT)


class JsonStorageClient:
    """Read and write one JSON collection with N backup generations.

    Every write that changes the stored payload shifts the backups by one
    generation (main becomes the primary backup, the primary becomes the
    secondary, and so on) before the new payload and the version marker are
    written.
    """

    def __init__(self, storage: Storage, keys: StorageKeys, current_version: str) -> None:
        self.storage = storage
        self.keys = keys
        self.current_version = current_version

    def _backup_key(self, slot: BackupSlot) -> str:
        if isinstance(slot, str):
            if slot not in _NAMED_SLOTS:
                raise ValueError(f"Unknown backup slot {slot!r}")
            index = _NAMED_SLOTS[slot]
        else:
            index = slot - 1
        if not 0 <= index < len(self.keys.backups):
            raise ValueError(f"Backup slot {slot!r} is out of range")
        return self.keys.backups[index]

    def _rotate_backups_if_changed(self, payload: str) -> None:
        existing = self.storage.get_item(self.keys.main)
        if not existing or existing == payload:
            return
        backups = self.keys.backups
        for index in range(len(backups) - 1, 0, -1):
            previous = self.storage.get_item(backups[index - 1])
            if previous:
                self.storage.set_item(backups[index], previous)
        self.storage.set_item(backups[0], existing)

    def _store(self, payload: str, rotate: bool) -> StorageWriteResult:
        size = len(payload.encode("utf-8"))
        try:
            if rotate:
                self._rotate_backups_if_changed(payload)
            self.storage.set_item(self.keys.main, payload)
            self.storage.set_item(self.keys.version, self.current_version)
        except OSError as exc:
            quota = is_quota_exceeded(exc)
            logger.error("Failed to write %s (%d bytes, quota exceeded: %s): %s", self.keys.main, size, quota, exc)
            return StorageWriteResult(success=False, bytes=size, quota_exceeded=quota, error=str(exc))
        return StorageWriteResult(success=True, bytes=size, quota_exceeded=False)

    def write_raw(self, payload: str) -> StorageWriteResult:
        return self._store(payload, rotate=True)

    def write(self, value: Any) -> StorageWriteResult:
        try:
            payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            logger.error("Cannot serialize %s: %s", self.keys.main, exc)
            return StorageWriteResult(success=False, bytes=0, quota_exceeded=False, error=str(exc))
        return self.write_raw(payload)

    def read_raw(self) -> Optional[str]:
        return self.storage.get_item(self.keys.main)

    def read(self) -> Any:
        """Return the parsed main payload, or None if missing or unparsable."""
        raw = self.read_raw()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Stored data under %s is not valid JSON: %s", self.keys.main, exc)
            return None

    def get_backup(self, slot: BackupSlot) -> Optional[str]:
        return self.storage.get_item(self._backup_key(slot))

    def restore_from_backup(self, slot: BackupSlot) -> Any:
        """Write a backup generation back as main and return its parsed value.

        Returns None, leaving main untouched, when the slot is empty or its
        content is not valid JSON.
        """
        backup = self.get_backup(slot)
        if not backup:
            return None
        try:
            value = json.loads(backup)
        except json.JSONDecodeError as exc:
            logger.error("Backup %r of %s is not valid JSON: %s", slot, self.keys.main, exc)
            return None
        # the corrupt main payload must not enter the backup chain
        result = self._store(backup, rotate=False)
        if not result.success:
            return None
        logger.info("Restored %s from backup %r", self.keys.main, slot)
        return value

    def snapshot(self) -> StorageSnapshot:
        backups = self.keys.backups
        return StorageSnapshot(
            main=self.read_raw(),
            backup1=self.storage.get_item(backups[0]),
            backup2=self.storage.get_item(backups[1]) if len(backups) > 1 else None,
            version=self.get_version(),
        )

    def clear(self) -> None:
        self.storage.remove_item(self.keys.main)
        for key in self.keys.backups:
            self.storage.remove_item(key)
        self.storage.remove_item(self.keys.version)

    def get_version(self) -> Optional[str]:
        return self.storage.get_item(self.keys.version)

    def set_version(self, version: str) -> None:
        self.storage.set_item(self.keys.version, version)

    def clear_version(self) -> None:
        self.storage.remove_item(self.keys.version)
