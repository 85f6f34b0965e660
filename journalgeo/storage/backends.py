"""Key-value string stores used as local storage."""
from __future__ import annotations

import errno
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class QuotaExceededError(OSError):
    """Raised when a write would exceed the storage quota."""


class Storage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


def _usage(items: Dict[str, str]) -> int:
    return sum(len(key.encode("utf-8")) + len(value.encode("utf-8")) for key, value in items.items())


def _check_quota(items: Dict[str, str], key: str, value: str, quota_bytes: Optional[int]) -> None:
    if quota_bytes is None:
        return
    projected = dict(items)
    projected[key] = value
    used = _usage(projected)
    if used > quota_bytes:
        raise QuotaExceededError(errno.ENOSPC, f"Storage quota of {quota_bytes} exceeded ({used} needed)")


class MemoryStorage:
    """In-process storage, the equivalent of a fresh browser profile."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._items, key, value, self.quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class JsonFileStorage:
    """Storage persisted as one JSON object on disk.

    The file is loaded once on init and rewritten after every mutation.
    A corrupt file is logged and treated as empty.
    """

    def __init__(self, path: str | Path, quota_bytes: Optional[int] = None) -> None:
        self.path = Path(path)
        self.quota_bytes = quota_bytes
        self._items = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Corrupt storage file at %s, starting fresh", self.path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Unexpected storage layout at %s, starting fresh", self.path)
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _save(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            if exc.errno in (errno.ENOSPC, errno.EDQUOT):
                raise QuotaExceededError(exc.errno, f"No space left to write {self.path}") from exc
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._items, key, value, self.quota_bytes)
        updated = dict(self._items)
        updated[key] = value
        self._save(updated)
        self._items = updated

    def remove_item(self, key: str) -> None:
        if key not in self._items:
            return
        updated = {k: v for k, v in self._items.items() if k != key}
        self._save(updated)
        self._items = updated

    def keys(self) -> List[str]:
        return list(self._items)
