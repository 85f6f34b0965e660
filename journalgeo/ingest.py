"""Loading journal entries from exported JSON files."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List

from pydantic import ValidationError

from .models import JournalEntry


class UnsupportedFileError(ValueError):
    """Raised when file type is unsupported."""


class InvalidJournalFileError(ValueError):
    """Raised when a journal file cannot be read as journal entries."""


def load_journal(path: str | Path) -> List[JournalEntry]:
    """Load journal entries from a .json file.

    The file may hold a list of entries or an export object with an
    ``entries`` key. Entries are returned sorted by day.
    """
    file_path = Path(path)
    if file_path.suffix.lower() != ".json":
        raise UnsupportedFileError("Only .json journal files are supported.")
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidJournalFileError(f"{file_path} is not valid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        raise InvalidJournalFileError(f"{file_path} does not contain a list of journal entries.")
    try:
        entries = [JournalEntry.model_validate(item) for item in data]
    except ValidationError as exc:
        raise InvalidJournalFileError(f"{file_path} contains invalid journal entries: {exc}") from exc
    return sorted(entries, key=lambda entry: entry.day)
