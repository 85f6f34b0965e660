"""Local-storage repositories for journal entries, media assets and places."""

from .journal import JournalRepository, create_journal_repository
from .media import MediaRepository, create_media_repository
from .places import PlaceRepository, create_place_repository

__all__ = [
    "JournalRepository",
    "MediaRepository",
    "PlaceRepository",
    "create_journal_repository",
    "create_media_repository",
    "create_place_repository",
]
