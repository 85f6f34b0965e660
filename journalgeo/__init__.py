"""Journalgeo package entry."""

__all__ = [
    "config",
    "models",
    "data",
    "gazetteer",
    "locations",
    "geocode",
    "pipeline",
    "map_state",
    "publication",
    "sources",
    "storage",
    "repositories",
    "ingest",
    "utils",
    "cli",
]

__version__ = "0.1.0"
