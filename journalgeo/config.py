"""Configuration utilities for journalgeo."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
import os

load_dotenv()

DEFAULT_GEOCODE_TYPES = "place,locality,neighborhood"


@dataclass
class Config:
    """Runtime configuration for the app."""

    mapbox_access_token: Optional[str] = os.getenv("MAPBOX_ACCESS_TOKEN")
    country: str = os.getenv("JOURNALGEO_COUNTRY", "JO")
    geocode_types: str = os.getenv("JOURNALGEO_GEOCODE_TYPES", DEFAULT_GEOCODE_TYPES)
    request_timeout: float = float(os.getenv("JOURNALGEO_REQUEST_TIMEOUT", 15))
    geocode_min_interval: float = float(os.getenv("JOURNALGEO_GEOCODE_INTERVAL", 0.35))
    storage_path: str = os.getenv("JOURNALGEO_STORAGE_PATH", ".journalgeo-storage.json")
    storage_quota_bytes: int = int(os.getenv("JOURNALGEO_STORAGE_QUOTA", 5 * 1024 * 1024))

    @property
    def remote_geocoding_enabled(self) -> bool:
        return bool(self.mapbox_access_token)

    def with_token(self, token: Optional[str]) -> "Config":
        """Return a copy using ``token`` for remote geocoding."""
        values = dict(self.__dict__)
        values["mapbox_access_token"] = token or None
        return Config(**values)


DEFAULT_CONFIG = Config()


def resolve_output_dir(path: str | Path) -> Path:
    """Ensure output directory exists and return Path."""
    output_dir = Path(path)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir
