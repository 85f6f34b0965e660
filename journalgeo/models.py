"""Data models for journalgeo."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

LocationType = Literal["principal", "secondaire"]
ContentStatus = Literal["draft", "published"]
ContentSource = Literal["canonical", "custom"]
MediaAssetSource = Literal["upload", "external", "generated"]

# (lon, lat), Mapbox order
Coordinates = Tuple[float, float]


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class JournalEntry(_AliasedModel):
    day: int = Field(ge=1)
    date: str
    title: str
    location: str
    story: str
    mood: str
    photos: Optional[List[str]] = None
    media_asset_ids: Optional[List[str]] = Field(default=None, alias="mediaAssetIds")
    link: Optional[str] = None


class ParsedLocation(_AliasedModel):
    original: str
    parsed: List[str]
    day: int
    journal_entry: JournalEntry = Field(alias="journalEntry")


class ClassifiedLocation(_AliasedModel):
    name: str
    type: LocationType
    day: int
    journal_entry: JournalEntry = Field(alias="journalEntry")


class MapLocation(ClassifiedLocation):
    coordinates: Coordinates


class FailedLocation(_AliasedModel):
    name: str
    day: int
    journal_entry: JournalEntry = Field(alias="journalEntry")
    reason: Optional[str] = None


class GeocodeResult(BaseModel):
    name: str
    coordinates: Coordinates
    confidence: float = Field(ge=0, le=1)


class PublicationMetadata(_AliasedModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: ContentStatus
    updated_at: str = Field(alias="updatedAt")


class PublicationState(BaseModel):
    """Status records per collection, keyed by item id."""

    model_config = ConfigDict(frozen=True)

    journal: Dict[str, PublicationMetadata] = Field(default_factory=dict)
    food: Dict[str, PublicationMetadata] = Field(default_factory=dict)
    books: Dict[str, PublicationMetadata] = Field(default_factory=dict)
    map: Dict[str, PublicationMetadata] = Field(default_factory=dict)


class StorageSnapshot(BaseModel):
    main: Optional[str] = None
    backup1: Optional[str] = None
    backup2: Optional[str] = None
    version: Optional[str] = None


class StorageWriteResult(_AliasedModel):
    success: bool
    bytes: int
    quota_exceeded: bool = Field(default=False, alias="quotaExceeded")
    error: Optional[str] = None

    @property
    def failure_message(self) -> Optional[str]:
        """User-facing explanation of a failed write, ``None`` on success."""
        if self.success:
            return None
        if self.quota_exceeded:
            return (
                f"Storage quota exceeded: the data is too large ({self.bytes} bytes). "
                "Remove large media assets and try again."
            )
        return f"Unknown storage error: {self.error or 'write failed'}"


class MediaAsset(_AliasedModel):
    id: str
    name: str = ""
    type: str = ""
    url: str
    size: int = 0
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    width: Optional[int] = None
    height: Optional[int] = None
    original_size: Optional[int] = Field(default=None, alias="originalSize")
    last_used_at: Optional[str] = Field(default=None, alias="lastUsedAt")
    checksum: Optional[str] = None
    source: MediaAssetSource = "upload"


class MediaAssetPayload(_AliasedModel):
    name: str
    type: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    original_size: Optional[int] = Field(default=None, alias="originalSize")
    source: MediaAssetSource = "upload"


class MediaLibraryUsage(_AliasedModel):
    asset_count: int = Field(alias="assetCount")
    total_bytes: int = Field(alias="totalBytes")
    max_assets: int = Field(alias="maxAssets")
    max_bytes: int = Field(alias="maxBytes")
    remaining_assets: int = Field(alias="remainingAssets")
    remaining_bytes: int = Field(alias="remainingBytes")


class MediaLibraryState(BaseModel):
    assets: List[MediaAsset]
    usage: MediaLibraryUsage
    write_result: Optional[StorageWriteResult] = None


class PlaceReference(_AliasedModel):
    id: str
    day: int
    name: str
    summary: str = ""
    coordinates: Coordinates
    media_asset_ids: Optional[List[str]] = Field(default=None, alias="mediaAssetIds")


class JournalStats(_AliasedModel):
    total_entries: int = Field(alias="totalEntries")
    min_day: int = Field(alias="minDay")
    max_day: int = Field(alias="maxDay")
    days: List[int]
    storage_version: str = Field(alias="storageVersion")
    has_backups: bool = Field(alias="hasBackups")


class ImportResult(BaseModel):
    success: bool
    imported: Optional[int] = None
    error: Optional[str] = None
