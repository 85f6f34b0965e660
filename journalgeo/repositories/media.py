"""Media library persisted in local storage."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Union

from ..models import MediaAsset, MediaAssetPayload, MediaLibraryState, MediaLibraryUsage, StorageWriteResult
from ..storage import JsonStorageClient, Storage, StorageKeys
from .base import dump_items, log_write_result, validate_items

logger = logging.getLogger(__name__)

MEDIA_STORAGE_KEY = "mediaLibraryAssets/v1"
MEDIA_STORAGE_VERSION = "1"
DEFAULT_MAX_ASSETS = 200
DEFAULT_MAX_BYTES = 50 * 1024 * 1024

_UNITS = ("octets", "Ko", "Mo", "Go")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def estimate_data_url_size(data_url: str) -> int:
    """Approximate decoded size of a base64 ``data:`` URL; 0 for other URLs."""
    if not data_url.startswith("data:"):
        return 0
    comma = data_url.find(",")
    if comma == -1:
        return 0
    return (len(data_url) - comma - 1) * 3 // 4


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Ko"
    exponent = 0
    while exponent < len(_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = size / 1024 ** exponent
    return f"{value:.0f} {_UNITS[exponent]}" if exponent == 0 else f"{value:.1f} {_UNITS[exponent]}"


def compute_usage(
    assets: List[MediaAsset], max_assets: int = DEFAULT_MAX_ASSETS, max_bytes: int = DEFAULT_MAX_BYTES
) -> MediaLibraryUsage:
    total = sum(asset.size or estimate_data_url_size(asset.url) for asset in assets)
    return MediaLibraryUsage(
        asset_count=len(assets),
        total_bytes=total,
        max_assets=max_assets,
        max_bytes=max_bytes,
        remaining_assets=max(max_assets - len(assets), 0),
        remaining_bytes=max(max_bytes - total, 0),
    )


def _newest_first(assets: Iterable[MediaAsset]) -> List[MediaAsset]:
    return sorted(assets, key=lambda asset: asset.created_at or "", reverse=True)


class MediaRepository:
    def __init__(
        self, client: JsonStorageClient, max_assets: int = DEFAULT_MAX_ASSETS, max_bytes: int = DEFAULT_MAX_BYTES
    ) -> None:
        self.client = client
        self.max_assets = max_assets
        self.max_bytes = max_bytes

    def _state(self, assets: List[MediaAsset], result: Optional[StorageWriteResult] = None) -> MediaLibraryState:
        return MediaLibraryState(
            assets=assets, usage=compute_usage(assets, self.max_assets, self.max_bytes), write_result=result
        )

    def _read_stored(self) -> Any:
        data = self.client.read()
        if data is not None or not self.client.read_raw():
            return data
        for slot in ("primary", "secondary"):
            restored = self.client.restore_from_backup(slot)
            if restored is not None:
                logger.info("Recovered media library from the %s backup", slot)
                return restored
        logger.warning("Media library is unreadable and has no backup, starting empty")
        return []

    def load_assets(self) -> List[MediaAsset]:
        """Return valid, de-duplicated assets, newest first."""
        unique: List[MediaAsset] = []
        seen = set()
        for asset in validate_items(MediaAsset, self._read_stored()):
            if not asset.id or not asset.url or asset.id in seen:
                continue
            seen.add(asset.id)
            created = asset.created_at or _now()
            unique.append(
                asset.model_copy(
                    update={
                        "size": asset.size or estimate_data_url_size(asset.url),
                        "created_at": created,
                        "updated_at": asset.updated_at or created,
                    }
                )
            )
        return _newest_first(unique)

    def _persist(self, assets: List[MediaAsset]) -> MediaLibraryState:
        ordered = _newest_first(assets)
        result = self.client.write(dump_items(ordered))
        log_write_result(logger, result, "media library")
        return self._state(ordered, result)

    def save_assets(self, assets: Iterable[Union[MediaAsset, dict]]) -> MediaLibraryState:
        return self._persist(validate_items(MediaAsset, list(assets)))

    def library_state(self) -> MediaLibraryState:
        return self._state(self.load_assets())

    def build_asset(self, payload: Union[MediaAssetPayload, dict]) -> MediaAsset:
        payload = MediaAssetPayload.model_validate(payload)
        now = _now()
        return MediaAsset(
            id=str(uuid.uuid4()),
            name=payload.name,
            type=payload.type,
            url=payload.url,
            size=estimate_data_url_size(payload.url),
            created_at=now,
            updated_at=now,
            width=payload.width,
            height=payload.height,
            original_size=payload.original_size,
            source=payload.source,
        )

    def add_assets(self, payloads: Iterable[Union[MediaAssetPayload, dict]]) -> MediaLibraryState:
        payloads = list(payloads)
        if not payloads:
            return self.library_state()
        current = self.load_assets()
        built = [self.build_asset(payload) for payload in payloads]
        state = self._persist([*built, *current])
        if state.usage.asset_count > self.max_assets or state.usage.total_bytes > self.max_bytes:
            logger.warning(
                "Media library over quota: %d assets, %s",
                state.usage.asset_count,
                format_bytes(state.usage.total_bytes),
            )
        return state

    def remove_asset(self, asset_id: str) -> MediaLibraryState:
        return self._persist([asset for asset in self.load_assets() if asset.id != asset_id])

    def touch_asset(self, asset_id: str) -> MediaLibraryState:
        now = _now()
        updated = [
            asset.model_copy(update={"last_used_at": now, "updated_at": now}) if asset.id == asset_id else asset
            for asset in self.load_assets()
        ]
        return self._persist(updated)

    def clear(self) -> None:
        self.client.clear()


def create_media_repository(storage: Storage) -> MediaRepository:
    client = JsonStorageClient(storage, StorageKeys.for_collection(MEDIA_STORAGE_KEY), MEDIA_STORAGE_VERSION)
    return MediaRepository(client)
