"""Local key-value storage and the JSON collection client."""

from .backends import JsonFileStorage, MemoryStorage, QuotaExceededError, Storage
from .client import BackupSlot, JsonStorageClient, StorageKeys, is_quota_exceeded

__all__ = [
    "BackupSlot",
    "JsonFileStorage",
    "JsonStorageClient",
    "MemoryStorage",
    "QuotaExceededError",
    "Storage",
    "StorageKeys",
    "is_quota_exceeded",
]
