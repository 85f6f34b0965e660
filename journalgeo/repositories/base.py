"""Helpers shared by the content repositories."""
from __future__ import annotations

import logging
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..models import StorageWriteResult
from ..storage import JsonStorageClient

M = TypeVar("M", bound=BaseModel)


def validate_items(model: Type[M], value: Any) -> List[M]:
    """Return the items of ``value`` that validate as ``model``; others are dropped."""
    if not isinstance(value, list):
        return []
    valid: List[M] = []
    for item in value:
        if isinstance(item, model):
            valid.append(item)
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError:
            continue
    return valid


def dump_items(items: List[BaseModel]) -> List[dict]:
    return [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in items]


def log_write_result(logger: logging.Logger, result: StorageWriteResult, what: str) -> None:
    if result.success:
        return
    if result.quota_exceeded:
        logger.warning("Storage quota exceeded while saving %s (%d bytes)", what, result.bytes)
    logger.error("Could not save %s: %s", what, result.error)


def ensure_version(logger: logging.Logger, client: JsonStorageClient) -> None:
    if client.get_version():
        return
    try:
        client.set_version(client.current_version)
    except OSError as exc:
        logger.error("Could not set storage version for %s: %s", client.keys.main, exc)
