"""Lifecycle of the map review: geocoding, validation and publication."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, Field

from .models import FailedLocation, MapLocation

logger = logging.getLogger(__name__)


class MapContentStatus(str, Enum):
    IDLE = "idle"
    GEOCODING = "geocoding"
    AWAITING_VALIDATION = "awaiting-validation"
    READY = "ready"
    ERROR = "error"


TRANSITIONS: Dict[MapContentStatus, FrozenSet[MapContentStatus]] = {
    MapContentStatus.IDLE: frozenset({MapContentStatus.GEOCODING}),
    MapContentStatus.GEOCODING: frozenset(
        {MapContentStatus.AWAITING_VALIDATION, MapContentStatus.READY, MapContentStatus.ERROR}
    ),
    MapContentStatus.AWAITING_VALIDATION: frozenset({MapContentStatus.READY, MapContentStatus.GEOCODING}),
    MapContentStatus.READY: frozenset({MapContentStatus.GEOCODING}),
    MapContentStatus.ERROR: frozenset({MapContentStatus.GEOCODING}),
}


class InvalidTransitionError(ValueError):
    """Raised when a map status change is not allowed."""


def can_transition(current: MapContentStatus, target: MapContentStatus) -> bool:
    if target is MapContentStatus.ERROR:
        return True
    return target in TRANSITIONS[current]


class MapContentState(BaseModel):
    status: MapContentStatus = MapContentStatus.IDLE
    pending: List[MapLocation] = Field(default_factory=list)
    failed: List[FailedLocation] = Field(default_factory=list)
    map_locations: List[MapLocation] = Field(default_factory=list)
    error: Optional[str] = None


class MapContentMachine:
    """Holds a MapContentState and applies only allowed transitions."""

    def __init__(self, state: Optional[MapContentState] = None) -> None:
        self.state = state or MapContentState()

    @property
    def status(self) -> MapContentStatus:
        return self.state.status

    def _move(self, target: MapContentStatus, **changes) -> MapContentState:
        current = self.state.status
        if not can_transition(current, target):
            raise InvalidTransitionError(f"Cannot move map content from {current.value} to {target.value}")
        logger.debug("Map content %s -> %s", current.value, target.value)
        self.state = self.state.model_copy(update={"status": target, **changes})
        return self.state

    def start_geocoding(self) -> MapContentState:
        return self._move(MapContentStatus.GEOCODING, pending=[], failed=[], error=None)

    def complete_geocoding(self, pending: List[MapLocation], failed: List[FailedLocation]) -> MapContentState:
        target = MapContentStatus.AWAITING_VALIDATION if pending else MapContentStatus.READY
        return self._move(target, pending=list(pending), failed=list(failed), error=None)

    def fail(self, error: str, failed: Optional[List[FailedLocation]] = None) -> MapContentState:
        changes = {"error": error}
        if failed is not None:
            changes["failed"] = list(failed)
        return self._move(MapContentStatus.ERROR, **changes)

    def validate(self, approved: List[MapLocation]) -> MapContentState:
        if self.state.status is not MapContentStatus.AWAITING_VALIDATION:
            raise InvalidTransitionError(f"Nothing to validate while map content is {self.state.status.value}")
        return self._move(MapContentStatus.READY, pending=[], map_locations=list(approved))
