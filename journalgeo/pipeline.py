"""Geocoding pipeline over a set of journal entries."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from .config import Config, DEFAULT_CONFIG
from .geocode import Geocoder
from .locations import classify_locations, parse_journal_entries
from .map_state import (
    InvalidTransitionError,
    MapContentMachine,
    MapContentState,
    MapContentStatus,
)
from .models import FailedLocation, JournalEntry, MapLocation

if TYPE_CHECKING:
    from .repositories.places import PlaceRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancellationToken:
    """Flag checked before each geocoding attempt."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class GeocodingReport:
    pending: List[MapLocation] = field(default_factory=list)
    failed: List[FailedLocation] = field(default_factory=list)
    total: int = 0
    processed: int = 0
    cancelled: bool = False


def run_geocoding(
    entries: Iterable[JournalEntry],
    geocoder: Geocoder,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancellationToken] = None,
) -> GeocodingReport:
    """Parse, classify and geocode every location of ``entries``.

    Locations are resolved one at a time, in day order and token order, and
    ``on_progress(processed, total)`` is called after every attempt.
    """
    parsed_entries = parse_journal_entries(entries)
    report = GeocodingReport(total=sum(len(p.parsed) for p in parsed_entries))
    if not parsed_entries:
        return report

    for parsed in parsed_entries:
        for location in classify_locations(parsed.parsed, parsed.day, parsed.journal_entry):
            if cancel is not None and cancel.cancelled:
                logger.info("Geocoding cancelled after %d/%d locations", report.processed, report.total)
                report.cancelled = True
                return report
            result, reason = geocoder.geocode_candidate(location.name)
            report.processed += 1
            if result is not None:
                report.pending.append(
                    MapLocation(
                        name=location.name,
                        type=location.type,
                        day=location.day,
                        journal_entry=location.journal_entry,
                        coordinates=result.coordinates,
                    )
                )
            else:
                logger.info("Could not geocode %r (day %d): %s", location.name, location.day, reason)
                report.failed.append(
                    FailedLocation(
                        name=location.name,
                        day=location.day,
                        journal_entry=location.journal_entry,
                        reason=reason,
                    )
                )
            if on_progress is not None:
                on_progress(report.processed, report.total)
    return report


def geocode_journal_entries(
    entries: List[JournalEntry],
    api_token: Optional[str],
    on_progress: Optional[ProgressCallback] = None,
    *,
    geocoder: Optional[Geocoder] = None,
    cancel: Optional[CancellationToken] = None,
    config: Config = DEFAULT_CONFIG,
) -> List[MapLocation]:
    """Return the successfully geocoded locations of ``entries``."""
    if not entries:
        return []
    geocoder = geocoder or Geocoder(config.with_token(api_token))
    return run_geocoding(entries, geocoder, on_progress=on_progress, cancel=cancel).pending


class MapReviewSession:
    """Run geocoding through the map state machine and persist validated places."""

    def __init__(
        self,
        geocoder: Geocoder,
        places: Optional["PlaceRepository"] = None,
        machine: Optional[MapContentMachine] = None,
    ) -> None:
        self.geocoder = geocoder
        self.places = places
        self.machine = machine or MapContentMachine()
        self.cancel_token = CancellationToken()

    @property
    def state(self) -> MapContentState:
        return self.machine.state

    def run(self, entries: List[JournalEntry], on_progress: Optional[ProgressCallback] = None) -> MapContentState:
        self.cancel_token = CancellationToken()
        self.machine.start_geocoding()
        try:
            report = run_geocoding(entries, self.geocoder, on_progress=on_progress, cancel=self.cancel_token)
        except Exception as exc:
            logger.exception("Geocoding run failed")
            self.machine.fail(str(exc))
            raise
        if report.cancelled:
            return self.machine.fail("Geocoding cancelled", failed=report.failed)
        return self.machine.complete_geocoding(report.pending, report.failed)

    def cancel(self) -> None:
        self.cancel_token.cancel()

    def validate(self, approved: Optional[List[MapLocation]] = None) -> MapContentState:
        """Accept ``approved`` (default: every pending location) as the map itinerary."""
        locations = list(self.state.pending if approved is None else approved)
        if self.machine.status is not MapContentStatus.AWAITING_VALIDATION:
            raise InvalidTransitionError(f"Nothing to validate while map content is {self.machine.status.value}")
        if self.places is not None:
            result = self.places.save_map_locations(locations)
            if not result.success:
                return self.machine.fail(result.failure_message or "Could not save map locations")
        return self.machine.validate(locations)
