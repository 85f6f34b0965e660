import pytest

from journalgeo.map_state import (
    InvalidTransitionError,
    MapContentMachine,
    MapContentStatus,
    can_transition,
)
from journalgeo.models import FailedLocation, JournalEntry, MapLocation

ENTRY = JournalEntry(day=1, date="15 janvier 2024", title="Arrivée", location="Amman", story="...", mood="Excité")


def _location():
    return MapLocation(name="Amman", type="principal", day=1, journal_entry=ENTRY, coordinates=(35.9106, 31.9539))


def test_initial_state_is_idle():
    assert MapContentMachine().status is MapContentStatus.IDLE


def test_happy_path():
    machine = MapContentMachine()
    machine.start_geocoding()
    state = machine.complete_geocoding([_location()], [])
    assert state.status is MapContentStatus.AWAITING_VALIDATION
    state = machine.validate(state.pending)
    assert state.status is MapContentStatus.READY
    assert len(state.map_locations) == 1


def test_no_pending_goes_straight_to_ready():
    machine = MapContentMachine()
    machine.start_geocoding()
    failed = [FailedLocation(name="Nulle part", day=1, journal_entry=ENTRY, reason="not in gazetteer")]
    state = machine.complete_geocoding([], failed)
    assert state.status is MapContentStatus.READY
    assert state.failed == failed


@pytest.mark.parametrize("status", list(MapContentStatus))
def test_error_is_reachable_from_anywhere(status):
    assert can_transition(status, MapContentStatus.ERROR)


def test_rejects_transitions_outside_the_table():
    machine = MapContentMachine()
    with pytest.raises(InvalidTransitionError):
        machine.complete_geocoding([], [])
    with pytest.raises(InvalidTransitionError):
        machine.validate([])
    assert not can_transition(MapContentStatus.IDLE, MapContentStatus.READY)
    assert not can_transition(MapContentStatus.READY, MapContentStatus.AWAITING_VALIDATION)


def test_fail_records_error_and_allows_restart():
    machine = MapContentMachine()
    machine.start_geocoding()
    state = machine.fail("Mapbox unavailable")
    assert state.status is MapContentStatus.ERROR
    assert state.error == "Mapbox unavailable"
    state = machine.start_geocoding()
    assert state.status is MapContentStatus.GEOCODING
    assert state.error is None
