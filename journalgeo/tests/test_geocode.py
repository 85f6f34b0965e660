from types import SimpleNamespace

import pytest
import requests

from journalgeo.config import Config
from journalgeo.geocode import (
    NO_GEOCODE_RESULT,
    NOT_IN_GAZETTEER,
    GeocodeCache,
    Geocoder,
    geocode_location,
)
from journalgeo.models import JournalEntry
from journalgeo.pipeline import run_geocoding


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummyRequests:
    def __init__(self, payload=None, status_code=200, error=None):
        self.payload = payload
        self.status_code = status_code
        self.error = error
        self.calls = []

    def get(self, endpoint, params=None, timeout=15):
        self.calls.append(SimpleNamespace(endpoint=endpoint, params=params, timeout=timeout))
        if self.error is not None:
            raise self.error
        return DummyResponse(self.payload, self.status_code)


@pytest.fixture
def config_with_token():
    return Config(mapbox_access_token="test-token", geocode_min_interval=0)


def test_gazetteer_hit_does_not_touch_network(monkeypatch, config_with_token):
    dummy = DummyRequests({"features": []})
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result = Geocoder(config_with_token).geocode_location("Amman")
    assert result.name == "Amman"
    assert result.coordinates == (35.9106, 31.9539)
    assert result.confidence == 0.9
    assert dummy.calls == []


def test_gazetteer_lookup_is_case_and_space_insensitive(config_with_token):
    result = Geocoder(config_with_token).geocode_location("  WADI RUM ")
    assert result.coordinates == (35.4155, 29.5324)
    assert result.name == "  WADI RUM "


def test_second_lookup_comes_from_cache(config_with_token):
    cache = GeocodeCache()
    geocoder = Geocoder(config_with_token, cache=cache)
    geocoder.geocode_location("Jerash")
    assert "jerash" in cache
    result, source = geocoder.geocode_candidate("jerash")
    assert source == "cache"
    assert result.confidence == 1.0


def test_caches_are_not_shared_between_geocoders(config_with_token):
    first = Geocoder(config_with_token)
    second = Geocoder(config_with_token)
    first.geocode_location("Petra")
    assert len(first.cache) == 1
    assert len(second.cache) == 0


def test_remote_success_uses_raw_name_and_caches(monkeypatch, config_with_token):
    payload = {
        "features": [
            {"place_name": "Umm Qais, Irbid, Jordan", "center": [35.6804, 32.6552], "relevance": 0.8}
        ]
    }
    dummy = DummyRequests(payload)
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    geocoder = Geocoder(config_with_token)

    result = geocoder.geocode_location("Umm Qais")

    assert result.name == "Umm Qais, Irbid, Jordan"
    assert result.coordinates == (35.6804, 32.6552)
    assert result.confidence == 0.8
    call = dummy.calls[0]
    assert call.endpoint.endswith("/mapbox.places/Umm%20Qais.json")
    assert call.params == {
        "access_token": "test-token",
        "country": "JO",
        "types": "place,locality,neighborhood",
        "limit": 1,
    }
    assert geocoder.cache.get("umm qais") == (35.6804, 32.6552)

    again = geocoder.geocode_location("Umm Qais")
    assert again.confidence == 1.0
    assert len(dummy.calls) == 1


def test_missing_relevance_defaults(monkeypatch, config_with_token):
    dummy = DummyRequests({"features": [{"center": [35.1, 31.1]}]})
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result = Geocoder(config_with_token).geocode_location("Shobak")
    assert result.name == "Shobak"
    assert result.confidence == 0.5


def test_zero_features_returns_none(monkeypatch, config_with_token):
    dummy = DummyRequests({"features": []})
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result, reason = Geocoder(config_with_token).geocode_candidate("Unknown Place")
    assert result is None
    assert reason == NO_GEOCODE_RESULT


def test_http_error_is_reported_not_raised(monkeypatch, config_with_token):
    dummy = DummyRequests({"message": "Not Authorized"}, status_code=401)
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result, reason = Geocoder(config_with_token).geocode_candidate("Unknown Place")
    assert result is None
    assert reason == "geocoding API error: 401"


def test_network_error_is_reported_not_raised(monkeypatch, config_with_token):
    dummy = DummyRequests(error=requests.ConnectionError("connection refused"))
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result, reason = Geocoder(config_with_token).geocode_candidate("Unknown Place")
    assert result is None
    assert reason.startswith("network error")


def test_malformed_json_is_reported_not_raised(monkeypatch, config_with_token):
    dummy = DummyRequests(ValueError("not json"))
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    result, reason = Geocoder(config_with_token).geocode_candidate("Unknown Place")
    assert result is None
    assert reason == "invalid API response"


def test_without_token_only_gazetteer_is_used(monkeypatch):
    dummy = DummyRequests({"features": [{"center": [1, 2]}]})
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    geocoder = Geocoder(Config(mapbox_access_token=None))
    result, reason = geocoder.geocode_candidate("Unknown Place")
    assert result is None
    assert reason == NOT_IN_GAZETTEER
    assert dummy.calls == []


def test_injected_session_is_used(config_with_token):
    session = DummyRequests({"features": []})
    Geocoder(config_with_token, session=session).geocode_location("Nowhere")
    assert len(session.calls) == 1


def test_module_level_geocode_location(monkeypatch):
    dummy = DummyRequests({"features": []})
    monkeypatch.setattr("journalgeo.geocode.requests", dummy)
    assert geocode_location("Amman", "token").coordinates == (35.9106, 31.9539)
    assert geocode_location("Unknown Place", "token", config=Config(geocode_min_interval=0)) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"features": [{"center": [35.0, 31.0], "relevance": "high"}]},
        {"features": [{"center": [35.0, 31.0], "place_name": 42}]},
        {"features": {"a": 1}},
        {"features": [{"center": [35.0]}]},
        {"features": ["not a feature"]},
    ],
)
def test_malformed_feature_is_reported_not_raised(config_with_token, payload):
    geocoder = Geocoder(config_with_token, session=DummyRequests(payload))
    result, reason = geocoder.geocode_candidate("Unknown Place")
    assert result is None
    assert reason == "invalid API response"
    assert "unknown place" not in geocoder.cache


def test_malformed_feature_does_not_abort_run(config_with_token):
    entry = JournalEntry(day=1, date="1 janvier", title="Jour 1", location="Unknown Place, Amman", story="...", mood="Bien")
    geocoder = Geocoder(config_with_token, session=DummyRequests({"features": [{"center": [35, 31], "relevance": "high"}]}))

    report = run_geocoding([entry], geocoder)

    assert [loc.name for loc in report.pending] == ["Amman"]
    assert [(loc.name, loc.reason) for loc in report.failed] == [("Unknown Place", "invalid API response")]
