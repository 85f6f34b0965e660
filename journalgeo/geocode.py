"""Gazetteer-first geocoding with a Mapbox fallback."""
from __future__ import annotations

import logging
import time
from typing import Dict, Iterator, Optional, Tuple
from urllib.parse import quote

import requests
from pydantic import ValidationError
from requests import HTTPError, RequestException

from .config import Config, DEFAULT_CONFIG
from .gazetteer import lookup, normalize_place_name
from .models import Coordinates, GeocodeResult

logger = logging.getLogger(__name__)

MAPBOX_ENDPOINT = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"

CACHE_CONFIDENCE = 1.0
GAZETTEER_CONFIDENCE = 0.9
DEFAULT_RELEVANCE = 0.5

NOT_IN_GAZETTEER = "not in gazetteer"
NO_GEOCODE_RESULT = "no geocode result"
INVALID_RESPONSE = "invalid API response"


class GeocodeCache:
    """Memo of resolved coordinates keyed by normalized place name."""

    def __init__(self) -> None:
        self._entries: Dict[str, Coordinates] = {}

    def get(self, name: str) -> Optional[Coordinates]:
        return self._entries.get(normalize_place_name(name))

    def set(self, name: str, coordinates: Coordinates) -> None:
        self._entries[normalize_place_name(name)] = coordinates

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_place_name(name) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


class Geocoder:
    """Resolve place names to coordinates.

    Lookups go to the cache, then the static gazetteer, then (when an access
    token is configured) the Mapbox geocoding API. Remote calls are spaced by
    ``config.geocode_min_interval`` seconds.
    """

    def __init__(self, config: Config = DEFAULT_CONFIG, cache: Optional[GeocodeCache] = None, session=None) -> None:
        self.config = config
        self.cache = cache if cache is not None else GeocodeCache()
        self._session = session
        self._last_request: Optional[float] = None

    def _throttle(self) -> None:
        if self._last_request is None:
            return
        wait = self.config.geocode_min_interval - (time.monotonic() - self._last_request)
        if wait > 0:
            time.sleep(wait)

    def _request(self, name: str) -> dict:
        http = self._session or requests
        endpoint = MAPBOX_ENDPOINT.format(query=quote(name, safe=""))
        params = {
            "access_token": self.config.mapbox_access_token,
            "country": self.config.country,
            "types": self.config.geocode_types,
            "limit": 1,
        }
        self._throttle()
        try:
            response = http.get(endpoint, params=params, timeout=self.config.request_timeout)
            response.raise_for_status()
            return response.json()
        finally:
            self._last_request = time.monotonic()

    def _remote_candidate(self, name: str) -> Tuple[Optional[GeocodeResult], str]:
        try:
            data = self._request(name)
        except HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "unknown"
            logger.warning("Geocoding API error %s for %r", status, name)
            return None, f"geocoding API error: {status}"
        except ValueError:
            logger.warning("Malformed geocoding response for %r", name)
            return None, INVALID_RESPONSE
        except RequestException as exc:
            logger.warning("Network error while geocoding %r: %s", name, exc)
            return None, f"network error: {exc}"

        features = data.get("features") if isinstance(data, dict) else None
        if not features:
            return None, NO_GEOCODE_RESULT
        try:
            feature = features[0]
            lon, lat = feature["center"]
            coordinates = (float(lon), float(lat))
            result = GeocodeResult(
                name=feature.get("place_name") or name,
                coordinates=coordinates,
                confidence=feature.get("relevance") or DEFAULT_RELEVANCE,
            )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError, ValidationError):
            logger.warning("Unusable geocoding feature for %r", name)
            return None, INVALID_RESPONSE
        self.cache.set(name, coordinates)
        return result, "remote"

    def geocode_candidate(self, name: str) -> Tuple[Optional[GeocodeResult], str]:
        """Geocode ``name`` and report where the answer came from or why it failed."""
        cached = self.cache.get(name)
        if cached is not None:
            return GeocodeResult(name=name, coordinates=cached, confidence=CACHE_CONFIDENCE), "cache"

        known = lookup(name)
        if known is not None:
            self.cache.set(name, known)
            return GeocodeResult(name=name, coordinates=known, confidence=GAZETTEER_CONFIDENCE), "gazetteer"

        if not self.config.remote_geocoding_enabled:
            logger.debug("%r is not in the gazetteer and remote geocoding is disabled", name)
            return None, NOT_IN_GAZETTEER

        # The remote query uses the raw name, not the normalized key.
        return self._remote_candidate(name)

    def geocode_location(self, name: str) -> Optional[GeocodeResult]:
        result, _ = self.geocode_candidate(name)
        return result


def geocode_location(
    name: str,
    api_token: Optional[str],
    cache: Optional[GeocodeCache] = None,
    config: Config = DEFAULT_CONFIG,
) -> Optional[GeocodeResult]:
    """Geocode a single place name; None means it could not be resolved."""
    return Geocoder(config.with_token(api_token), cache=cache).geocode_location(name)
