# jiantu_travel/api/geocoding.py
from __future__ import annotations

import logging
from typing import Dict, Optional, Union

import googlemaps
import requests

from jiantu_travel.api.config import get_geocoding_config, get_google_maps_config
from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.models import GeocodeResult

logger = logging.getLogger(__name__)

SearchOutcome = Union[GeocodeResult, Failure]


def short_name(display_name: str) -> str:
    """Leading component of a multi-part display name.

    "Temple of Heaven, Dongcheng District, Beijing" -> "Temple of Heaven"
    """
    return display_name.split(",")[0].strip()


class _CachingGeocoder:
    """Shared per-query cache; only successful lookups are remembered."""

    def __init__(self):
        self._cache: Dict[str, GeocodeResult] = {}

    def search(self, query: str) -> SearchOutcome:
        """Resolve *query* to its single best match, or a NOT_FOUND failure."""
        query = (query or "").strip()
        if not query:
            return Failure(FailureKind.NOT_FOUND)

        key = query.lower()
        if key in self._cache:
            logger.debug(f"Geocoding cache hit for '{query}'")
            return self._cache[key]

        logger.debug(f"Geocoding place: {query}")
        outcome = self._lookup(query)
        if isinstance(outcome, GeocodeResult):
            logger.debug(f"Geocoded {query} to {outcome.lat}, {outcome.lng}")
            self._cache[key] = outcome
        else:
            logger.warning(f"Failed to geocode '{query}': {outcome.kind.value}")
        return outcome

    def _lookup(self, query: str) -> SearchOutcome:
        raise NotImplementedError


class NominatimGeocoder(_CachingGeocoder):
    """OpenStreetMap Nominatim search, limited to one result."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__()
        cfg = get_geocoding_config()
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.user_agent = user_agent or cfg["user_agent"]
        self.timeout = timeout if timeout is not None else cfg["timeout_seconds"]
        self.session = session or requests.Session()

    def _lookup(self, query: str) -> SearchOutcome:
        try:
            response = self.session.get(
                f"{self.base_url}/search",
                params={"format": "json", "q": query, "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
        except requests.RequestException as e:
            logger.error(f"Nominatim search error for '{query}': {e}")
            return Failure(FailureKind.NETWORK_ERROR, "Place search is unavailable right now.")
        except ValueError:
            return Failure(FailureKind.MALFORMED)

        if not isinstance(results, list):
            return Failure(FailureKind.MALFORMED)
        if not results:
            return Failure(FailureKind.NOT_FOUND)

        best = results[0]
        try:
            return GeocodeResult(best["display_name"], float(best["lat"]), float(best["lon"]))
        except (KeyError, TypeError, ValueError):
            return Failure(FailureKind.MALFORMED)


class GoogleGeocoder(_CachingGeocoder):
    """Google Geocoding API through the googlemaps client."""

    def __init__(self, client: Optional[googlemaps.Client] = None):
        super().__init__()
        self._gmaps = client

    def _get_client(self) -> googlemaps.Client:
        """Return a cached googlemaps.Client instance."""
        if self._gmaps is None:
            api_key = get_google_maps_config().get("api_key", "")
            if not api_key:
                raise ValueError("No Google Maps API key found in config")
            logger.info(f"Initializing Google Maps client with key: {api_key[:10]}...")
            self._gmaps = googlemaps.Client(key=api_key)
        return self._gmaps

    def _lookup(self, query: str) -> SearchOutcome:
        try:
            results = self._get_client().geocode(query, language="en")
        except (googlemaps.exceptions.Timeout, googlemaps.exceptions.TransportError) as e:
            logger.error(f"Google geocoding transport error for '{query}': {e}")
            return Failure(FailureKind.NETWORK_ERROR, "Place search is unavailable right now.")
        except googlemaps.exceptions.ApiError as e:
            if e.status == "ZERO_RESULTS":
                return Failure(FailureKind.NOT_FOUND)
            logger.error(f"Google geocoding API error for '{query}': {e}")
            return Failure(FailureKind.MALFORMED, str(e))

        if not results:
            return Failure(FailureKind.NOT_FOUND)

        try:
            best = results[0]
            loc = best["geometry"]["location"]
            return GeocodeResult(best.get("formatted_address") or query, float(loc["lat"]), float(loc["lng"]))
        except (KeyError, TypeError, ValueError):
            return Failure(FailureKind.MALFORMED)


def create_geocoder() -> _CachingGeocoder:
    """Build the geocoder selected by the GEOCODER setting."""
    backend = get_geocoding_config()["backend"]
    if backend == "google":
        return GoogleGeocoder()
    return NominatimGeocoder()


# Re-export for clean imports elsewhere
__all__ = [
    "NominatimGeocoder",
    "GoogleGeocoder",
    "create_geocoder",
    "short_name",
]
