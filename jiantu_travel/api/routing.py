# jiantu_travel/api/routing.py
"""OSRM route and trip service adapters.

Both clients speak the OSRM HTTP API (``/route/v1`` and ``/trip/v1``) and
return either a value object or a :class:`Failure`; they never raise for
transport or service problems and never retry on their own.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

import requests

from jiantu_travel.api.config import get_routing_config
from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.models import Leg, OptimizedRoute, RouteData, Waypoint

logger = logging.getLogger(__name__)

# OSRM response codes meaning "reachable service, but no path between points".
_NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


class _MalformedResponse(Exception):
    """Internal signal: the response did not have the documented shape."""


def format_coordinates(waypoints: Sequence[Waypoint]) -> str:
    """Format waypoints the way OSRM wants them: ``lng,lat;lng,lat``."""
    return ";".join(f"{wp.lng},{wp.lat}" for wp in waypoints)


def parse_route(route: Dict[str, Any], expected_legs: int) -> RouteData:
    """Convert one OSRM route/trip object into RouteData.

    Raises _MalformedResponse when a required field is missing or the leg
    count does not match the number of waypoints.
    """
    try:
        geometry = tuple(
            (float(lat), float(lng)) for lng, lat in route["geometry"]["coordinates"]
        )
        legs = tuple(
            Leg(float(leg["distance"]), float(leg["duration"])) for leg in route.get("legs") or []
        )
        distance = float(route["distance"])
        duration = float(route["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise _MalformedResponse(f"bad route object: {exc!r}") from exc

    if len(legs) != expected_legs:
        raise _MalformedResponse(f"expected {expected_legs} legs, got {len(legs)}")

    return RouteData(distance, duration, geometry, legs)


class OsrmClient:
    """Shared HTTP plumbing for the route and trip services."""

    service = ""

    def __init__(
        self,
        base_url: Optional[str] = None,
        profile: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        cfg = get_routing_config()
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.profile = profile or cfg["profile"]
        self.timeout = timeout if timeout is not None else cfg["timeout_seconds"]
        self.session = session or requests.Session()

    def _url(self, waypoints: Sequence[Waypoint]) -> str:
        return f"{self.base_url}/{self.service}/v1/{self.profile}/{format_coordinates(waypoints)}"

    def _get(self, waypoints: Sequence[Waypoint], params: Dict[str, str]) -> Union[Dict[str, Any], Failure]:
        """Issue the request and return the decoded body or a transport Failure.

        OSRM reports logical errors (``NoRoute`` etc.) with a 400 status and a
        JSON body, so a decodable body is returned even for non-2xx replies.
        """
        url = self._url(waypoints)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout:
            logger.warning(f"OSRM {self.service} request timed out after {self.timeout}s")
            return Failure(FailureKind.NETWORK_ERROR, "The routing service timed out.")
        except requests.RequestException as e:
            logger.error(f"OSRM {self.service} request failed: {e}")
            return Failure(FailureKind.NETWORK_ERROR)

        if response.status_code == 429:
            logger.warning(f"OSRM {self.service} rate limited (429)")
            return self._rate_limited()

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            if response.status_code >= 500 or not response.ok:
                logger.error(f"OSRM {self.service} HTTP {response.status_code}")
                return Failure(
                    FailureKind.NETWORK_ERROR,
                    f"Server error: {response.status_code}",
                )
            logger.error(f"OSRM {self.service} returned a non-JSON body")
            return Failure(FailureKind.MALFORMED)
        return payload

    def _rate_limited(self) -> Failure:
        return Failure(FailureKind.NETWORK_ERROR, "The routing service is rate limiting requests.")

    def _code_failure(self, payload: Dict[str, Any]) -> Optional[Failure]:
        """Map a non-``Ok`` OSRM code to a Failure (None when the code is Ok)."""
        code = payload.get("code")
        if code == "Ok":
            return None
        message = payload.get("message") or ""
        logger.warning(f"OSRM {self.service} answered {code}: {message}")
        if code in _NO_ROUTE_CODES:
            return Failure(FailureKind.NO_ROUTE)
        return Failure(FailureKind.MALFORMED, message or f"Routing service answered {code}.")


class RoutingClient(OsrmClient):
    """Route through waypoints in exactly the order given."""

    service = "route"

    def fetch_route(self, ordered_waypoints: Sequence[Waypoint]) -> Union[RouteData, Failure]:
        if len(ordered_waypoints) < 2:
            return Failure(FailureKind.INSUFFICIENT_POINTS, "At least 2 stops are needed for a route.")

        logger.info(f"Requesting route through {len(ordered_waypoints)} waypoints")
        payload = self._get(
            ordered_waypoints,
            {"overview": "full", "geometries": "geojson", "steps": "false"},
        )
        if isinstance(payload, Failure):
            return payload

        failure = self._code_failure(payload)
        if failure:
            return failure

        routes = payload.get("routes")
        if not routes:
            logger.error("OSRM route response has no routes")
            return Failure(FailureKind.MALFORMED)

        try:
            route = parse_route(routes[0], len(ordered_waypoints) - 1)
        except _MalformedResponse as e:
            logger.error(f"Malformed OSRM route response: {e}")
            return Failure(FailureKind.MALFORMED)

        logger.info(f"Route ready: {route.distance_meters:.0f} m, {route.duration_seconds:.0f} s")
        return route


class OptimizationClient(OsrmClient):
    """Open-path trip optimization with the first waypoint as fixed start."""

    service = "trip"

    def _rate_limited(self) -> Failure:
        return Failure(FailureKind.SOLVER_BUSY)

    def _code_failure(self, payload: Dict[str, Any]) -> Optional[Failure]:
        if payload.get("code") == "NoTrips":
            logger.warning(f"OSRM trip answered NoTrips: {payload.get('message', '')}")
            return Failure(FailureKind.NO_TRIP_FOUND)
        return super()._code_failure(payload)

    def fetch_optimized_route(self, waypoints: Sequence[Waypoint]) -> Union[OptimizedRoute, Failure]:
        if len(waypoints) < 3:
            return Failure(FailureKind.INSUFFICIENT_POINTS, "Add at least 3 stops to optimize the route.")

        logger.info(f"Requesting optimized trip for {len(waypoints)} waypoints")
        payload = self._get(
            waypoints,
            {
                "source": "first",
                "destination": "any",
                "roundtrip": "false",
                "overview": "full",
                "geometries": "geojson",
            },
        )
        if isinstance(payload, Failure):
            return payload

        failure = self._code_failure(payload)
        if failure:
            return failure

        trips = payload.get("trips")
        if not trips or len(trips) != 1:
            # Several trips means the points fall apart into unconnected groups.
            logger.warning(f"OSRM trip returned {len(trips or [])} trips")
            return Failure(FailureKind.NO_TRIP_FOUND)

        try:
            order = map_trip_order(waypoints, payload.get("waypoints"))
            route = parse_route(trips[0], len(waypoints) - 1)
        except _MalformedResponse as e:
            logger.error(f"Malformed OSRM trip response: {e}")
            return Failure(FailureKind.MALFORMED, "Optimization failed: invalid response structure.")

        logger.info(f"Optimized order: {[wp.id for wp in order]}")
        return OptimizedRoute(order, route)


def map_trip_order(waypoints: Sequence[Waypoint], trip_waypoints: Any) -> tuple:
    """Recover the visiting order of the caller's Waypoint objects.

    ``trip_waypoints`` lists the stops in visiting order; each entry's
    ``waypoint_index`` references the stop's original input position. The
    objects are mapped by that position only, never by coordinates, which
    may repeat or come back snapped.
    """
    if not isinstance(trip_waypoints, list) or len(trip_waypoints) != len(waypoints):
        raise _MalformedResponse("waypoints array missing or of the wrong length")

    order = []
    seen = set()
    for position, entry in enumerate(trip_waypoints):
        input_index = entry.get("waypoint_index") if isinstance(entry, dict) else None
        if isinstance(input_index, bool) or not isinstance(input_index, int):
            raise _MalformedResponse(f"missing waypoint_index at trip position {position}")
        if not 0 <= input_index < len(waypoints):
            raise _MalformedResponse(f"waypoint_index {input_index} out of range")
        if input_index in seen:
            raise _MalformedResponse(f"waypoint_index {input_index} used twice")
        seen.add(input_index)
        order.append(waypoints[input_index])

    if order[0] is not waypoints[0]:
        raise _MalformedResponse("trip does not start at the first waypoint")
    return tuple(order)


__all__ = [
    "RoutingClient",
    "OptimizationClient",
    "format_coordinates",
    "parse_route",
    "map_trip_order",
]
