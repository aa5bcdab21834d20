"""Shared fakes for the planner tests: no test touches the network."""

import itertools

import pytest
import requests

from jiantu_travel.api.models import Leg, OptimizedRoute, RouteData, Waypoint

_ids = itertools.count(1)


def make_waypoint(name=None, lat=39.90, lng=116.40, stay_duration=60, notes=None, id=None):
    n = next(_ids)
    return Waypoint(id or f"wp{n}", lat, lng, name or f"Place {n}", stay_duration, notes)


def make_route(n_waypoints, leg_seconds=600.0):
    legs = tuple(Leg(1000.0, leg_seconds) for _ in range(n_waypoints - 1))
    return RouteData(
        distance_meters=1000.0 * len(legs),
        duration_seconds=leg_seconds * len(legs),
        geometry=((39.90, 116.40), (39.91, 116.41)),
        legs=legs,
    )


def osrm_route(leg_durations, leg_distance=1000.0):
    """An OSRM route/trip object with the given leg durations (seconds)."""
    legs = [{"distance": leg_distance, "duration": d, "steps": [], "summary": ""} for d in leg_durations]
    return {
        "distance": leg_distance * len(legs),
        "duration": float(sum(leg_durations)),
        "weight": float(sum(leg_durations)),
        "geometry": {"type": "LineString", "coordinates": [[116.40, 39.90], [116.45, 39.95]]},
        "legs": legs,
    }


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session; replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class ManualSpawner:
    """Collects background tasks so a test decides when (and in which order) they run."""

    def __init__(self):
        self.tasks = []

    def __call__(self, fn):
        self.tasks.append(fn)

    def run(self, index=0):
        self.tasks.pop(index)()

    def run_all(self):
        while self.tasks:
            self.tasks.pop(0)()


class FakeRoutingClient:
    def __init__(self, *results):
        self.results = list(results)
        self.requests = []

    def fetch_route(self, waypoints):
        self.requests.append(tuple(wp.id for wp in waypoints))
        if self.results:
            return self.results.pop(0)
        return make_route(len(waypoints))


class FakeOptimizationClient:
    """Answers with a fixed permutation of input positions, e.g. [0, 2, 1]."""

    def __init__(self, permutation=None, failure=None):
        self.permutation = permutation
        self.failure = failure
        self.requests = []

    def fetch_optimized_route(self, waypoints):
        self.requests.append(tuple(wp.id for wp in waypoints))
        if self.failure:
            return self.failure
        order = tuple(waypoints[i] for i in self.permutation)
        return OptimizedRoute(order, make_route(len(waypoints), leg_seconds=300.0))


class FakeGeocoder:
    def __init__(self, result):
        self.result = result
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        return self.result


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def spawner():
    return ManualSpawner()


@pytest.fixture
def clock():
    return FakeClock()
