"""Shared data structures for itinerary planning.

Every object here is an immutable value: the waypoint store replaces a
Waypoint with an edited copy instead of mutating it, and RouteData is
regenerated rather than patched whenever the itinerary order changes.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field, replace
from typing import Optional

# Fields a user may edit after a waypoint has been placed on the map.
EDITABLE_FIELDS = frozenset({"name", "stay_duration", "notes"})


def new_waypoint_id() -> str:
    """Return an opaque, URL-safe waypoint id."""
    return secrets.token_urlsafe(6)


def validate_coordinates(lat: float, lng: float) -> bool:
    """Validate that coordinates are within valid ranges."""
    return -90 <= lat <= 90 and -180 <= lng <= 180


def _check_stay_duration(value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"stay_duration must be an integer number of minutes, got {value!r}")
    if value < 0:
        raise ValueError(f"stay_duration must not be negative, got {value}")


@dataclass(frozen=True)
class Waypoint:
    """A single stop on the itinerary."""

    id: str
    lat: float
    lng: float
    name: str
    stay_duration: int = 60  # minutes spent at the stop
    notes: Optional[str] = None

    def __post_init__(self):
        if not validate_coordinates(self.lat, self.lng):
            raise ValueError(f"Invalid coordinates: {self.lat}, {self.lng}")
        _check_stay_duration(self.stay_duration)

    def edited(self, **fields) -> "Waypoint":
        """Return a copy with *fields* changed; location and id are fixed."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit waypoint field(s): {', '.join(sorted(unknown))}")
        return replace(self, **fields)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "name": self.name,
            "stay_duration": self.stay_duration,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Leg:
    """Travel between two consecutive waypoints."""

    distance_meters: float
    duration_seconds: float

    def to_dict(self) -> dict:
        return {"distance": self.distance_meters, "duration": self.duration_seconds}


@dataclass(frozen=True)
class RouteData:
    """A computed route through the waypoints, in visiting order.

    ``geometry`` holds (lat, lng) pairs; ``legs[i]`` covers waypoint i → i+1.
    """

    distance_meters: float
    duration_seconds: float
    geometry: tuple = ()
    legs: tuple = ()

    def to_dict(self) -> dict:
        return {
            "distance": self.distance_meters,
            "duration": self.duration_seconds,
            "geometry": [list(point) for point in self.geometry],
            "legs": [leg.to_dict() for leg in self.legs],
        }


@dataclass(frozen=True)
class OptimizedRoute:
    """Solver output mapped back onto the caller's Waypoint objects."""

    order: tuple
    route: RouteData


@dataclass(frozen=True)
class ScheduleEntry:
    """Derived arrival/departure for one waypoint, in minutes since midnight."""

    waypoint_id: str
    arrival: int
    departure: int
    travel_minutes: int = 0


@dataclass(frozen=True)
class GeocodeResult:
    """Best match for a free-text place search."""

    name: str  # full display name, e.g. "Tiantan, Dongcheng District, Beijing, China"
    lat: float
    lng: float


@dataclass(frozen=True)
class Place:
    """A recommended place that can be added to the itinerary."""

    id: str
    name: str
    category: str
    lat: float
    lng: float
    rating: float
    price: int
    tags: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "lat": self.lat,
            "lng": self.lng,
            "rating": self.rating,
            "price": self.price,
            "tags": list(self.tags),
        }
