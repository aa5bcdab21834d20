"""Failure values returned by the routing, optimization and geocoding adapters.

Adapters never raise across the store boundary: they hand back a
:class:`Failure` which the planner turns into a transient notice.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    NETWORK_ERROR = "network_error"
    NO_ROUTE = "no_route"
    NO_TRIP_FOUND = "no_trip_found"
    SOLVER_BUSY = "solver_busy"
    MALFORMED = "malformed"
    NOT_FOUND = "not_found"
    SUPERSEDED = "superseded"


# Messages shown to the user when the adapter did not supply a better one.
DEFAULT_MESSAGES = {
    FailureKind.INSUFFICIENT_POINTS: "Add more stops first.",
    FailureKind.NETWORK_ERROR: "The routing service could not be reached. Please try again.",
    FailureKind.NO_ROUTE: "Cannot find a route between these locations.",
    FailureKind.NO_TRIP_FOUND: "No trip solution found.",
    FailureKind.SOLVER_BUSY: "The optimization service is busy. Please try again shortly.",
    FailureKind.MALFORMED: "The service returned an unexpected response.",
    FailureKind.NOT_FOUND: "Place not found, try another name.",
    FailureKind.SUPERSEDED: "The order changed while optimizing; optimize again to apply it.",
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str = ""

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, "message", DEFAULT_MESSAGES[self.kind])

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class WaypointNotFoundError(LookupError):
    """Raised by the waypoint store for an unknown id or index."""
