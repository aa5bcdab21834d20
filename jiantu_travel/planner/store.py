"""Ordered waypoint store: the single source of truth for itinerary order."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List

from jiantu_travel.api.errors import WaypointNotFoundError
from jiantu_travel.api.models import Waypoint

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERTED = "inserted"
    REMOVED = "removed"
    UPDATED = "updated"
    REORDERED = "reordered"
    REPLACED = "replaced"


@dataclass(frozen=True)
class StoreChange:
    """Notification sent to subscribers after every mutation."""

    kind: ChangeKind
    size_before: int
    size_after: int
    # Live drag splices are transient: shown immediately, never routed.
    transient: bool = False

    @property
    def changes_route(self) -> bool:
        """True when membership or order changed, i.e. legs no longer line up."""
        return self.kind is not ChangeKind.UPDATED


StoreListener = Callable[[StoreChange], None]


class WaypointStore:
    """Ordered collection of waypoints with a synchronous mutation API.

    Unknown ids and out-of-range indices raise WaypointNotFoundError and
    leave the store untouched.
    """

    def __init__(self, waypoints: Iterable[Waypoint] = ()):
        self._waypoints: List[Waypoint] = []
        self._listeners: List[StoreListener] = []
        for waypoint in waypoints:
            self._check_new_id(waypoint.id)
            self._waypoints.append(waypoint)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, size_before: int, transient: bool = False) -> None:
        change = StoreChange(kind, size_before, len(self._waypoints), transient)
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._waypoints)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(list(self._waypoints))

    def __getitem__(self, index: int) -> Waypoint:
        return self._waypoints[self._check_index(index)]

    def snapshot(self) -> tuple:
        return tuple(self._waypoints)

    def ids(self) -> tuple:
        return tuple(wp.id for wp in self._waypoints)

    def index_of(self, waypoint_id: str) -> int:
        for index, waypoint in enumerate(self._waypoints):
            if waypoint.id == waypoint_id:
                return index
        raise WaypointNotFoundError(f"No waypoint with id {waypoint_id!r}")

    def get(self, waypoint_id: str) -> Waypoint:
        return self._waypoints[self.index_of(waypoint_id)]

    def __contains__(self, waypoint_id) -> bool:
        return any(wp.id == waypoint_id for wp in self._waypoints)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, waypoint: Waypoint, at_end: bool = True) -> None:
        """Append *waypoint*, or put it first when ``at_end`` is false."""
        self._check_new_id(waypoint.id)
        size_before = len(self._waypoints)
        if at_end:
            self._waypoints.append(waypoint)
        else:
            self._waypoints.insert(0, waypoint)
        logger.debug(f"Inserted waypoint {waypoint.id} ({size_before + 1} total)")
        self._notify(ChangeKind.INSERTED, size_before)

    def remove(self, waypoint_id: str) -> Waypoint:
        index = self.index_of(waypoint_id)
        size_before = len(self._waypoints)
        removed = self._waypoints.pop(index)
        logger.debug(f"Removed waypoint {waypoint_id} ({size_before - 1} left)")
        self._notify(ChangeKind.REMOVED, size_before)
        return removed

    def update(self, waypoint_id: str, **fields) -> Waypoint:
        """Replace a waypoint with an edited copy (name, stay_duration, notes)."""
        index = self.index_of(waypoint_id)
        edited = self._waypoints[index].edited(**fields)
        self._waypoints[index] = edited
        self._notify(ChangeKind.UPDATED, len(self._waypoints))
        return edited

    def reorder(self, from_index: int, to_index: int, transient: bool = False) -> None:
        """Move the waypoint at *from_index* so that it ends up at *to_index*."""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return
        waypoint = self._waypoints.pop(from_index)
        self._waypoints.insert(to_index, waypoint)
        self._notify(ChangeKind.REORDERED, len(self._waypoints), transient)

    def replace_all(self, waypoints: Iterable[Waypoint], transient: bool = False) -> None:
        """Swap in a whole new ordered list, e.g. an optimized order."""
        new_list = list(waypoints)
        seen = set()
        for waypoint in new_list:
            if waypoint.id in seen:
                raise ValueError(f"Duplicate waypoint id {waypoint.id!r}")
            seen.add(waypoint.id)
        size_before = len(self._waypoints)
        self._waypoints = new_list
        self._notify(ChangeKind.REPLACED, size_before, transient)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._waypoints):
            raise WaypointNotFoundError(f"No waypoint at index {index!r}")
        return index

    def _check_new_id(self, waypoint_id: str) -> None:
        if waypoint_id in self:
            raise ValueError(f"Duplicate waypoint id {waypoint_id!r}")
