# jiantu_travel/api/services/planner_service.py
"""Service layer tying the waypoint store to routing and scheduling."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from jiantu_travel.api.config import get_planner_config
from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.geocoding import create_geocoder, short_name
from jiantu_travel.api.models import GeocodeResult, RouteData, ScheduleEntry, Waypoint, new_waypoint_id
from jiantu_travel.api.recommendations import get_place
from jiantu_travel.api.routing import OptimizationClient, RoutingClient
from jiantu_travel.planner.drag import DragReorderReconciler
from jiantu_travel.planner.schedule import calculate_schedule, format_time, parse_time, travel_minutes
from jiantu_travel.planner.store import ChangeKind, StoreChange, WaypointStore

logger = logging.getLogger(__name__)


def spawn_thread(fn: Callable[[], None]) -> None:
    """Run *fn* on a daemon thread (used when no event loop helper is given)."""
    threading.Thread(target=fn, daemon=True).start()


@dataclass(frozen=True)
class Notice:
    """A transient, auto-dismissing failure message."""

    kind: FailureKind
    message: str
    expires_at: float

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class ItineraryPlanner:
    """One user's itinerary: store, derived route and schedule.

    Network calls go through ``spawn`` so UI events never wait on them.
    Every route/optimization request is tagged with a sequence number and
    its response is committed only if no newer request has been issued
    since; anything else is dropped silently.
    """

    def __init__(
        self,
        routing_client: Optional[RoutingClient] = None,
        optimization_client: Optional[OptimizationClient] = None,
        geocoder=None,
        spawn: Optional[Callable[[Callable[[], None]], Any]] = None,
        on_change: Optional[Callable[[Dict[str, Any]], None]] = None,
        on_notice: Optional[Callable[[Dict[str, Any]], None]] = None,
        start_time: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = get_planner_config()
        self.routing_client = routing_client or RoutingClient()
        self.optimization_client = optimization_client or OptimizationClient()
        self.geocoder = geocoder or create_geocoder()
        self._spawn = spawn or spawn_thread
        self.on_change = on_change
        self.on_notice = on_notice
        self._clock = clock

        self.store = WaypointStore()
        self.drag = DragReorderReconciler(self.store, self._request_route)
        self.start_minutes = parse_time(start_time or self.config["default_start_time"])

        self.route: Optional[RouteData] = None
        self._route_ids: tuple = ()
        self._seq = 0
        self._pending = False
        self._suppress_recompute = False
        self.notice: Optional[Notice] = None

        # Serializes UI events with responses committed from background tasks.
        self._lock = threading.RLock()
        self.store.subscribe(self._on_store_change)

    # ------------------------------------------------------------------
    # Store → route recompute policy
    # ------------------------------------------------------------------

    def _on_store_change(self, change: StoreChange) -> None:
        if change.transient or self._suppress_recompute:
            return
        if change.size_after < 2:
            if self.route is not None or self._pending:
                logger.debug("Fewer than 2 waypoints, clearing route")
            self._clear_route()
        elif change.kind is not ChangeKind.UPDATED:
            self._request_route()

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _clear_route(self) -> None:
        # Advancing the sequence invalidates anything still in flight.
        self._next_seq()
        self.route = None
        self._route_ids = ()
        self._pending = False

    def _request_route(self) -> None:
        seq = self._next_seq()
        waypoints = self.store.snapshot()
        self._pending = True
        logger.debug(f"Route request #{seq} for {len(waypoints)} waypoints")

        def task():
            try:
                result = self.routing_client.fetch_route(waypoints)
            except Exception as e:
                logger.exception(f"Route request #{seq} crashed: {e}")
                result = Failure(FailureKind.NETWORK_ERROR, "Route request failed.")
            self._commit_route(seq, waypoints, result)

        self._spawn(task)

    def _commit_route(self, seq: int, waypoints: tuple, result) -> None:
        with self._lock:
            if seq != self._seq:
                logger.debug(f"Discarding stale route response #{seq} (latest #{self._seq})")
                return
            self._pending = False
            if isinstance(result, Failure):
                self._raise_notice(result)
            else:
                self.route = result
                self._route_ids = tuple(wp.id for wp in waypoints)
            self._publish()

    # ------------------------------------------------------------------
    # Waypoint operations
    # ------------------------------------------------------------------

    def add_waypoint(
        self,
        name: str,
        lat: float,
        lng: float,
        stay_duration: Optional[int] = None,
        notes: Optional[str] = None,
        at_end: bool = True,
    ) -> Waypoint:
        if stay_duration is None:
            stay_duration = self.config["default_stay_minutes"]
        waypoint = Waypoint(new_waypoint_id(), float(lat), float(lng), name, stay_duration, notes)
        with self._lock:
            self.store.insert(waypoint, at_end=at_end)
            logger.info(f"Added waypoint '{name}' ({len(self.store)} total)")
            self._publish()
        return waypoint

    def add_from_map_click(self, lat: float, lng: float) -> Waypoint:
        return self.add_waypoint(f"Stop {len(self.store) + 1}", lat, lng)

    def add_from_recommendation(self, place_id: str) -> Waypoint:
        place = get_place(place_id)
        if place is None:
            raise ValueError(f"Unknown recommended place {place_id!r}")
        return self.add_waypoint(place.name, place.lat, place.lng)

    def add_from_search(self, query: str) -> None:
        """Geocode *query* in the background and add the best match."""
        if not query or not query.strip():
            return

        def task():
            try:
                result = self.geocoder.search(query)
            except Exception as e:
                logger.exception(f"Place search for '{query}' crashed: {e}")
                result = Failure(FailureKind.NETWORK_ERROR, "Place search failed.")
            with self._lock:
                if isinstance(result, GeocodeResult):
                    try:
                        self.add_waypoint(short_name(result.name), result.lat, result.lng)
                        return
                    except ValueError as e:
                        logger.warning(f"Rejected search result for '{query}': {e}")
                        result = Failure(FailureKind.MALFORMED, "The search returned an unusable place.")
                self._raise_notice(result)
                self._publish()

        self._spawn(task)

    def remove_waypoint(self, waypoint_id: str) -> Waypoint:
        with self._lock:
            removed = self.store.remove(waypoint_id)
            logger.info(f"Removed waypoint '{removed.name}' ({len(self.store)} left)")
            self._publish()
        return removed

    def update_waypoint(self, waypoint_id: str, **fields) -> Waypoint:
        with self._lock:
            edited = self.store.update(waypoint_id, **fields)
            self._publish()
        return edited

    def reorder(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self.store.reorder(from_index, to_index)
            self._publish()

    def move_waypoint(self, index: int, direction: str) -> bool:
        """Swap a waypoint with its neighbour; False at either end of the list."""
        if direction not in ("up", "down"):
            raise ValueError(f"Invalid direction {direction!r}, expected 'up' or 'down'")
        with self._lock:
            target = index - 1 if direction == "up" else index + 1
            self.store[index]  # unknown index raises before the boundary check
            if not 0 <= target < len(self.store):
                return False
            self.reorder(index, target)
            return True

    def set_start_time(self, value: str) -> None:
        minutes = parse_time(value)
        with self._lock:
            self.start_minutes = minutes
            self._publish()

    # ------------------------------------------------------------------
    # Drag gesture
    # ------------------------------------------------------------------

    def drag_start(self, index: int) -> None:
        with self._lock:
            self.drag.start(index)
            self._publish()

    def drag_over(self, index: int) -> None:
        with self._lock:
            self.drag.hover(index)
            self._publish()

    def drag_end(self) -> bool:
        with self._lock:
            requested = self.drag.end()
            self._publish()
        return requested

    def drag_cancel(self) -> None:
        with self._lock:
            self.drag.cancel()
            self._publish()

    # ------------------------------------------------------------------
    # Routing / optimization
    # ------------------------------------------------------------------

    def refresh_route(self) -> None:
        """Recompute the route for the current order (or clear it below 2 stops)."""
        with self._lock:
            if len(self.store) < 2:
                self._clear_route()
            else:
                self._request_route()
            self._publish()

    def optimize(self) -> bool:
        """Ask the trip service for a shorter open-path order.

        The store is reordered only once the service answers; nothing is
        applied optimistically.
        """
        with self._lock:
            if len(self.store) < 3:
                self._raise_notice(Failure(
                    FailureKind.INSUFFICIENT_POINTS,
                    "Add at least 3 stops to optimize the route.",
                ))
                self._publish()
                return False

            seq = self._next_seq()
            waypoints = self.store.snapshot()
            self._pending = True
            self.notice = None
            logger.info(f"Optimization request #{seq} for {len(waypoints)} waypoints")
            self._publish()

        def task():
            try:
                result = self.optimization_client.fetch_optimized_route(waypoints)
            except Exception as e:
                logger.exception(f"Optimization request #{seq} crashed: {e}")
                result = Failure(FailureKind.NETWORK_ERROR, "Optimization request failed.")
            self._commit_optimization(seq, waypoints, result)

        self._spawn(task)
        return True

    def _commit_optimization(self, seq: int, waypoints: tuple, result) -> None:
        with self._lock:
            if seq != self._seq:
                logger.debug(f"Discarding stale optimization response #{seq} (latest #{self._seq})")
                return
            self._pending = False
            if self.store.ids() != tuple(wp.id for wp in waypoints):
                # Only a live drag reorders without a new request; its drop reroutes.
                logger.info(f"Order changed while optimization #{seq} was in flight, discarding")
                self._raise_notice(Failure(FailureKind.SUPERSEDED))
            elif isinstance(result, Failure):
                self._raise_notice(Failure(result.kind, f"Optimization failed: {result.message}"))
                if not self.route_matches_order:
                    self._request_route()
            else:
                # Map onto the current objects so edits made meanwhile survive.
                order = [self.store.get(wp.id) for wp in result.order]
                self._suppress_recompute = True
                try:
                    self.store.replace_all(order)
                finally:
                    self._suppress_recompute = False
                self.route = result.route
                self._route_ids = tuple(wp.id for wp in order)
                logger.info("Applied optimized order")
            self._publish()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def route_pending(self) -> bool:
        return self._pending

    @property
    def route_matches_order(self) -> bool:
        return self.route is not None and self._route_ids == self.store.ids()

    def schedule(self) -> List[ScheduleEntry]:
        with self._lock:
            legs = self.route.legs if self.route_matches_order else ()
            return calculate_schedule(self.store.snapshot(), legs, self.start_minutes)

    def active_notice(self) -> Optional[Notice]:
        if self.notice is not None and self._clock() >= self.notice.expires_at:
            self.notice = None
        return self.notice

    def _raise_notice(self, failure: Failure) -> None:
        self.notice = Notice(failure.kind, failure.message, self._clock() + self.config["notice_seconds"])
        logger.warning(f"Planner notice ({failure.kind.value}): {failure.message}")
        if self.on_notice:
            self.on_notice(self.notice.to_dict())

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the whole itinerary for the front end."""
        with self._lock:
            notice = self.active_notice()
            return {
                "waypoints": [wp.to_dict() for wp in self.store],
                "route": self.route.to_dict() if self.route else None,
                "schedule": [
                    {
                        "waypoint_id": entry.waypoint_id,
                        "arrival": entry.arrival,
                        "departure": entry.departure,
                        "travel_minutes": entry.travel_minutes,
                        "arrival_time": format_time(entry.arrival),
                        "departure_time": format_time(entry.departure),
                    }
                    for entry in self.schedule()
                ],
                "start_time": format_time(self.start_minutes),
                "total_distance_km": round(self.route.distance_meters / 1000, 1) if self.route else 0,
                "total_travel_minutes": travel_minutes(self.route.duration_seconds) if self.route else 0,
                "route_pending": self._pending,
                "route_matches_order": self.route_matches_order,
                "can_optimize": len(self.store) >= 3,
                "dragging": self.drag.is_dragging,
                "dragged_index": self.drag.dragged_index,
                "notice": notice.to_dict() if notice else None,
            }

    def _publish(self) -> None:
        if self.on_change:
            self.on_change(self.snapshot())


__all__ = ["ItineraryPlanner", "Notice", "spawn_thread"]
