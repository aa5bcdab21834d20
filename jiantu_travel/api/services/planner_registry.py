# jiantu_travel/api/services/planner_registry.py
"""Lifecycle management for per-client itinerary planners."""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from jiantu_travel.api.config import get_planner_config
from jiantu_travel.api.services.planner_service import ItineraryPlanner

logger = logging.getLogger(__name__)


class PlannerSession:
    """A connected client and the planner that holds its itinerary."""

    def __init__(self, client_id: str, planner: ItineraryPlanner):
        self.client_id = client_id
        self.planner = planner
        self.created_at = datetime.now()
        self.last_activity = datetime.now()


class PlannerRegistry:
    """Keeps one ItineraryPlanner per connected client.

    Itineraries live only as long as the connection (plus an idle grace
    period); persistence is somebody else's job.
    """

    def __init__(self, planner_factory: Callable[..., ItineraryPlanner] = ItineraryPlanner,
                 start_cleanup: bool = True):
        self.config = get_planner_config()
        self.planner_factory = planner_factory
        self.sessions: Dict[str, PlannerSession] = {}
        self.lock = threading.Lock()

        if start_cleanup:
            self.cleanup_thread = threading.Thread(target=self._cleanup_loop, daemon=True)
            self.cleanup_thread.start()

        logger.info("PlannerRegistry initialized")

    def create_planner(self, client_id: str, **planner_kwargs) -> Optional[ItineraryPlanner]:
        """Create (or reuse) the planner for *client_id*.

        Returns None when the registry is at capacity.
        """
        with self.lock:
            existing = self.sessions.get(client_id)
            if existing:
                logger.info(f"Reusing planner for client {client_id}")
                existing.last_activity = datetime.now()
                return existing.planner

            if len(self.sessions) >= self.config["max_planners"]:
                logger.warning("Maximum number of planners reached")
                return None

            planner = self.planner_factory(**planner_kwargs)
            self.sessions[client_id] = PlannerSession(client_id, planner)
            logger.info(f"Created planner for client {client_id}")
            return planner

    def get_planner(self, client_id: str) -> Optional[ItineraryPlanner]:
        with self.lock:
            session = self.sessions.get(client_id)
            if session:
                session.last_activity = datetime.now()
                return session.planner
            return None

    def remove_planner(self, client_id: str, reason: str = "manual") -> None:
        with self.lock:
            session = self.sessions.pop(client_id, None)
        if session:
            duration = (datetime.now() - session.created_at).total_seconds()
            logger.info(
                f"Removed planner for client {client_id} - "
                f"Reason: {reason}, Duration: {duration:.1f}s, "
                f"Waypoints: {len(session.planner.store)}"
            )

    def get_stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "planners": len(self.sessions),
                "waypoints": sum(len(s.planner.store) for s in self.sessions.values()),
                "config": {
                    "max_planners": self.config["max_planners"],
                    "idle_timeout_seconds": self.config["idle_timeout_seconds"],
                },
            }

    def _cleanup_loop(self):
        """Background thread to drop planners of clients that went quiet."""
        while True:
            time.sleep(60)
            try:
                self.cleanup_idle()
            except Exception as e:
                logger.error(f"Error in cleanup loop: {e}")

    def cleanup_idle(self) -> int:
        """Remove planners idle for longer than the configured timeout."""
        cutoff = datetime.now() - timedelta(seconds=self.config["idle_timeout_seconds"])
        with self.lock:
            expired = [cid for cid, s in self.sessions.items() if s.last_activity < cutoff]

        for client_id in expired:
            self.remove_planner(client_id, "idle_timeout")

        if expired:
            logger.info(f"Cleaned up {len(expired)} idle planners")
        return len(expired)


# Global registry instance
_planner_registry = None


def get_planner_registry() -> PlannerRegistry:
    """Get the global PlannerRegistry instance."""
    global _planner_registry
    if _planner_registry is None:
        _planner_registry = PlannerRegistry()
    return _planner_registry


__all__ = ["PlannerRegistry", "PlannerSession", "get_planner_registry"]
