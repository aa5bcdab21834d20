"""Turn a pointer drag gesture into splices on the waypoint store."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from jiantu_travel.planner.store import WaypointStore

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragReorderReconciler:
    """State machine for one drag gesture at a time.

    Hover events splice the dragged waypoint live (transient store changes,
    no routing). The route is recomputed once, on drop, and only when the
    order actually changed.
    """

    def __init__(self, store: WaypointStore, recompute: Callable[[], None]):
        self.store = store
        self._recompute = recompute
        self.state = DragState.IDLE
        self._dragged_id: Optional[str] = None
        self._original_ids: tuple = ()

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    @property
    def dragged_index(self) -> Optional[int]:
        """Current position of the dragged waypoint, or None when idle."""
        if not self.is_dragging or self._dragged_id not in self.store:
            return None
        return self.store.index_of(self._dragged_id)

    def start(self, index: int) -> None:
        if self.is_dragging:
            logger.debug("Drag start ignored, a gesture is already in progress")
            return
        waypoint = self.store[index]  # WaypointNotFoundError leaves us idle
        self._dragged_id = waypoint.id
        self._original_ids = self.store.ids()
        self.state = DragState.DRAGGING
        logger.debug(f"Drag started on {waypoint.id} at index {index}")

    def hover(self, index: int) -> None:
        if not self.is_dragging:
            return
        if self._dragged_id not in self.store:
            logger.info("Dragged waypoint was removed mid-gesture, abandoning drag")
            self._reset()
            return
        if not 0 <= index < len(self.store):
            return
        current = self.store.index_of(self._dragged_id)
        if current == index:
            return
        self.store.reorder(current, index, transient=True)

    def end(self) -> bool:
        """Finish the gesture; returns True if a route recompute was requested."""
        if not self.is_dragging:
            return False
        changed = self.store.ids() != self._original_ids
        self._reset()
        if changed and len(self.store) >= 2:
            self._recompute()
            return True
        return False

    def cancel(self) -> None:
        """Abort the gesture and put the waypoints back in their pre-drag order."""
        if not self.is_dragging:
            return
        original_ids = self._original_ids
        self._reset()
        current_ids = self.store.ids()
        if current_ids == original_ids:
            return
        if sorted(current_ids) != sorted(original_ids):
            # Membership changed during the drag; the current order stands.
            logger.info("Cannot restore pre-drag order, membership changed")
            return
        self.store.replace_all([self.store.get(waypoint_id) for waypoint_id in original_ids], transient=True)

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self._dragged_id = None
        self._original_ids = ()
