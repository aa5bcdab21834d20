"""Itinerary state: waypoint store, schedule derivation and drag reordering."""

from .store import WaypointStore, StoreChange, ChangeKind
from .schedule import calculate_schedule, parse_time, format_time
from .drag import DragReorderReconciler, DragState

__all__ = [
    'WaypointStore', 'StoreChange', 'ChangeKind',
    'calculate_schedule', 'parse_time', 'format_time',
    'DragReorderReconciler', 'DragState',
]
