# jiantu_travel/routes/websocket/base.py
"""Base WebSocket handler: per-client planner lookup and error reporting."""

import logging
from flask import request
from flask_socketio import emit

logger = logging.getLogger(__name__)

NAMESPACE = "/travel/ws"


class BaseWebSocketHandler:
    """Shared plumbing for handlers that act on the caller's ItineraryPlanner."""

    def __init__(self, socketio, registry, namespace=NAMESPACE):
        self.socketio = socketio
        self.registry = registry
        self.namespace = namespace

    @property
    def client_id(self):
        return request.sid

    def emit_to_client(self, event, data, room=None):
        """Emit to the current client, or to ``room`` from a background task."""
        try:
            if room:
                self.socketio.emit(event, data, to=room, namespace=self.namespace)
            else:
                emit(event, data, namespace=self.namespace)
        except Exception as e:
            logger.error(f"Failed to emit {event}: {e}")

    def current_planner(self, event_name=""):
        """The caller's planner, or None after telling the client it has none."""
        planner = self.registry.get_planner(self.client_id)
        if planner is None:
            logger.warning(f"[WS] {event_name} from {self.client_id} without an itinerary session")
            self.emit_to_client('error', {'message': 'No itinerary session', 'event': event_name})
        return planner

    def dispatch(self, event_name, action):
        """Run ``action(planner)``; any failure becomes an ``error`` event."""
        planner = self.current_planner(event_name)
        if planner is None:
            return
        try:
            action(planner)
        except Exception as exc:
            self.handle_error(exc, event_name)

    def log_event(self, event_name, data=None):
        if data:
            logger.info(f"[WS] {event_name} - Client: {self.client_id}, Data: {data}")
        else:
            logger.info(f"[WS] {event_name} - Client: {self.client_id}")

    def handle_error(self, error, event_name=""):
        logger.error(f"[WS] Error in {event_name} - Client: {self.client_id}, Error: {error}")
        self.emit_to_client('error', {'message': str(error), 'event': event_name})
