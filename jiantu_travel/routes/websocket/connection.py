# jiantu_travel/routes/websocket/connection.py
"""WebSocket connection and disconnection handlers."""

import time
import logging
from flask_socketio import disconnect

from .base import BaseWebSocketHandler, NAMESPACE

logger = logging.getLogger(__name__)


class ConnectionHandler(BaseWebSocketHandler):
    """Creates a planner per client on connect and drops it on disconnect."""

    def register_handlers(self):
        """Register connection-related event handlers."""

        @self.socketio.on('connect', namespace=NAMESPACE)
        def handle_connect(auth=None):
            """Handle WebSocket connection from browser."""
            sid = self.client_id
            self.log_event('connect')

            try:
                planner = self.registry.create_planner(
                    sid,
                    spawn=self.socketio.start_background_task,
                    on_change=lambda state: self.emit_to_client('itinerary_state', state, room=sid),
                    on_notice=lambda notice: self.emit_to_client('planner_notice', notice, room=sid),
                )
                if planner is None:
                    logger.error("Failed to create planner - server at capacity")
                    self.emit_to_client('error', {'message': 'Server at capacity'})
                    disconnect()
                    return

                self.emit_to_client('connected', {'session_id': sid, 'status': 'connected'})
                self.emit_to_client('itinerary_state', planner.snapshot())

            except Exception as e:
                logger.error(f"Connection error: {e}")
                self.handle_error(e, 'connect')
                disconnect()

        @self.socketio.on('disconnect', namespace=NAMESPACE)
        def handle_disconnect(*args):
            """Handle WebSocket disconnection."""
            self.registry.remove_planner(self.client_id, 'client_disconnect')

        @self.socketio.on('ping', namespace=NAMESPACE)
        def handle_ping():
            """Handle ping for connection testing."""
            self.emit_to_client('pong', {'timestamp': time.time()})
