"""WebSocket route handlers initialization."""

import logging

from .connection import ConnectionHandler
from .itinerary import ItineraryHandler
from .base import NAMESPACE

logger = logging.getLogger(__name__)


def register_websocket_handlers(socketio, registry=None):
    """Register all WebSocket event handlers with SocketIO.

    Args:
        socketio: Flask-SocketIO instance
        registry: PlannerRegistry holding one planner per client
    """
    logger.info("Registering WebSocket handlers...")

    if registry is None:
        from jiantu_travel.api.services.planner_registry import get_planner_registry
        registry = get_planner_registry()

    try:
        connection_handler = ConnectionHandler(socketio, registry, NAMESPACE)
        itinerary_handler = ItineraryHandler(socketio, registry, NAMESPACE)

        logger.info(f"Registering connection handler for namespace: {NAMESPACE}")
        connection_handler.register_handlers()

        logger.info(f"Registering itinerary handler for namespace: {NAMESPACE}")
        itinerary_handler.register_handlers()

        logger.info("WebSocket handlers registered successfully")

    except Exception as e:
        logger.error(f"Failed to register WebSocket handlers: {e}")
        logger.exception("WebSocket registration error:")
        raise


__all__ = ['register_websocket_handlers', 'NAMESPACE']
