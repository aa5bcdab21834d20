# jiantu_travel/routes/__init__.py
from .travel import create_travel_blueprint
from .websocket import register_websocket_handlers, NAMESPACE

__all__ = ['create_travel_blueprint', 'register_websocket_handlers', 'NAMESPACE']
