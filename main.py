"""
Jiantu Travel – main application entry point

* Flask app + Socket.IO: the browser map sends itinerary events over the
  `/travel/ws` namespace and receives `itinerary_state` pushes back.
* Route and trip requests run as Socket.IO background tasks, so a slow
  routing service never holds up the event handlers.
"""

import os
import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
# Environment & logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

from jiantu_travel.api.config import get_port, get_websocket_config, validate_planner_config  # noqa: E402

validate_planner_config()

# --------------------------------------------------------------------------- #
# Flask initialisation
# --------------------------------------------------------------------------- #
app = Flask(__name__)

flask_secret_key = os.getenv("FLASK_SECRET_KEY") or os.urandom(32).hex()
if "FLASK_SECRET_KEY" not in os.environ:
    logger.warning("No FLASK_SECRET_KEY found. Generated a temporary key.")
app.secret_key = flask_secret_key

ws_config = get_websocket_config()

# CORS for local dev / cross‑origin front‑end requests
CORS(app, origins=ws_config["cors_allowed_origins"], supports_credentials=True)

# --------------------------------------------------------------------------- #
# Socket.IO
# --------------------------------------------------------------------------- #
socketio = SocketIO(
    app,
    cors_allowed_origins=ws_config["cors_allowed_origins"],
    async_mode="threading",
    ping_interval=ws_config["ping_interval"],
    ping_timeout=ws_config["ping_timeout"],
    max_http_buffer_size=ws_config["max_message_size"],
    logger=False,
    engineio_logger=False,
)
logger.info("Socket.IO initialised (async_mode=threading)")

# --------------------------------------------------------------------------- #
# Blueprints & WebSocket handlers
# --------------------------------------------------------------------------- #
from jiantu_travel.routes import create_travel_blueprint, register_websocket_handlers  # noqa: E402

app.register_blueprint(create_travel_blueprint())
register_websocket_handlers(socketio)


@app.route("/debug")
def debug():
    """Simple JSON health endpoint."""
    from jiantu_travel.api.services.planner_registry import get_planner_registry

    return {
        "status": "ok",
        "socketio_initialized": True,
        "planners": get_planner_registry().get_stats(),
        "endpoints": {
            "websocket_namespace": "/travel/ws",
            "health": "/travel/health",
        },
    }

# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting travel app on http://localhost:%d", port)
    socketio.run(app, host="0.0.0.0", port=port, debug=False, allow_unsafe_werkzeug=True)

__all__ = ["app", "socketio"]
