# jiantu_travel/routes/travel.py
"""Travel routes and blueprint configuration."""

from flask import Blueprint, jsonify, request

from jiantu_travel.api.config import get_geocoding_config, get_planner_config, get_routing_config
from jiantu_travel.api.errors import Failure, FailureKind
from jiantu_travel.api.geocoding import create_geocoder, short_name
from jiantu_travel.api.recommendations import PERSONAS, recommend


def create_travel_blueprint(geocoder=None):
    """Create and configure the travel blueprint.

    Args:
        geocoder: Optional geocoder; defaults to the one selected by config

    Returns:
        Configured Flask Blueprint
    """
    travel_bp = Blueprint("travel", __name__, url_prefix="/travel")
    place_search = geocoder or create_geocoder()

    @travel_bp.route("/api/config")
    def api_config():
        """Return routing and planner settings for the frontend."""
        routing = get_routing_config()
        planner = get_planner_config()
        return jsonify({
            "routing_base_url": routing["base_url"],
            "routing_profile": routing["profile"],
            "geocoder": get_geocoding_config()["backend"],
            "default_start_time": planner["default_start_time"],
            "default_stay_minutes": planner["default_stay_minutes"],
            "notice_seconds": planner["notice_seconds"],
            "personas": PERSONAS,
        })

    @travel_bp.route("/api/search")
    def api_search():
        """Resolve a free-text place name to its best match."""
        query = request.args.get("q", "")
        result = place_search.search(query)
        if isinstance(result, Failure):
            status = 404 if result.kind is FailureKind.NOT_FOUND else 502
            return jsonify({"error": result.to_dict()}), status
        return jsonify({
            "name": result.name,
            "short_name": short_name(result.name),
            "lat": result.lat,
            "lng": result.lng,
        })

    @travel_bp.route("/api/recommendations")
    def api_recommendations():
        """Recommended places, those matching the persona first."""
        persona = request.args.get("persona")
        return jsonify([place.to_dict() for place in recommend(persona)])

    @travel_bp.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "service": "travel"})

    return travel_bp


__all__ = ['create_travel_blueprint']
