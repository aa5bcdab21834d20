# api/config.py
"""Configuration management for the itinerary planner."""
import os
from dotenv import load_dotenv

load_dotenv()


def get_routing_config():
    """Get OSRM routing / trip service configuration."""
    return {
        "base_url": os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org").rstrip("/"),
        "profile": os.getenv("OSRM_PROFILE", "driving"),
        "timeout_seconds": float(os.getenv("ROUTING_TIMEOUT_SECONDS", "10")),
    }


def get_geocoding_config():
    """Get geocoding backend configuration."""
    return {
        "backend": os.getenv("GEOCODER", "nominatim").lower(),
        "base_url": os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org").rstrip("/"),
        "user_agent": os.getenv("NOMINATIM_USER_AGENT", "jiantu-travel/0.1 (itinerary planner)"),
        "timeout_seconds": float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "8")),
    }


def get_google_maps_config():
    """Get Google Maps configuration."""
    return {
        "api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
    }


def get_planner_config():
    """Get itinerary planner defaults."""
    return {
        "default_start_time": os.getenv("DEFAULT_START_TIME", "08:00"),
        "default_stay_minutes": int(os.getenv("DEFAULT_STAY_MINUTES", "60")),
        # How long a failure notice stays visible before it auto-dismisses
        "notice_seconds": float(os.getenv("NOTICE_SECONDS", "4")),
        "idle_timeout_seconds": int(os.getenv("PLANNER_IDLE_TIMEOUT_SECONDS", "3600")),
        "max_planners": int(os.getenv("MAX_PLANNERS", "200")),
    }


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 5000))


def get_websocket_config():
    """Get WebSocket configuration."""
    return {
        "max_message_size": int(os.getenv("WEBSOCKET_MAX_MESSAGE_SIZE", "1048576")),  # 1MB
        "ping_interval": int(os.getenv("WEBSOCKET_PING_INTERVAL", "25")),
        "ping_timeout": int(os.getenv("WEBSOCKET_PING_TIMEOUT", "60")),
        "cors_allowed_origins": os.getenv("WEBSOCKET_CORS_ORIGINS", "*").split(",")
    }


def validate_planner_config():
    """Validate planner configuration is properly set."""
    routing = get_routing_config()
    geocoding = get_geocoding_config()
    planner = get_planner_config()

    if not routing["base_url"].startswith(("http://", "https://")):
        raise ValueError("OSRM_BASE_URL must be an http(s) URL")

    valid_profiles = ["driving", "car", "walking", "foot", "cycling", "bike"]
    if routing["profile"] not in valid_profiles:
        raise ValueError(f"Invalid OSRM profile. Must be one of: {', '.join(valid_profiles)}")

    valid_backends = ["nominatim", "google"]
    if geocoding["backend"] not in valid_backends:
        raise ValueError(f"Invalid geocoder. Must be one of: {', '.join(valid_backends)}")

    if geocoding["backend"] == "google" and not get_google_maps_config()["api_key"]:
        raise ValueError("GEOCODER=google requires GOOGLE_MAPS_API_KEY")

    if planner["default_stay_minutes"] < 0:
        raise ValueError("DEFAULT_STAY_MINUTES must not be negative")

    return True
