"""Route modules for the hearthboard server."""

from .api_routes import register_api_routes

__all__ = ["register_api_routes"]
