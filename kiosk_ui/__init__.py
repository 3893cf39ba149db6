"""Hearthboard kiosk - display client for the household dashboard.

Polls the hearthboard server, keeps immutable display snapshots and buckets
events by local day for rendering.

Architecture:
- api_client.py: Async HTTP client for /api/events and /api/weather
- state.py: Immutable display state and view model
- renderer.py: Plain-text renderer
- config.py: Configuration loading from environment variables
- main.py: Polling loops, cooldown retry and coordination

Usage:
    python -m kiosk_ui

Environment Variables:
    HEARTHBOARD_BACKEND_URL - Backend API URL (default: http://localhost:8080)
"""

__version__ = "1.0.0"

from kiosk_ui.config import Config

__all__ = ["Config"]
