"""Shared fixtures for kiosk display tests."""

import pytest

from kiosk_ui.config import Config


@pytest.fixture
def kiosk_config() -> Config:
    return Config(backend_url="http://backend.test", timezone="America/Chicago")
