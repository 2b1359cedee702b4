"""Shared test fixtures."""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Ignore OPEN311_* env vars and .env files from the developer's machine."""
    from open311.config import settings

    defaults = {
        "endpoint": None,
        "format": "json",
        "jurisdiction": None,
        "discovery": None,
        "city": None,
        "api_key": "",
        "tracing_enabled": False,
    }
    for name, value in defaults.items():
        monkeypatch.setattr(settings, name, value)


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient in the transport; set .get/.post return values per test."""
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    with patch("open311.transport.httpx.AsyncClient", return_value=mock_client):
        yield mock_client
