"""Pytest configuration and fixtures."""

import os

# Disable rate limiting, the coin flip reveal delay and replay pacing for all tests
os.environ["RATE_LIMITING_ENABLED"] = "false"
os.environ["COIN_FLIP_REVEAL_SECONDS"] = "0"
os.environ["REPLAY_STEP_SECONDS"] = "0"

# Clear the settings cache to pick up the new environment variables
from mapveto.settings import get_settings

get_settings.cache_clear()

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from mapveto.main import create_app  # noqa: E402


@pytest.fixture
def app() -> FastAPI:
    """Create an application with its own empty lobby store."""
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
