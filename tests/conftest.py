"""Shared test fixtures."""

import os

# Settings() requires a secret at import time; tests sign their own tokens with it
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production-use-0123456789")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (lifespan not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
