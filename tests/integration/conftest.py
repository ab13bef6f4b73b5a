"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session. The app lifespan runs once, so
the coordinator and the live crash engine are the production ones.

Pre-condition: PostgreSQL and Redis reachable at DATABASE_URL / REDIS_URL,
and `alembic upgrade head` applied.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.ge_common.database import async_session_factory
from src.ge_gateway.auth.jwt_handler import issue_access_token
from src.main import app

_SEED_ACCOUNT_SQL = text("""
    INSERT INTO accounts (account_id, balance, is_banned)
    VALUES (:account_id, :balance, :is_banned)
""")

SeedAccount = Callable[..., Awaitable[tuple[str, dict[str, str]]]]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client with the app lifespan running."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


async def _seed_account(balance: int, is_banned: bool = False) -> tuple[str, dict[str, str]]:
    account_id = f"it_{uuid.uuid4().hex[:12]}"
    async with async_session_factory() as session:
        async with session.begin():
            await session.execute(
                _SEED_ACCOUNT_SQL,
                {"account_id": account_id, "balance": balance, "is_banned": is_banned},
            )
    return account_id, {"Authorization": f"Bearer {issue_access_token(account_id)}"}


@pytest.fixture
def seed_account() -> SeedAccount:
    """Insert a fresh account; returns (account_id, auth headers)."""
    return _seed_account
