"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.ge_account.api.router import router as account_router
from src.ge_account.infrastructure.persistence import PostgresBalanceStore
from src.ge_common.database import async_session_factory, check_database, engine
from src.ge_common.errors import AppError
from src.ge_common.redis_client import check_redis, close_redis
from src.ge_common.response import error_response
from src.ge_config.api.router import router as config_router
from src.ge_config.domain.registry import build_default_registry
from src.ge_crash.api.router import router as crash_router
from src.ge_crash.engine.runner import CrashRoundEngine
from src.ge_crash.infrastructure.persistence import CrashRoundRepository
from src.ge_gateway.middleware.request_log import RequestLogMiddleware
from src.ge_rng.engine.generator import RandomOutcomeGenerator
from src.ge_settlement.api.router import router as play_router
from src.ge_settlement.application.coordinator import SettlementCoordinator

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: validate config, verify DB + Redis, start the crash producer.
    Shutdown: stop background tasks, dispose."""
    # Startup: invalid configuration or missing entropy refuses to start
    registry = build_default_registry()
    rng = RandomOutcomeGenerator()
    await check_database()
    await check_redis()

    store = PostgresBalanceStore(async_session_factory)
    coordinator = SettlementCoordinator(store, registry, rng)
    crash_history = CrashRoundRepository(async_session_factory)
    app.state.config_registry = registry
    app.state.balance_store = store
    app.state.coordinator = coordinator
    app.state.crash_history = crash_history
    app.state.crash_engine = None
    if settings.CRASH_ENGINE_ENABLED:
        app.state.crash_engine = CrashRoundEngine(coordinator, crash_history)
        await app.state.crash_engine.start()
    compensation = asyncio.create_task(
        coordinator.run_compensation_loop(settings.COMPENSATION_INTERVAL_S)
    )
    logger.info("%s started", settings.APP_NAME)
    yield
    # Shutdown
    if app.state.crash_engine is not None:
        await app.state.crash_engine.stop()
    compensation.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await compensation
    if coordinator.pending_bets:
        await coordinator.retry_pending()
    for bet in coordinator.pending_bets:
        logger.critical(
            "Bet %s still pending at shutdown: account=%s stake=%d",
            bet.bet_id, bet.account_id, bet.stake,
        )
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(config_router, prefix="/api/v1")
app.include_router(play_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(crash_router, prefix="/api/v1")


@app.get("/health")
async def health(request: Request) -> dict[str, str]:
    crash_engine = getattr(request.app.state, "crash_engine", None)
    return {
        "status": "ok",
        "version": "0.1.0",
        "crash_engine": "running" if crash_engine is not None and crash_engine.running else "stopped",
    }
