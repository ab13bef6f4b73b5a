"""Live crash REST + WebSocket API.

Bets and cash-outs require JWT authentication; round state, history and the
tick feed are public.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from src.ge_common.database import get_db_session
from src.ge_common.errors import BettingClosedError
from src.ge_common.response import ApiResponse, success_response
from src.ge_crash.application.schemas import (
    CashoutResponse,
    CrashBetRequest,
    CrashBetResponse,
    RoundHistoryItem,
    RoundHistoryResponse,
    RoundStateResponse,
)
from src.ge_crash.domain.repository import CrashHistoryProtocol
from src.ge_crash.engine.runner import CrashRoundEngine
from src.ge_gateway.middleware.rate_limit import rate_limited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/crash", tags=["crash"])


def get_crash_engine(request: Request) -> CrashRoundEngine:
    engine = getattr(request.app.state, "crash_engine", None)
    if engine is None:
        raise BettingClosedError()
    return engine


def get_crash_history(request: Request) -> CrashHistoryProtocol:
    return request.app.state.crash_history


@router.post("/bets")
async def place_bet(
    body: CrashBetRequest,
    account_id: Annotated[str, Depends(rate_limited("crash_bet"))],
    engine: Annotated[CrashRoundEngine, Depends(get_crash_engine)],
    request: Request,
) -> ApiResponse:
    bet, round_id = await engine.place_bet(account_id, body.stake_cents, body.auto_cashout)
    data = CrashBetResponse.from_domain(bet, round_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.post("/cashout")
async def cash_out(
    account_id: Annotated[str, Depends(rate_limited("crash_cashout"))],
    engine: Annotated[CrashRoundEngine, Depends(get_crash_engine)],
    request: Request,
) -> ApiResponse:
    result = await engine.cash_out(account_id)
    data = CashoutResponse.from_domain(result)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/state")
async def get_state(
    engine: Annotated[CrashRoundEngine, Depends(get_crash_engine)],
    request: Request,
) -> ApiResponse:
    data = RoundStateResponse.from_domain(engine.snapshot())
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/history")
async def get_history(
    history: Annotated[CrashHistoryProtocol, Depends(get_crash_history)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100, description="Number of recent rounds"),
) -> ApiResponse:
    rounds = await history.list_recent(db, limit)
    data = RoundHistoryResponse(items=[RoundHistoryItem.from_domain(r) for r in rounds])
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.websocket("/feed")
async def tick_feed(websocket: WebSocket) -> None:
    engine: CrashRoundEngine | None = getattr(websocket.app.state, "crash_engine", None)
    await websocket.accept()
    if engine is None:
        await websocket.close(code=1013)  # try again later
        return
    try:
        async with engine.subscribe() as queue:
            while True:
                tick = await queue.get()
                await websocket.send_json(tick.to_message())
    except WebSocketDisconnect:
        logger.debug("Tick feed subscriber disconnected")
