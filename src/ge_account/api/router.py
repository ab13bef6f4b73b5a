"""ge_account REST API — 3 read-only endpoints, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ge_account.application.service import AccountApplicationService
from src.ge_account.domain.repository import BalanceStoreProtocol
from src.ge_common.database import get_db_session
from src.ge_common.enums import GameType
from src.ge_common.response import ApiResponse, success_response
from src.ge_gateway.auth.dependencies import get_current_account_id
from src.ge_settlement.api.dependencies import get_balance_store

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    account_id: Annotated[str, Depends(get_current_account_id)],
    store: Annotated[BalanceStoreProtocol, Depends(get_balance_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(store, account_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/bets")
async def list_bets(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    game_type: GameType | None = Query(None, description="Filter by game"),
) -> ApiResponse:
    data = await _service.list_bets(
        db, account_id, cursor, limit, game_type.value if game_type else None
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/ledger")
async def list_ledger(
    account_id: Annotated[str, Depends(get_current_account_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_ledger(db, account_id, cursor, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
