"""POST /games/play — one dice, slots or instant-crash bet, settled synchronously."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.ge_common.response import ApiResponse, success_response
from src.ge_gateway.middleware.rate_limit import rate_limited
from src.ge_settlement.api.dependencies import get_coordinator
from src.ge_settlement.application.coordinator import SettlementCoordinator
from src.ge_settlement.application.schemas import PlayRequest, PlayResponse

router = APIRouter(prefix="/games", tags=["games"])


@router.post("/play")
async def play(
    body: PlayRequest,
    account_id: Annotated[str, Depends(rate_limited("play"))],
    coordinator: Annotated[SettlementCoordinator, Depends(get_coordinator)],
    request: Request,
) -> ApiResponse:
    result = await coordinator.play(
        account_id, body.game_type, body.stake_cents, body.to_params()
    )
    data = PlayResponse.from_result(result)
    return success_response(
        data.model_dump(), getattr(request.state, "request_id", None)
    )
