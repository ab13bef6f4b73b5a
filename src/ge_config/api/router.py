"""Public, read-only game configuration (edges, RTP, limits, pay table)."""

from fastapi import APIRouter, Request

from src.ge_common.response import ApiResponse, success_response
from src.ge_config.application.schemas import GameConfigItem, GameConfigResponse

router = APIRouter(prefix="/games", tags=["games"])


@router.get("/config")
async def get_game_config(request: Request) -> ApiResponse:
    registry = request.app.state.config_registry
    data = GameConfigResponse(games=[GameConfigItem.from_domain(c) for c in registry.all()])
    return success_response(
        data.model_dump(), getattr(request.state, "request_id", None)
    )
