# src/ge_settlement/application/schemas.py
from typing import Any

from pydantic import BaseModel, Field

from src.ge_common.cents import cents_to_display
from src.ge_common.enums import DiceDirection, GameType
from src.ge_common.errors import InvalidGameParametersError
from src.ge_payout.domain.models import CrashParams, DiceParams, GameParams, SlotsParams
from src.ge_settlement.application.coordinator import PlayResult


class PlayRequest(BaseModel):
    game_type: GameType
    stake_cents: int = Field(gt=0)
    # DICE
    target: int | None = None
    direction: DiceDirection | None = None
    # CRASH (instant round)
    auto_cashout: float | None = None

    def to_params(self) -> GameParams:
        if self.game_type == GameType.DICE:
            if self.target is None or self.direction is None:
                raise InvalidGameParametersError("DICE requires target and direction")
            return DiceParams(target=self.target, direction=self.direction)
        if self.game_type == GameType.CRASH:
            if self.auto_cashout is None:
                raise InvalidGameParametersError("CRASH requires auto_cashout")
            return CrashParams(auto_cashout=self.auto_cashout)
        return SlotsParams()


class PlayResponse(BaseModel):
    bet_id: str
    game_type: str
    stake_cents: int
    payout_cents: int
    payout_display: str
    won: bool
    outcome: dict[str, Any]
    balance_cents: int
    balance_display: str

    @classmethod
    def from_result(cls, result: PlayResult) -> "PlayResponse":
        return cls(
            bet_id=result.bet_id,
            game_type=result.game_type.value,
            stake_cents=result.stake,
            payout_cents=result.payout,
            payout_display=cents_to_display(result.payout),
            won=result.outcome.won,
            outcome=result.outcome.to_payload(),
            balance_cents=result.new_balance,
            balance_display=cents_to_display(result.new_balance),
        )
