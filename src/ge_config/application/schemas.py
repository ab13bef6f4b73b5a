"""Pydantic schemas for the public game configuration endpoint."""

from pydantic import BaseModel

from src.ge_common.cents import cents_to_display
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.slots import PAYLINES, theoretical_rtp


class SlotSymbolItem(BaseModel):
    name: str
    multiplier: int


class GameConfigItem(BaseModel):
    game_type: str
    house_edge_bps: int
    rtp_percent: float
    min_bet_cents: int
    min_bet_display: str
    max_bet_cents: int
    max_bet_display: str
    max_crash_multiplier: float | None = None
    paylines: int | None = None
    symbols: list[SlotSymbolItem] | None = None
    table_rtp_percent: float | None = None

    @classmethod
    def from_domain(cls, config: GameConfiguration) -> "GameConfigItem":
        item = cls(
            game_type=config.game_type.value,
            house_edge_bps=config.house_edge_bps,
            rtp_percent=round(config.rtp * 100, 2),
            min_bet_cents=config.min_bet,
            min_bet_display=cents_to_display(config.min_bet),
            max_bet_cents=config.max_bet,
            max_bet_display=cents_to_display(config.max_bet),
            max_crash_multiplier=config.max_crash_multiplier,
        )
        if config.symbols:
            item.paylines = len(PAYLINES)
            item.symbols = [
                SlotSymbolItem(name=s.name, multiplier=s.multiplier) for s in config.symbols
            ]
            item.table_rtp_percent = round(theoretical_rtp(config.symbols) * 100, 2)
        return item


class GameConfigResponse(BaseModel):
    games: list[GameConfigItem]
