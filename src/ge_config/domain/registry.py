"""Single source of truth for per-game configuration.

Built once at startup from settings; every edge, limit and symbol table the
engine uses is read from here.
"""

import logging
from collections.abc import Iterable

from config.settings import Settings, settings
from src.ge_common.enums import GameType
from src.ge_common.errors import GameConfigurationError
from src.ge_config.domain.models import GameConfiguration, SlotSymbol
from src.ge_payout.domain.slots import theoretical_rtp

logger = logging.getLogger(__name__)

# 8 lines * (1+2+3+4+6+10+15) / 7^3 = 95.63% RTP
DEFAULT_SLOT_SYMBOLS: tuple[SlotSymbol, ...] = (
    SlotSymbol("CHERRY", 1),
    SlotSymbol("LEMON", 2),
    SlotSymbol("ORANGE", 3),
    SlotSymbol("GRAPE", 4),
    SlotSymbol("BELL", 6),
    SlotSymbol("DIAMOND", 10),
    SlotSymbol("SEVEN", 15),
)


class GameConfigRegistry:
    def __init__(self, configs: Iterable[GameConfiguration]) -> None:
        self._configs: dict[GameType, GameConfiguration] = {}
        for config in configs:
            validate_configuration(config)
            if config.game_type in self._configs:
                raise GameConfigurationError(f"duplicate config for {config.game_type.value}")
            self._configs[config.game_type] = config

    def get(self, game_type: GameType) -> GameConfiguration:
        config = self._configs.get(game_type)
        if config is None:
            raise GameConfigurationError(f"no configuration for {game_type.value}")
        return config

    def all(self) -> list[GameConfiguration]:
        return [self._configs[g] for g in GameType if g in self._configs]


def validate_configuration(config: GameConfiguration) -> None:
    config.validate()
    if config.game_type == GameType.SLOTS:
        table_rtp = theoretical_rtp(config.symbols)
        if table_rtp > config.rtp:
            raise GameConfigurationError(
                f"SLOTS: symbol table pays {table_rtp:.4f}, above configured RTP {config.rtp:.4f}"
            )
        logger.debug("SLOTS table RTP %.4f (configured %.4f)", table_rtp, config.rtp)


def build_default_registry(s: Settings = settings) -> GameConfigRegistry:
    return GameConfigRegistry(
        [
            GameConfiguration(
                game_type=GameType.DICE,
                house_edge_bps=s.DICE_HOUSE_EDGE_BPS,
                min_bet=s.DICE_MIN_BET,
                max_bet=s.DICE_MAX_BET,
            ),
            GameConfiguration(
                game_type=GameType.SLOTS,
                house_edge_bps=s.SLOTS_HOUSE_EDGE_BPS,
                min_bet=s.SLOTS_MIN_BET,
                max_bet=s.SLOTS_MAX_BET,
                symbols=DEFAULT_SLOT_SYMBOLS,
            ),
            GameConfiguration(
                game_type=GameType.CRASH,
                house_edge_bps=s.CRASH_HOUSE_EDGE_BPS,
                min_bet=s.CRASH_MIN_BET,
                max_bet=s.CRASH_MAX_BET,
                max_crash_multiplier=s.CRASH_MAX_MULTIPLIER,
            ),
        ]
    )
