"""Game configuration — pure frozen dataclasses, read-only during a play."""

from dataclasses import dataclass, field

from src.ge_common.cents import BPS_SCALE, bps_to_fraction
from src.ge_common.enums import GameType
from src.ge_common.errors import GameConfigurationError, StakeOutOfRangeError


@dataclass(frozen=True)
class SlotSymbol:
    name: str
    multiplier: int  # line pays stake * multiplier


@dataclass(frozen=True)
class GameConfiguration:
    game_type: GameType
    house_edge_bps: int
    min_bet: int   # cents
    max_bet: int   # cents
    max_crash_multiplier: float | None = None
    symbols: tuple[SlotSymbol, ...] = field(default_factory=tuple)

    @property
    def house_edge(self) -> float:
        return bps_to_fraction(self.house_edge_bps)

    @property
    def rtp(self) -> float:
        """Return-to-player as a fraction: 1 - house_edge."""
        return bps_to_fraction(BPS_SCALE - self.house_edge_bps)

    @property
    def max_crash_multiplier_x100(self) -> int:
        if self.max_crash_multiplier is None:
            raise GameConfigurationError(f"{self.game_type.value} has no crash cap")
        return int(round(self.max_crash_multiplier * 100))

    def symbol_multiplier(self, name: str) -> int:
        for symbol in self.symbols:
            if symbol.name == name:
                return symbol.multiplier
        raise GameConfigurationError(f"unknown slot symbol {name!r}")

    def validate(self) -> None:
        """Structural checks shared by every game type."""
        if not (0 < self.house_edge_bps < BPS_SCALE):
            raise GameConfigurationError(
                f"{self.game_type.value}: house edge {self.house_edge_bps} bps "
                f"must be strictly between 0 and {BPS_SCALE}"
            )
        if self.min_bet <= 0:
            raise GameConfigurationError(f"{self.game_type.value}: min_bet must be positive")
        if self.min_bet > self.max_bet:
            raise GameConfigurationError(
                f"{self.game_type.value}: min_bet {self.min_bet} > max_bet {self.max_bet}"
            )
        if self.game_type == GameType.SLOTS:
            if not self.symbols:
                raise GameConfigurationError("SLOTS: symbol multiplier table is empty")
            names = [s.name for s in self.symbols]
            if len(set(names)) != len(names):
                raise GameConfigurationError("SLOTS: duplicate symbol names")
            if any(s.multiplier <= 0 for s in self.symbols):
                raise GameConfigurationError("SLOTS: symbol multipliers must be positive")
        if self.game_type == GameType.CRASH:
            if self.max_crash_multiplier is None or self.max_crash_multiplier < 1.0:
                raise GameConfigurationError("CRASH: max_crash_multiplier must be >= 1.0")

    def check_stake(self, stake: int) -> None:
        if not (self.min_bet <= stake <= self.max_bet):
            raise StakeOutOfRangeError(stake, self.min_bet, self.max_bet)
