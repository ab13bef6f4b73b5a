"""Outcome and game-parameter models — pure dataclasses.

An outcome is transient: produced and consumed within one settlement and
persisted only as the JSON payload of its bet.
"""

from dataclasses import dataclass
from typing import Any

from src.ge_common.enums import DiceDirection, GameType

Grid = tuple[tuple[str, ...], ...]
Position = tuple[int, int]


@dataclass(frozen=True)
class DiceParams:
    target: int
    direction: DiceDirection


@dataclass(frozen=True)
class SlotsParams:
    pass


@dataclass(frozen=True)
class CrashParams:
    auto_cashout: float


GameParams = DiceParams | SlotsParams | CrashParams


@dataclass(frozen=True)
class DiceOutcome:
    roll: int
    target: int
    direction: DiceDirection
    win_probability: float
    multiplier: float
    won: bool

    game_type = GameType.DICE

    def to_payload(self) -> dict[str, Any]:
        return {
            "roll": self.roll,
            "target": self.target,
            "direction": self.direction.value,
            "win_probability": self.win_probability,
            "multiplier": self.multiplier,
            "won": self.won,
        }


@dataclass(frozen=True)
class WinningLine:
    line_index: int
    symbol: str
    positions: tuple[Position, ...]


@dataclass(frozen=True)
class SlotOutcome:
    grid: Grid
    winning_lines: tuple[WinningLine, ...]

    game_type = GameType.SLOTS

    @property
    def won(self) -> bool:
        return bool(self.winning_lines)

    def to_payload(self) -> dict[str, Any]:
        return {
            "grid": [list(row) for row in self.grid],
            "winning_lines": [
                {
                    "line_index": line.line_index,
                    "symbol": line.symbol,
                    "positions": [list(p) for p in line.positions],
                }
                for line in self.winning_lines
            ],
        }


@dataclass(frozen=True)
class CrashOutcome:
    crash_point: float
    cashout_multiplier: float | None  # None: the round crashed first

    game_type = GameType.CRASH

    @property
    def won(self) -> bool:
        return self.cashout_multiplier is not None

    def to_payload(self) -> dict[str, Any]:
        return {
            "crash_point": self.crash_point,
            "cashout_multiplier": self.cashout_multiplier,
        }


Outcome = DiceOutcome | SlotOutcome | CrashOutcome
