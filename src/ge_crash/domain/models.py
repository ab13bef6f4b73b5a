"""Domain models for the live crash round — pure dataclasses.

All multipliers are hundredths (2.50x == 250).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.ge_common.enums import RoundState


@dataclass
class CrashBet:
    bet_id: str
    account_id: str
    stake: int                        # cents, already debited
    auto_cashout_x100: int | None = None
    cashout_x100: int | None = None   # set once the bet is resolved as a win

    @property
    def cashed_out(self) -> bool:
        return self.cashout_x100 is not None


@dataclass(frozen=True)
class Cashout:
    """A bet resolved as a win by the producer at one tick."""

    bet_id: str
    account_id: str
    stake: int
    multiplier_x100: int
    automatic: bool


@dataclass(frozen=True)
class Tick:
    round_id: str
    state: RoundState
    multiplier_x100: int
    crash_point_x100: int | None = None  # revealed only once CRASHED

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {
            "round_id": self.round_id,
            "state": self.state.value,
            "multiplier": self.multiplier_x100 / 100,
        }
        if self.crash_point_x100 is not None:
            message["crash_point"] = self.crash_point_x100 / 100
        return message


@dataclass(frozen=True)
class RoundSnapshot:
    round_id: str | None
    state: RoundState
    multiplier_x100: int
    bet_count: int
    crash_point_x100: int | None = None


@dataclass(frozen=True)
class RoundSummary:
    """One finished round, as written to crash_rounds."""

    round_id: str
    crash_point_x100: int
    bet_count: int
    total_stake: int
    total_payout: int
    started_at: datetime | None = None
    crashed_at: datetime | None = None


@dataclass(frozen=True)
class CashoutResult:
    """What a player gets back from a cash-out once it is settled."""

    bet_id: str
    round_id: str
    multiplier_x100: int
    payout: int
    balance: int
