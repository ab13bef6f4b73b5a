# src/ge_crash/application/schemas.py
from pydantic import BaseModel, Field

from src.ge_common.cents import cents_to_display
from src.ge_common.datetime_utils import isoformat_or_empty
from src.ge_crash.domain.models import CashoutResult, CrashBet, RoundSnapshot, RoundSummary


class CrashBetRequest(BaseModel):
    stake_cents: int = Field(gt=0)
    auto_cashout: float | None = None


class CrashBetResponse(BaseModel):
    bet_id: str
    round_id: str
    stake_cents: int
    auto_cashout: float | None

    @classmethod
    def from_domain(cls, bet: CrashBet, round_id: str) -> "CrashBetResponse":
        return cls(
            bet_id=bet.bet_id,
            round_id=round_id,
            stake_cents=bet.stake,
            auto_cashout=(
                bet.auto_cashout_x100 / 100 if bet.auto_cashout_x100 is not None else None
            ),
        )


class CashoutResponse(BaseModel):
    bet_id: str
    round_id: str
    multiplier: float
    payout_cents: int
    payout_display: str
    balance_cents: int

    @classmethod
    def from_domain(cls, result: CashoutResult) -> "CashoutResponse":
        return cls(
            bet_id=result.bet_id,
            round_id=result.round_id,
            multiplier=result.multiplier_x100 / 100,
            payout_cents=result.payout,
            payout_display=cents_to_display(result.payout),
            balance_cents=result.balance,
        )


class RoundStateResponse(BaseModel):
    round_id: str | None
    state: str
    multiplier: float
    bet_count: int
    crash_point: float | None

    @classmethod
    def from_domain(cls, snapshot: RoundSnapshot) -> "RoundStateResponse":
        return cls(
            round_id=snapshot.round_id,
            state=snapshot.state.value,
            multiplier=snapshot.multiplier_x100 / 100,
            bet_count=snapshot.bet_count,
            crash_point=(
                snapshot.crash_point_x100 / 100
                if snapshot.crash_point_x100 is not None
                else None
            ),
        )


class RoundHistoryItem(BaseModel):
    round_id: str
    crash_point: float
    bet_count: int
    total_stake_cents: int
    total_payout_cents: int
    started_at: str
    crashed_at: str

    @classmethod
    def from_domain(cls, summary: RoundSummary) -> "RoundHistoryItem":
        return cls(
            round_id=summary.round_id,
            crash_point=summary.crash_point_x100 / 100,
            bet_count=summary.bet_count,
            total_stake_cents=summary.total_stake,
            total_payout_cents=summary.total_payout,
            started_at=isoformat_or_empty(summary.started_at),
            crashed_at=isoformat_or_empty(summary.crashed_at),
        )


class RoundHistoryResponse(BaseModel):
    items: list[RoundHistoryItem]
