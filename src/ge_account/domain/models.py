"""Domain models for ge_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.ge_common.enums import BetStatus, GameType


@dataclass
class Account:
    account_id: str
    balance: int        # cents, never negative
    version: int        # bumped on every balance mutation
    is_banned: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balance as of one version; the expected_version for a compare-and-set."""

    account_id: str
    balance: int
    version: int


@dataclass(frozen=True)
class Bet:
    """Append-only ledger row; bet_id is the settlement idempotency key."""

    bet_id: str
    account_id: str
    game_type: GameType
    stake: int
    payout: int
    outcome: dict[str, Any]
    status: BetStatus = BetStatus.SETTLED
    round_id: str | None = None
    created_at: datetime | None = None

    @property
    def net(self) -> int:
        """Player's net result: payout - stake."""
        return self.payout - self.stake


@dataclass(frozen=True)
class SettlementReceipt:
    bet_id: str
    record_id: int
    balance: int
    already_settled: bool = False  # True when a retry found the bet recorded


@dataclass
class LedgerEntry:
    id: int
    account_id: str
    entry_type: str          # LedgerEntryType value
    amount: int              # cents, positive=credit negative=debit
    balance_after: int
    reference_id: str | None = None
    created_at: datetime | None = None
