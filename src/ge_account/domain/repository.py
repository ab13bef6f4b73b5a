"""Repository Protocols — dependency inversion for testability.

BalanceStoreProtocol is the only way the engine touches balances or bets.
The settlement coordinator depends on this Protocol alone and never on a
database driver; each method is one atomic operation against the store.
Unit tests inject an in-memory implementation; infrastructure provides the
PostgreSQL one.

Error contract of BalanceStoreProtocol:
  - AccountNotFoundError      unknown account
  - ConflictError             expected_version did not match (lost a race)
  - InsufficientBalanceError  the delta would make the balance negative
  - StoreUnavailableError     transient failure; if it came from a commit, the
                              operation may still have applied

adjust_balance is applied at most once per (entry_type, reference_id): a repeat
returns the current snapshot and changes nothing.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ge_account.domain.models import BalanceSnapshot, Bet, LedgerEntry, SettlementReceipt


class BalanceStoreProtocol(Protocol):
    async def get_balance(self, account_id: str) -> BalanceSnapshot: ...

    async def is_banned(self, account_id: str) -> bool: ...

    async def adjust_balance(
        self,
        account_id: str,
        delta: int,
        expected_version: int | None = None,
        entry_type: str | None = None,
        reference_id: str | None = None,
    ) -> BalanceSnapshot: ...

    async def has_ledger_entry(self, entry_type: str, reference_id: str) -> bool:
        """Whether a balance movement with this type and reference was recorded."""
        ...

    async def append_bet_record(self, bet: Bet) -> int:
        """Insert the bet if absent; return its record id either way."""
        ...

    async def settle_bet(self, bet: Bet) -> SettlementReceipt:
        """Credit bet.payout and append the bet in one transaction.

        Idempotent on bet.bet_id: if the bet is already recorded nothing is
        credited and the receipt has already_settled=True.
        """
        ...


class BetQueryProtocol(Protocol):
    """Read side for history endpoints; runs on the request's session."""

    async def list_bets(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        game_type: str | None,
    ) -> list[tuple[int, Bet]]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]: ...
