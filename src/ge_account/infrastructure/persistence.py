"""PostgreSQL implementations of BalanceStoreProtocol and BetQueryProtocol.

Balance mutations are single `UPDATE ... RETURNING` statements guarded by
`balance + delta >= 0` and, when given, `version = :expected_version`.
A result of 0 rows means one of the guards failed; a follow-up read decides
which error to raise.

Transaction ownership: PostgresBalanceStore opens and commits its own short
transaction per operation, so the coordinator can retry an operation without
inheriting a failed session. BetQueryRepository runs on the caller's session.
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ge_account.domain.models import (
    Account,
    BalanceSnapshot,
    Bet,
    LedgerEntry,
    SettlementReceipt,
)
from src.ge_common.enums import BetStatus, GameType, LedgerEntryType
from src.ge_common.errors import (
    AccountNotFoundError,
    ConflictError,
    InsufficientBalanceError,
    InternalError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text("""
    SELECT account_id, balance, version, is_banned, created_at, updated_at
    FROM accounts
    WHERE account_id = :account_id
""")

_ADJUST_BALANCE_SQL = text("""
    UPDATE accounts
    SET balance = balance + :delta,
        version = version + 1,
        updated_at = NOW()
    WHERE account_id = :account_id
      AND balance + :delta >= 0
      AND (CAST(:expected_version AS BIGINT) IS NULL
           OR version = CAST(:expected_version AS BIGINT))
    RETURNING account_id, balance, version
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (account_id, entry_type, amount, balance_after, reference_id)
    VALUES
        (:account_id, :entry_type, :amount, :balance_after, :reference_id)
""")

_LEDGER_ENTRY_EXISTS_SQL = text("""
    SELECT 1 FROM ledger_entries
    WHERE entry_type = :entry_type AND reference_id = :reference_id
""")

# ---------------------------------------------------------------------------
# SQL: bets (append-only)
# ---------------------------------------------------------------------------

_INSERT_BET_SQL = text("""
    INSERT INTO bets
        (bet_id, account_id, game_type, stake, payout, outcome, status, round_id)
    VALUES
        (:bet_id, :account_id, :game_type, :stake, :payout,
         CAST(:outcome AS JSONB), :status, :round_id)
    ON CONFLICT (bet_id) DO NOTHING
    RETURNING id
""")

_GET_BET_ID_SQL = text("SELECT id FROM bets WHERE bet_id = :bet_id")

_LIST_BETS_SQL = text("""
    SELECT id, bet_id, account_id, game_type, stake, payout, outcome,
           status, round_id, created_at
    FROM bets
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:game_type AS VARCHAR) IS NULL OR game_type = CAST(:game_type AS VARCHAR))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, account_id, entry_type, amount, balance_after, reference_id, created_at
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        account_id=row.account_id,
        balance=row.balance,
        version=row.version,
        is_banned=row.is_banned,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_bet(row: Any) -> Bet:
    outcome = row.outcome if isinstance(row.outcome, dict) else json.loads(row.outcome)
    return Bet(
        bet_id=row.bet_id,
        account_id=row.account_id,
        game_type=GameType(row.game_type),
        stake=row.stake,
        payout=row.payout,
        outcome=outcome,
        status=BetStatus(row.status),
        round_id=row.round_id,
        created_at=row.created_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_id=row.reference_id,
        created_at=row.created_at,
    )


def _bet_params(bet: Bet) -> dict[str, Any]:
    return {
        "bet_id": bet.bet_id,
        "account_id": bet.account_id,
        "game_type": bet.game_type.value,
        "stake": bet.stake,
        "payout": bet.payout,
        "outcome": json.dumps(bet.outcome),
        "status": bet.status.value,
        "round_id": bet.round_id,
    }


class PostgresBalanceStore:
    """BalanceStoreProtocol over PostgreSQL; all operations atomic at the SQL level."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except DBAPIError as exc:
            logger.warning("Balance store error: %s", exc.__class__.__name__)
            raise StoreUnavailableError(f"Balance store error: {exc.orig!r}") from exc

    async def _get_account(self, session: AsyncSession, account_id: str) -> Account:
        row = (await session.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})).fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def get_balance(self, account_id: str) -> BalanceSnapshot:
        async with self._transaction() as session:
            account = await self._get_account(session, account_id)
        return BalanceSnapshot(account.account_id, account.balance, account.version)

    async def is_banned(self, account_id: str) -> bool:
        async with self._transaction() as session:
            account = await self._get_account(session, account_id)
        return account.is_banned

    async def has_ledger_entry(self, entry_type: str, reference_id: str) -> bool:
        async with self._transaction() as session:
            return await self._ledger_entry_exists(session, entry_type, reference_id)

    async def _ledger_entry_exists(
        self, session: AsyncSession, entry_type: str, reference_id: str
    ) -> bool:
        params = {"entry_type": entry_type, "reference_id": reference_id}
        return (await session.execute(_LEDGER_ENTRY_EXISTS_SQL, params)).fetchone() is not None

    async def adjust_balance(
        self,
        account_id: str,
        delta: int,
        expected_version: int | None = None,
        entry_type: str | None = None,
        reference_id: str | None = None,
    ) -> BalanceSnapshot:
        async with self._transaction() as session:
            if (
                entry_type is not None
                and reference_id is not None
                and await self._ledger_entry_exists(session, entry_type, reference_id)
            ):
                # Already applied; uq_ledger_entry_reference backs this for concurrent retries
                logger.info("Ledger entry %s/%s exists; not applied again", entry_type, reference_id)
                account = await self._get_account(session, account_id)
                return BalanceSnapshot(account.account_id, account.balance, account.version)
            row = (
                await session.execute(
                    _ADJUST_BALANCE_SQL,
                    {
                        "account_id": account_id,
                        "delta": delta,
                        "expected_version": expected_version,
                    },
                )
            ).fetchone()
            if row is None:
                account = await self._get_account(session, account_id)
                if expected_version is not None and account.version != expected_version:
                    raise ConflictError(account_id, expected_version)
                raise InsufficientBalanceError(-delta, account.balance)
            if entry_type is not None:
                await session.execute(
                    _INSERT_LEDGER_SQL,
                    {
                        "account_id": account_id,
                        "entry_type": entry_type,
                        "amount": delta,
                        "balance_after": row.balance,
                        "reference_id": reference_id,
                    },
                )
        return BalanceSnapshot(row.account_id, row.balance, row.version)

    async def append_bet_record(self, bet: Bet) -> int:
        async with self._transaction() as session:
            record_id, _ = await self._insert_bet(session, bet)
        return record_id

    async def _insert_bet(self, session: AsyncSession, bet: Bet) -> tuple[int, bool]:
        """Returns (record id, inserted)."""
        row = (await session.execute(_INSERT_BET_SQL, _bet_params(bet))).fetchone()
        if row is not None:
            return row.id, True
        existing = (await session.execute(_GET_BET_ID_SQL, {"bet_id": bet.bet_id})).fetchone()
        if existing is None:
            raise InternalError(f"Bet {bet.bet_id} neither inserted nor found")
        return existing.id, False

    async def settle_bet(self, bet: Bet) -> SettlementReceipt:
        async with self._transaction() as session:
            record_id, inserted = await self._insert_bet(session, bet)
            if not inserted or bet.payout == 0:
                account = await self._get_account(session, bet.account_id)
                return SettlementReceipt(
                    bet_id=bet.bet_id,
                    record_id=record_id,
                    balance=account.balance,
                    already_settled=not inserted,
                )
            row = (
                await session.execute(
                    _ADJUST_BALANCE_SQL,
                    {
                        "account_id": bet.account_id,
                        "delta": bet.payout,
                        "expected_version": None,
                    },
                )
            ).fetchone()
            if row is None:
                raise AccountNotFoundError(bet.account_id)
            entry_type = (
                LedgerEntryType.BET_REFUND
                if bet.status == BetStatus.REFUNDED
                else LedgerEntryType.BET_PAYOUT
            )
            await session.execute(
                _INSERT_LEDGER_SQL,
                {
                    "account_id": bet.account_id,
                    "entry_type": entry_type.value,
                    "amount": bet.payout,
                    "balance_after": row.balance,
                    "reference_id": bet.bet_id,
                },
            )
        return SettlementReceipt(bet_id=bet.bet_id, record_id=record_id, balance=row.balance)


class BetQueryRepository:
    """BetQueryProtocol on the request-scoped session (read-only)."""

    async def list_bets(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        game_type: str | None,
    ) -> list[tuple[int, Bet]]:
        result = await db.execute(
            _LIST_BETS_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "game_type": game_type,
                "limit": limit,
            },
        )
        return [(row.id, _row_to_bet(row)) for row in result.fetchall()]

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {"account_id": account_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
