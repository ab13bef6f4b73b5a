# tests/unit/test_account_persistence.py
"""Unit tests for PostgresBalanceStore and BetQueryRepository using MagicMock sessions."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.ge_account.domain.models import Bet
from src.ge_account.infrastructure.persistence import BetQueryRepository, PostgresBalanceStore
from src.ge_common.enums import BetStatus, GameType
from src.ge_common.errors import (
    AccountNotFoundError,
    ConflictError,
    InsufficientBalanceError,
    StoreUnavailableError,
)


def _result(row=None, rows=None):
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    return result


def _account_row(balance=10_000, version=3, is_banned=False):
    row = MagicMock()
    row.account_id = "acct-1"
    row.balance = balance
    row.version = version
    row.is_banned = is_banned
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _balance_row(balance, version):
    row = MagicMock()
    row.account_id = "acct-1"
    row.balance = balance
    row.version = version
    return row


def _id_row(record_id):
    row = MagicMock()
    row.id = record_id
    return row


def _bet_row(record_id=1, **kwargs):
    row = MagicMock()
    row.id = record_id
    row.bet_id = kwargs.get("bet_id", f"bet-{record_id}")
    row.account_id = "acct-1"
    row.game_type = kwargs.get("game_type", "DICE")
    row.stake = 1_000
    row.payout = kwargs.get("payout", 1_980)
    row.outcome = kwargs.get("outcome", {"roll": 76})
    row.status = kwargs.get("status", "SETTLED")
    row.round_id = None
    row.created_at = datetime.now(UTC)
    return row


def _store(*results):
    """Store over one mocked session whose execute() returns `results` in order."""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=tx)
    tx.__aexit__ = AsyncMock(return_value=False)
    session.begin.return_value = tx
    session.execute = AsyncMock(side_effect=list(results))
    factory = MagicMock(return_value=session)
    return PostgresBalanceStore(factory), session


BET = Bet("bet-1", "acct-1", GameType.DICE, 1_000, 1_980, {"roll": 76})


class TestReads:
    async def test_get_balance(self) -> None:
        store, _ = _store(_result(_account_row(balance=5_000, version=7)))
        snapshot = await store.get_balance("acct-1")
        assert snapshot.balance == 5_000
        assert snapshot.version == 7

    async def test_unknown_account(self) -> None:
        store, _ = _store(_result(None))
        with pytest.raises(AccountNotFoundError):
            await store.get_balance("ghost")

    async def test_is_banned(self) -> None:
        store, _ = _store(_result(_account_row(is_banned=True)))
        assert await store.is_banned("acct-1") is True


class TestAdjustBalance:
    async def test_debit_writes_ledger_entry(self) -> None:
        store, session = _store(_result(_balance_row(9_000, 4)), _result())

        snapshot = await store.adjust_balance(
            "acct-1", -1_000, expected_version=3, entry_type="BET_STAKE", reference_id="bet-1"
        )

        assert snapshot.balance == 9_000
        assert snapshot.version == 4
        assert session.execute.await_count == 2
        ledger_params = session.execute.await_args_list[1].args[1]
        assert ledger_params["amount"] == -1_000
        assert ledger_params["balance_after"] == 9_000
        assert ledger_params["reference_id"] == "bet-1"

    async def test_no_ledger_without_entry_type(self) -> None:
        store, session = _store(_result(_balance_row(11_000, 4)))
        await store.adjust_balance("acct-1", 1_000)
        assert session.execute.await_count == 1

    async def test_version_mismatch_is_conflict(self) -> None:
        store, _ = _store(_result(None), _result(_account_row(version=4)))
        with pytest.raises(ConflictError) as exc_info:
            await store.adjust_balance("acct-1", -1_000, expected_version=3)
        assert exc_info.value.expected_version == 3

    async def test_negative_result_is_insufficient(self) -> None:
        store, _ = _store(_result(None), _result(_account_row(balance=500, version=3)))
        with pytest.raises(InsufficientBalanceError):
            await store.adjust_balance("acct-1", -1_000, expected_version=3)

    async def test_driver_error_is_store_unavailable(self) -> None:
        store, session = _store()
        session.execute.side_effect = OperationalError("UPDATE", {}, Exception("down"))
        with pytest.raises(StoreUnavailableError):
            await store.adjust_balance("acct-1", -1_000, expected_version=3)


class TestSettleBet:
    async def test_credits_payout_once(self) -> None:
        store, session = _store(
            _result(_id_row(42)),
            _result(_balance_row(10_980, 5)),
            _result(),
        )

        receipt = await store.settle_bet(BET)

        assert receipt.record_id == 42
        assert receipt.balance == 10_980
        assert not receipt.already_settled
        ledger_params = session.execute.await_args_list[2].args[1]
        assert ledger_params["entry_type"] == "BET_PAYOUT"
        assert ledger_params["amount"] == 1_980

    async def test_refund_uses_refund_entry(self) -> None:
        refund = Bet(
            "bet-1", "acct-1", GameType.DICE, 1_000, 1_000, {}, status=BetStatus.REFUNDED
        )
        store, session = _store(
            _result(_id_row(42)),
            _result(_balance_row(10_000, 5)),
            _result(),
        )

        await store.settle_bet(refund)

        assert session.execute.await_args_list[2].args[1]["entry_type"] == "BET_REFUND"

    async def test_losing_bet_reads_balance_only(self) -> None:
        loss = Bet("bet-1", "acct-1", GameType.DICE, 1_000, 0, {"roll": 1})
        store, session = _store(_result(_id_row(42)), _result(_account_row(balance=9_000)))

        receipt = await store.settle_bet(loss)

        assert receipt.balance == 9_000
        assert not receipt.already_settled
        assert session.execute.await_count == 2

    async def test_duplicate_bet_is_not_credited(self) -> None:
        store, session = _store(
            _result(None),                    # ON CONFLICT DO NOTHING
            _result(_id_row(42)),             # existing record
            _result(_account_row(balance=10_980)),
        )

        receipt = await store.settle_bet(BET)

        assert receipt.already_settled
        assert receipt.record_id == 42
        assert receipt.balance == 10_980
        assert session.execute.await_count == 3

    async def test_outcome_serialized_as_json(self) -> None:
        store, session = _store(_result(_id_row(1)))
        await store.append_bet_record(BET)
        params = session.execute.await_args_list[0].args[1]
        assert params["outcome"] == '{"roll": 76}'
        assert params["status"] == "SETTLED"


class TestBetQueries:
    async def test_list_bets(self) -> None:
        db = MagicMock()
        db.execute = AsyncMock(return_value=_result(rows=[_bet_row(2), _bet_row(1)]))

        rows = await BetQueryRepository().list_bets(db, "acct-1", None, 21, "DICE")

        assert [record_id for record_id, _ in rows] == [2, 1]
        assert rows[0][1].game_type == GameType.DICE
        assert rows[0][1].outcome == {"roll": 76}
        assert db.execute.await_args.args[1]["game_type"] == "DICE"

    async def test_outcome_as_text(self) -> None:
        db = MagicMock()
        db.execute = AsyncMock(return_value=_result(rows=[_bet_row(1, outcome='{"roll": 5}')]))
        rows = await BetQueryRepository().list_bets(db, "acct-1", None, 21, None)
        assert rows[0][1].outcome == {"roll": 5}

    async def test_list_ledger_entries(self) -> None:
        row = MagicMock()
        row.id = 7
        row.account_id = "acct-1"
        row.entry_type = "BET_STAKE"
        row.amount = -1_000
        row.balance_after = 9_000
        row.reference_id = "bet-1"
        row.created_at = datetime.now(UTC)
        db = MagicMock()
        db.execute = AsyncMock(return_value=_result(rows=[row]))

        entries = await BetQueryRepository().list_ledger_entries(db, "acct-1", 10, 21)

        assert entries[0].id == 7
        assert entries[0].amount == -1_000
        assert db.execute.await_args.args[1]["cursor_id"] == 10
