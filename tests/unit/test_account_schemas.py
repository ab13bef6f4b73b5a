"""Unit tests for ge_account response schemas and cursor helpers."""

import base64
from datetime import UTC, datetime

from src.ge_account.application.schemas import (
    BalanceResponse,
    BetItem,
    LedgerEntryItem,
    cursor_decode,
    cursor_encode,
)
from src.ge_account.domain.models import Bet, LedgerEntry
from src.ge_common.enums import BetStatus, GameType


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(12345)) == 12345

    def test_cursor_is_opaque(self) -> None:
        assert "12345" not in cursor_encode(12345)

    def test_missing_id_key(self) -> None:
        bad = base64.urlsafe_b64encode(b'{"other": 1}').decode()
        assert cursor_decode(bad) is None


class TestBalanceResponse:
    def test_display(self) -> None:
        resp = BalanceResponse.from_cents("acct-1", 123_456)
        assert resp.balance_display == "$1,234.56"


class TestBetItem:
    def test_refund(self) -> None:
        bet = Bet(
            bet_id="bet-1",
            account_id="acct-1",
            game_type=GameType.CRASH,
            stake=500,
            payout=500,
            outcome={"refund_reason": "engine stopped"},
            status=BetStatus.REFUNDED,
            round_id="round-1",
            created_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
        )
        item = BetItem.from_domain(bet)
        assert item.status == "REFUNDED"
        assert item.net_cents == 0
        assert item.round_id == "round-1"
        assert item.created_at.startswith("2026-01-02T03:04:05")

    def test_missing_timestamp(self) -> None:
        bet = Bet("bet-1", "acct-1", GameType.DICE, 1_000, 0, {"roll": 3})
        assert BetItem.from_domain(bet).created_at == ""


class TestLedgerEntryItem:
    def test_negative_amount_display(self) -> None:
        entry = LedgerEntry(
            id=1,
            account_id="acct-1",
            entry_type="BET_STAKE",
            amount=-1_200,
            balance_after=8_800,
            reference_id="bet-1",
        )
        item = LedgerEntryItem.from_domain(entry)
        assert item.amount_display == "-$12.00"
        assert item.balance_after_display == "$88.00"
