"""Pydantic schemas and cursor utilities for ge_account API."""

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel

from src.ge_account.domain.models import Bet, LedgerEntry
from src.ge_common.cents import cents_to_display
from src.ge_common.datetime_utils import isoformat_or_empty

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGSERIAL key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor back to the last seen id. Malformed cursors read as 'first page'."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, account_id: str, balance: int) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
        )


class BetItem(BaseModel):
    bet_id: str
    game_type: str
    stake_cents: int
    stake_display: str
    payout_cents: int
    payout_display: str
    net_cents: int
    status: str
    round_id: str | None
    outcome: dict[str, Any]
    created_at: str

    @classmethod
    def from_domain(cls, bet: Bet) -> "BetItem":
        return cls(
            bet_id=bet.bet_id,
            game_type=bet.game_type.value,
            stake_cents=bet.stake,
            stake_display=cents_to_display(bet.stake),
            payout_cents=bet.payout,
            payout_display=cents_to_display(bet.payout),
            net_cents=bet.net,
            status=bet.status.value,
            round_id=bet.round_id,
            outcome=bet.outcome,
            created_at=isoformat_or_empty(bet.created_at),
        )


class BetHistoryResponse(BaseModel):
    items: list[BetItem]
    next_cursor: str | None
    has_more: bool


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_id: str | None
    created_at: str

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount_cents=entry.amount,
            amount_display=cents_to_display(entry.amount),
            balance_after_cents=entry.balance_after,
            balance_after_display=cents_to_display(entry.balance_after),
            reference_id=entry.reference_id,
            created_at=isoformat_or_empty(entry.created_at),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
