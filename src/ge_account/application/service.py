"""AccountApplicationService — read-only views over balance and bet history.

Balances are read through the balance store (never cached); history pages
run on the request session. Nothing here mutates state.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.ge_account.application.schemas import (
    BalanceResponse,
    BetHistoryResponse,
    BetItem,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.ge_account.domain.repository import BalanceStoreProtocol, BetQueryProtocol
from src.ge_account.infrastructure.persistence import BetQueryRepository


class AccountApplicationService:
    def __init__(self, queries: BetQueryProtocol | None = None) -> None:
        self._queries: BetQueryProtocol = queries or BetQueryRepository()

    async def get_balance(
        self, store: BalanceStoreProtocol, account_id: str
    ) -> BalanceResponse:
        snapshot = await store.get_balance(account_id)
        return BalanceResponse.from_cents(account_id, snapshot.balance)

    async def list_bets(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
        game_type: str | None,
    ) -> BetHistoryResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        rows = await self._queries.list_bets(db, account_id, cursor_id, limit + 1, game_type)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1][0]) if has_more and page else None
        return BetHistoryResponse(
            items=[BetItem.from_domain(bet) for _, bet in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        entries = await self._queries.list_ledger_entries(db, account_id, cursor_id, limit + 1)
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
