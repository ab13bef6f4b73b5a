"""PostgreSQL implementation of CrashHistoryProtocol.

A round is recorded once, by the producer, after all its bets are settled.
Re-recording the same round_id is a no-op.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.ge_common.errors import StoreUnavailableError
from src.ge_crash.domain.models import RoundSummary

logger = logging.getLogger(__name__)

_INSERT_ROUND_SQL = text("""
    INSERT INTO crash_rounds
        (round_id, crash_point_x100, bet_count, total_stake, total_payout,
         started_at, crashed_at)
    VALUES
        (:round_id, :crash_point_x100, :bet_count, :total_stake, :total_payout,
         :started_at, :crashed_at)
    ON CONFLICT (round_id) DO NOTHING
""")

_LIST_RECENT_SQL = text("""
    SELECT round_id, crash_point_x100, bet_count, total_stake, total_payout,
           started_at, crashed_at
    FROM crash_rounds
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_summary(row: Any) -> RoundSummary:
    return RoundSummary(
        round_id=row.round_id,
        crash_point_x100=row.crash_point_x100,
        bet_count=row.bet_count,
        total_stake=row.total_stake,
        total_payout=row.total_payout,
        started_at=row.started_at,
        crashed_at=row.crashed_at,
    )


class CrashRoundRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record_round(self, summary: RoundSummary) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        _INSERT_ROUND_SQL,
                        {
                            "round_id": summary.round_id,
                            "crash_point_x100": summary.crash_point_x100,
                            "bet_count": summary.bet_count,
                            "total_stake": summary.total_stake,
                            "total_payout": summary.total_payout,
                            "started_at": summary.started_at,
                            "crashed_at": summary.crashed_at,
                        },
                    )
        except DBAPIError as exc:
            raise StoreUnavailableError(f"crash_rounds write failed: {exc.orig!r}") from exc
        logger.debug("Recorded round %s", summary.round_id)

    async def list_recent(self, db: AsyncSession, limit: int) -> list[RoundSummary]:
        result = await db.execute(_LIST_RECENT_SQL, {"limit": limit})
        return [_row_to_summary(row) for row in result.fetchall()]
