"""CrashHistoryProtocol — where finished rounds are recorded."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ge_crash.domain.models import RoundSummary


class CrashHistoryProtocol(Protocol):
    async def record_round(self, summary: RoundSummary) -> None: ...

    async def list_recent(self, db: AsyncSession, limit: int) -> list[RoundSummary]: ...
