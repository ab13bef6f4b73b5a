"""SQLAlchemy ORM model for crash_rounds (mirror of migration 005)."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.ge_common.database import Base


class CrashRoundORM(Base):
    __tablename__ = "crash_rounds"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    round_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    crash_point_x100: Mapped[int] = mapped_column(Integer, nullable=False)
    bet_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_stake: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_payout: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    crashed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
