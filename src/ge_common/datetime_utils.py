"""UTC datetime helpers."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware UTC now; every persisted timestamp goes through here."""
    return datetime.now(timezone.utc)


def isoformat_or_empty(value: datetime | None) -> str:
    return value.isoformat() if value else ""
