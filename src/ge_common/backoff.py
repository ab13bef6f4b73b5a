"""Bounded exponential backoff for store round trips."""

import asyncio


def backoff_delay_ms(attempt: int, base_ms: int, max_ms: int) -> int:
    """Delay before retry number `attempt` (1-based): base * 2^(attempt-1), capped."""
    if attempt < 1:
        return 0
    return min(max_ms, base_ms * (1 << (attempt - 1)))


async def sleep_backoff(attempt: int, base_ms: int, max_ms: int) -> None:
    delay = backoff_delay_ms(attempt, base_ms, max_ms)
    if delay > 0:
        await asyncio.sleep(delay / 1000)
