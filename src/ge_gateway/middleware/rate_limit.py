"""Per-account fixed-window rate limit for money-moving endpoints.

Applied as a route dependency (after token verification) on play, crash bet
and cash-out. Redis INCR + EXPIRE, key "ratelimit:{account_id}:{group}:{window}".
Raises RateLimitError (9001, HTTP 429) when the window's budget is spent.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Depends

from config.settings import settings
from src.ge_common.errors import RateLimitError
from src.ge_common.redis_client import get_redis, incr_window
from src.ge_gateway.auth.dependencies import get_current_account_id

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


def rate_limited(
    group: str, limit: int | None = None
) -> Callable[..., Awaitable[str]]:
    """Build a dependency that returns the account id after charging one request."""

    async def dependency(account_id: str = Depends(get_current_account_id)) -> str:
        budget = limit if limit is not None else settings.RATE_LIMIT_PLAYS_PER_MINUTE
        window = int(time.time()) // WINDOW_SECONDS
        redis = await get_redis()
        count = await incr_window(
            redis, f"ratelimit:{account_id}:{group}:{window}", WINDOW_SECONDS
        )
        if count > budget:
            logger.info("Rate limit hit: account=%s group=%s count=%d", account_id, group, count)
            raise RateLimitError()
        return account_id

    return dependency
