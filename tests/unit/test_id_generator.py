"""Tests for ge_common.id_generator, ge_common.backoff and ge_common.datetime_utils."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from src.ge_common.backoff import backoff_delay_ms, sleep_backoff
from src.ge_common.datetime_utils import isoformat_or_empty, utc_now
from src.ge_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_ids_are_unique(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        ids = {gen.next_id() for _ in range(10_000)}
        assert len(ids) == 10_000

    def test_ids_increase(self) -> None:
        gen = SnowflakeIdGenerator()
        first, second = int(gen.next_id()), int(gen.next_id())
        assert second > first

    def test_worker_id_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(worker_id=1024)

    def test_clock_backwards_does_not_repeat(self) -> None:
        gen = SnowflakeIdGenerator()
        with patch.object(gen, "_now_ms", return_value=1_800_000_000_000):
            a = gen.next_id()
        with patch.object(gen, "_now_ms", return_value=1_799_999_999_000):
            b = gen.next_id()
        assert int(b) > int(a)

    def test_module_generator(self) -> None:
        assert generate_id() != generate_id()


class TestBackoff:
    def test_exponential(self) -> None:
        assert [backoff_delay_ms(n, 50, 2000) for n in (1, 2, 3, 4)] == [50, 100, 200, 400]

    def test_capped(self) -> None:
        assert backoff_delay_ms(10, 50, 2000) == 2000

    def test_no_delay_before_first_retry(self) -> None:
        assert backoff_delay_ms(0, 50, 2000) == 0

    async def test_sleep_backoff_sleeps_in_seconds(self) -> None:
        with patch("src.ge_common.backoff.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await sleep_backoff(2, 50, 2000)
        sleep.assert_awaited_once_with(0.1)

    async def test_sleep_backoff_skips_zero(self) -> None:
        with patch("src.ge_common.backoff.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await sleep_backoff(3, 0, 2000)
        sleep.assert_not_awaited()


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_isoformat_or_empty(self) -> None:
        assert isoformat_or_empty(None) == ""
        assert isoformat_or_empty(datetime(2026, 1, 1, tzinfo=UTC)).startswith("2026-01-01")
