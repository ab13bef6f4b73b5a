"""Integration tests for the live crash round (requires running PG + Redis).

The production engine runs inside the app lifespan with default timings, so
these tests wait for real betting windows and can take several seconds.
"""

import asyncio

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")

_POLL_S = 0.05
_ROUND_TIMEOUT_S = 60


async def _wait_for_state(client: AsyncClient, state: str) -> dict:
    async def poll() -> dict:
        while True:
            data = (await client.get("/api/v1/crash/state")).json()["data"]
            if data["state"] == state:
                return data
            await asyncio.sleep(_POLL_S)

    return await asyncio.wait_for(poll(), timeout=_ROUND_TIMEOUT_S)


async def _wait_for_settled_bet(client: AsyncClient, headers: dict[str, str]) -> dict:
    async def poll() -> dict:
        while True:
            items = (
                await client.get("/api/v1/account/bets?game_type=CRASH", headers=headers)
            ).json()["data"]["items"]
            if items:
                return items[0]
            await asyncio.sleep(_POLL_S)

    return await asyncio.wait_for(poll(), timeout=_ROUND_TIMEOUT_S)


class TestCrashRound:
    async def test_health_reports_engine(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.json()["crash_engine"] == "running"

    async def test_auto_cashout_round_trip(self, client: AsyncClient, seed_account) -> None:
        _, headers = await seed_account(10_000)
        await _wait_for_state(client, "BETTING")

        placed = await client.post(
            "/api/v1/crash/bets",
            json={"stake_cents": 500, "auto_cashout": 1.5},
            headers=headers,
        )
        assert placed.status_code == 200
        bet = placed.json()["data"]
        assert bet["auto_cashout"] == 1.5

        settled = await _wait_for_settled_bet(client, headers)

        assert settled["bet_id"] == bet["bet_id"]
        assert settled["round_id"] == bet["round_id"]
        assert settled["payout_cents"] in (0, 750)
        balance = (await client.get("/api/v1/account/balance", headers=headers)).json()
        assert balance["data"]["balance_cents"] == 10_000 - 500 + settled["payout_cents"]

    async def test_second_bet_in_round_rejected(
        self, client: AsyncClient, seed_account
    ) -> None:
        _, headers = await seed_account(10_000)
        await _wait_for_state(client, "BETTING")
        body = {"stake_cents": 500}

        first = await client.post("/api/v1/crash/bets", json=body, headers=headers)
        second = await client.post("/api/v1/crash/bets", json=body, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["code"] in (6002, 6004)

    async def test_cashout_without_bet(self, client: AsyncClient, seed_account) -> None:
        _, headers = await seed_account(10_000)
        resp = await client.post("/api/v1/crash/cashout", headers=headers)
        assert resp.status_code in (404, 409)

    async def test_history_lists_finished_rounds(self, client: AsyncClient) -> None:
        await _wait_for_state(client, "BETTING")
        await _wait_for_state(client, "RUNNING")
        await _wait_for_state(client, "BETTING")

        resp = await client.get("/api/v1/crash/history?limit=5")

        items = resp.json()["data"]["items"]
        assert items
        assert all(item["crash_point"] >= 1.0 for item in items)
