"""CrashRoundEngine — the single authoritative producer of live crash rounds.

One background task per process runs rounds back to back:

    new round (crash point drawn) → BETTING for CRASH_BETTING_WINDOW_MS
    → RUNNING, one tick every CRASH_TICK_MS → CRASHED → cooldown → next round

Every state change and tick is published to the TickFeed. Player requests
(place_bet, cash_out) never advance the round themselves: bets are debited
through the settlement coordinator and added to the open round; cash-outs are
queued and resolved by the producer on its next tick. Wins and losses are
settled through the coordinator under the bet's own bet_id, so the live game
shares the idempotency and compensation path of every other bet.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from datetime import datetime
from typing import Any

from config.settings import Settings, settings
from src.ge_account.domain.models import Bet
from src.ge_common.cents import multiplier_to_hundredths
from src.ge_common.datetime_utils import utc_now
from src.ge_common.enums import GameType, RoundState
from src.ge_common.errors import (
    AppError,
    BettingClosedError,
    FailedError,
    InternalError,
    TooLateError,
)
from src.ge_common.id_generator import generate_id
from src.ge_config.domain.models import GameConfiguration
from src.ge_crash.domain.models import (
    Cashout,
    CashoutResult,
    CrashBet,
    RoundSnapshot,
    RoundSummary,
    Tick,
)
from src.ge_crash.domain.repository import CrashHistoryProtocol
from src.ge_crash.engine.feed import TickFeed
from src.ge_crash.engine.round import CrashRound
from src.ge_payout.domain.calculator import payout
from src.ge_payout.domain.crash import crash_payout_x100, validate_auto_cashout
from src.ge_payout.domain.models import CrashOutcome
from src.ge_settlement.application.coordinator import SettlementCoordinator, refund_of

logger = logging.getLogger(__name__)

# Pause after an unexpected producer error before the next round
_RESTART_DELAY_S = 1.0


class CrashRoundEngine:
    def __init__(
        self,
        coordinator: SettlementCoordinator,
        history: CrashHistoryProtocol | None = None,
        feed: TickFeed | None = None,
        config: Settings = settings,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._coordinator = coordinator
        self._history = history
        self.feed = feed or TickFeed()
        self._tick_s = config.CRASH_TICK_MS / 1000
        self._growth_rate = config.CRASH_GROWTH_RATE
        self._betting_window_s = config.CRASH_BETTING_WINDOW_MS / 1000
        self._cooldown_s = config.CRASH_COOLDOWN_MS / 1000
        self._clock = clock
        self._sleep = sleep
        self._new_id = id_factory

        self._round: CrashRound | None = None
        self._task: asyncio.Task[None] | None = None
        # bet_id -> future of a pending manual cash-out
        self._waiters: dict[str, asyncio.Future[CashoutResult]] = {}
        self._settlements: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="crash-round-producer")
        logger.info("Crash round engine started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._drain_settlements()
        round_ = self._round
        if round_ is not None and round_.state in (RoundState.BETTING, RoundState.RUNNING):
            await self._abort_round(round_, "engine stopped")
        self._round = None
        logger.info("Crash round engine stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.run_round()
            except Exception:
                logger.exception("Crash round failed")
                round_ = self._round
                if round_ is not None and round_.state != RoundState.CRASHED:
                    await self._abort_round(round_, "round failed")
                self._round = None
                await self._sleep(_RESTART_DELAY_S)

    # ------------------------------------------------------------------
    # Producer
    # ------------------------------------------------------------------

    def _config(self) -> GameConfiguration:
        return self._coordinator.registry.get(GameType.CRASH)

    async def run_round(self) -> CrashRound:
        """Play one full round, settle it, record it, then cool down."""
        config = self._config()
        crash_point = self._coordinator.rng.crash_point(
            config.house_edge_bps, config.max_crash_multiplier_x100
        )
        round_ = CrashRound(self._new_id(), multiplier_to_hundredths(crash_point), self._growth_rate)
        self._round = round_
        logger.debug("Round %s opened for bets", round_.round_id)

        self.feed.publish(round_.open_betting())
        await self._sleep(self._betting_window_s)

        self.feed.publish(round_.start())
        started_at = utc_now()
        started = self._clock()
        while round_.state == RoundState.RUNNING:
            await self._sleep(self._tick_s)
            elapsed_ms = int((self._clock() - started) * 1000)
            tick, cashouts = round_.advance(elapsed_ms)
            self.feed.publish(tick)
            for cashout in cashouts:
                self._spawn(self._settle_win(round_, cashout, config))
        crashed_at = utc_now()

        for bet in round_.losing_bets():
            waiter = self._waiters.pop(bet.bet_id, None)
            if waiter is not None and not waiter.done():
                waiter.set_exception(TooLateError(round_.round_id))
            self._spawn(self._settle_loss(round_, bet))
        await self._drain_settlements()

        await self._record(round_, started_at, crashed_at)
        await self._sleep(self._cooldown_s)
        self._round = None
        return round_

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._settlements.add(task)
        task.add_done_callback(self._settlements.discard)

    async def _drain_settlements(self) -> None:
        if self._settlements:
            # Shielded: stopping the producer must not cancel a settlement in flight
            await asyncio.shield(asyncio.gather(*list(self._settlements)))

    async def _settle_win(
        self, round_: CrashRound, cashout: Cashout, config: GameConfiguration
    ) -> None:
        # The round may still be running: the record must not reveal the crash point
        outcome = CrashOutcome(
            crash_point=round_.crash_point_x100 / 100,
            cashout_multiplier=cashout.multiplier_x100 / 100,
        )
        amount = payout(GameType.CRASH, outcome, cashout.stake, config)
        bet = Bet(
            bet_id=cashout.bet_id,
            account_id=cashout.account_id,
            game_type=GameType.CRASH,
            stake=cashout.stake,
            payout=amount,
            outcome={
                "cashout_multiplier": outcome.cashout_multiplier,
                "automatic": cashout.automatic,
            },
            round_id=round_.round_id,
        )
        waiter = self._waiters.pop(cashout.bet_id, None)
        try:
            receipt = await self._coordinator.settle(bet)
        except FailedError as exc:
            if waiter is not None and not waiter.done():
                waiter.set_exception(exc)
            return
        if waiter is not None and not waiter.done():
            waiter.set_result(
                CashoutResult(
                    bet_id=bet.bet_id,
                    round_id=round_.round_id,
                    multiplier_x100=cashout.multiplier_x100,
                    payout=amount,
                    balance=receipt.balance,
                )
            )

    async def _settle_loss(self, round_: CrashRound, crash_bet: CrashBet) -> None:
        outcome = CrashOutcome(crash_point=round_.crash_point_x100 / 100, cashout_multiplier=None)
        bet = Bet(
            bet_id=crash_bet.bet_id,
            account_id=crash_bet.account_id,
            game_type=GameType.CRASH,
            stake=crash_bet.stake,
            payout=0,
            outcome=outcome.to_payload(),
            round_id=round_.round_id,
        )
        with contextlib.suppress(FailedError):  # queued for compensation by settle()
            await self._coordinator.settle(bet)

    async def _abort_round(self, round_: CrashRound, reason: str) -> None:
        """Refund every bet the round did not resolve."""
        logger.error("Aborting round %s (%s), refunding open bets", round_.round_id, reason)
        for crash_bet in round_.bets:
            waiter = self._waiters.pop(crash_bet.bet_id, None)
            if waiter is not None and not waiter.done():
                waiter.set_exception(InternalError(f"Round {round_.round_id} aborted; stake refunded"))
            if crash_bet.cashed_out:
                continue
            with contextlib.suppress(FailedError):
                await self._coordinator.settle(refund_of(self._as_bet(round_, crash_bet), reason))

    async def _record(
        self, round_: CrashRound, started_at: datetime, crashed_at: datetime
    ) -> None:
        if self._history is None:
            return
        bets = round_.bets
        summary = RoundSummary(
            round_id=round_.round_id,
            crash_point_x100=round_.crash_point_x100,
            bet_count=len(bets),
            total_stake=sum(b.stake for b in bets),
            total_payout=sum(crash_payout_x100(b.stake, b.cashout_x100) for b in bets),
            started_at=started_at,
            crashed_at=crashed_at,
        )
        try:
            await self._history.record_round(summary)
        except AppError as exc:
            # Bets are already settled; only the round audit row is missing
            logger.error("Could not record round %s: %s", round_.round_id, exc.message)

    @staticmethod
    def _as_bet(round_: CrashRound, crash_bet: CrashBet) -> Bet:
        return Bet(
            bet_id=crash_bet.bet_id,
            account_id=crash_bet.account_id,
            game_type=GameType.CRASH,
            stake=crash_bet.stake,
            payout=0,
            outcome={},
            round_id=round_.round_id,
        )

    # ------------------------------------------------------------------
    # Player requests
    # ------------------------------------------------------------------

    def _open_round(self) -> CrashRound:
        if self._round is None:
            raise BettingClosedError()
        return self._round

    async def place_bet(
        self, account_id: str, stake: int, auto_cashout: float | None = None
    ) -> tuple[CrashBet, str]:
        """Debit the stake and join the round in its betting window.

        Returns the bet and the round id.
        """
        round_ = self._open_round()
        round_.check_bet_allowed(account_id)
        config = self._coordinator.validate_request(GameType.CRASH, stake)
        auto_x100 = (
            validate_auto_cashout(auto_cashout, config) if auto_cashout is not None else None
        )
        crash_bet = CrashBet(
            bet_id=self._new_id(),
            account_id=account_id,
            stake=stake,
            auto_cashout_x100=auto_x100,
        )
        await self._coordinator.accept_stake(
            account_id, stake, crash_bet.bet_id, GameType.CRASH, round_id=round_.round_id
        )
        try:
            # The window may have closed while the debit was in flight
            round_.add_bet(crash_bet)
        except AppError:
            await self._coordinator.settle(
                refund_of(self._as_bet(round_, crash_bet), "betting closed during debit")
            )
            raise
        logger.info(
            "Crash bet %s: account=%s stake=%d round=%s auto=%s",
            crash_bet.bet_id, account_id, stake, round_.round_id, auto_x100,
        )
        return crash_bet, round_.round_id

    async def cash_out(self, account_id: str) -> CashoutResult:
        """Queue a cash-out and wait for the producer to resolve and settle it."""
        round_ = self._open_round()
        crash_bet = round_.request_cashout(account_id)
        waiter = self._waiters.get(crash_bet.bet_id)
        if waiter is None:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters[crash_bet.bet_id] = waiter
        # Shielded: a disconnecting client must not cancel the shared future
        return await asyncio.shield(waiter)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def snapshot(self) -> RoundSnapshot:
        if self._round is None:
            return RoundSnapshot(round_id=None, state=RoundState.IDLE, multiplier_x100=100, bet_count=0)
        return self._round.snapshot()

    @contextlib.asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[Tick]]:
        async with self.feed.subscription() as queue:
            queue.put_nowait(self.snapshot_tick())
            yield queue

    def snapshot_tick(self) -> Tick:
        if self._round is None:
            return Tick(round_id="", state=RoundState.IDLE, multiplier_x100=100)
        return self._round.tick()
