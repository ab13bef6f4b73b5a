"""CrashRound — state of one live round, advanced only by the producer.

IDLE → BETTING → RUNNING → CRASHED

Pure and synchronous: no I/O, no clock, no randomness. The crash point is
fixed at construction; the producer feeds elapsed time into advance() and
gets back the tick to broadcast plus the bets that won on that tick.

Resolution order within one tick:
  1. auto cash-outs whose threshold the curve has reached, at the threshold
  2. queued manual cash-outs, in receipt order, at the tick's multiplier
On the crash tick only standing auto cash-outs at or below the crash point
win; manual cash-outs still queued lose, since the round reached the crash
point before they were evaluated. A 1.00x round crashes in start(), before
any cash-out can be queued.
"""

import logging

from src.ge_common.enums import RoundState
from src.ge_common.errors import (
    BettingClosedError,
    DuplicateBetError,
    InternalError,
    NoActiveBetError,
    RoundNotRunningError,
    TooLateError,
)
from src.ge_crash.domain.models import Cashout, CrashBet, RoundSnapshot, Tick
from src.ge_payout.domain.crash import auto_cashout_honoured, multiplier_at_x100

logger = logging.getLogger(__name__)


class CrashRound:
    def __init__(self, round_id: str, crash_point_x100: int, growth_rate: float) -> None:
        if crash_point_x100 < 100:
            raise InternalError(f"crash point below 1.00x: {crash_point_x100}")
        self.round_id = round_id
        self.crash_point_x100 = crash_point_x100
        self.growth_rate = growth_rate
        self.state = RoundState.IDLE
        self.multiplier_x100 = 100
        self._bets: dict[str, CrashBet] = {}
        self._cashout_queue: list[str] = []

    @property
    def bets(self) -> list[CrashBet]:
        return list(self._bets.values())

    def bet_for(self, account_id: str) -> CrashBet | None:
        return self._bets.get(account_id)

    def _require(self, *states: RoundState) -> None:
        if self.state not in states:
            raise InternalError(
                f"round {self.round_id} is {self.state.value}, expected {'/'.join(s.value for s in states)}"
            )

    # --- producer-side transitions ---

    def open_betting(self) -> Tick:
        self._require(RoundState.IDLE)
        self.state = RoundState.BETTING
        return self.tick()

    def start(self) -> Tick:
        self._require(RoundState.BETTING)
        if self.crash_point_x100 <= 100:
            self._crash()
        else:
            self.state = RoundState.RUNNING
        return self.tick()

    def advance(self, elapsed_ms: int) -> tuple[Tick, list[Cashout]]:
        self._require(RoundState.RUNNING)
        curve_x100 = multiplier_at_x100(elapsed_ms, self.growth_rate)
        crashed = curve_x100 >= self.crash_point_x100
        self.multiplier_x100 = min(curve_x100, self.crash_point_x100)

        cashouts = self._resolve_auto()
        if crashed:
            self._crash()
        else:
            cashouts += self._resolve_queued()
        return self.tick(), cashouts

    def _crash(self) -> None:
        self.multiplier_x100 = self.crash_point_x100
        self.state = RoundState.CRASHED
        if self._cashout_queue:
            logger.info(
                "Round %s: %d queued cash-outs too late", self.round_id, len(self._cashout_queue)
            )
        self._cashout_queue.clear()
        logger.info(
            "Round %s crashed at %.2fx (%d bets, %d won)",
            self.round_id,
            self.crash_point_x100 / 100,
            len(self._bets),
            sum(1 for b in self._bets.values() if b.cashed_out),
        )

    def _resolve_auto(self) -> list[Cashout]:
        resolved = []
        for bet in self._bets.values():
            if bet.cashed_out or bet.auto_cashout_x100 is None:
                continue
            if auto_cashout_honoured(bet.auto_cashout_x100, self.multiplier_x100):
                resolved.append(self._win(bet, bet.auto_cashout_x100, automatic=True))
        return resolved

    def _resolve_queued(self) -> list[Cashout]:
        resolved = []
        for account_id in self._cashout_queue:
            bet = self._bets[account_id]
            if not bet.cashed_out:
                resolved.append(self._win(bet, self.multiplier_x100, automatic=False))
        self._cashout_queue.clear()
        return resolved

    def _win(self, bet: CrashBet, multiplier_x100: int, automatic: bool) -> Cashout:
        bet.cashout_x100 = multiplier_x100
        return Cashout(
            bet_id=bet.bet_id,
            account_id=bet.account_id,
            stake=bet.stake,
            multiplier_x100=multiplier_x100,
            automatic=automatic,
        )

    # --- player-side requests ---

    def add_bet(self, bet: CrashBet) -> None:
        if self.state != RoundState.BETTING:
            raise BettingClosedError()
        if bet.account_id in self._bets:
            raise DuplicateBetError(bet.account_id)
        self._bets[bet.account_id] = bet

    def check_bet_allowed(self, account_id: str) -> None:
        """Pre-debit check; add_bet repeats it after the debit."""
        if self.state != RoundState.BETTING:
            raise BettingClosedError()
        if account_id in self._bets:
            raise DuplicateBetError(account_id)

    def request_cashout(self, account_id: str) -> CrashBet:
        """Queue a cash-out for the next tick. Repeated requests are idempotent."""
        bet = self._bets.get(account_id)
        if bet is None:
            raise NoActiveBetError(account_id)
        if self.state == RoundState.CRASHED:
            raise TooLateError(self.round_id)
        if self.state != RoundState.RUNNING:
            raise RoundNotRunningError()
        if bet.cashed_out:
            raise NoActiveBetError(account_id)
        if account_id not in self._cashout_queue:
            self._cashout_queue.append(account_id)
        return bet

    # --- views ---

    def losing_bets(self) -> list[CrashBet]:
        self._require(RoundState.CRASHED)
        return [b for b in self._bets.values() if not b.cashed_out]

    def tick(self) -> Tick:
        return Tick(
            round_id=self.round_id,
            state=self.state,
            multiplier_x100=self.multiplier_x100,
            crash_point_x100=(
                self.crash_point_x100 if self.state == RoundState.CRASHED else None
            ),
        )

    def snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            round_id=self.round_id,
            state=self.state,
            multiplier_x100=self.multiplier_x100,
            bet_count=len(self._bets),
            crash_point_x100=(
                self.crash_point_x100 if self.state == RoundState.CRASHED else None
            ),
        )
