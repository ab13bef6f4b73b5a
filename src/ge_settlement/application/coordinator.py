"""SettlementCoordinator — the only code path that moves money for a bet.

Flow of one play:
  1. Validate   config, params and stake (no I/O), then account + balance
  2. Debit      compare-and-set on the balance version, bounded retries
  3. Draw       outcome + payout, synchronous; no await between the two
  4. Settle     credit + bet append in one store transaction, idempotent on bet_id

Nothing is drawn before the stake is committed. Once the stake is debited the
play can only end SETTLED, or FAILED with the bet queued for compensation.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from config.settings import Settings, settings
from src.ge_account.domain.models import BalanceSnapshot, Bet, SettlementReceipt
from src.ge_account.domain.repository import BalanceStoreProtocol
from src.ge_common.backoff import sleep_backoff
from src.ge_common.enums import BetStatus, GameType, LedgerEntryType, PlayState
from src.ge_common.errors import (
    AccountBannedError,
    AppError,
    ConflictError,
    DebitContentionError,
    DebitUnconfirmedError,
    FailedError,
    InsufficientBalanceError,
    InternalError,
    InvalidGameParametersError,
    StoreUnavailableError,
)
from src.ge_common.id_generator import generate_id
from src.ge_config.domain.models import GameConfiguration
from src.ge_config.domain.registry import GameConfigRegistry
from src.ge_payout.domain.calculator import payout
from src.ge_payout.domain.crash import validate_auto_cashout
from src.ge_payout.domain.dice import validate_target
from src.ge_payout.domain.draw import draw_outcome
from src.ge_payout.domain.models import CrashParams, DiceParams, GameParams, Outcome, SlotsParams
from src.ge_rng.engine.generator import RandomOutcomeGenerator
from src.ge_settlement.domain.state import transition

logger = logging.getLogger(__name__)

_PARAMS_BY_GAME: dict[GameType, type] = {
    GameType.DICE: DiceParams,
    GameType.SLOTS: SlotsParams,
    GameType.CRASH: CrashParams,
}


@dataclass(frozen=True)
class PlayResult:
    bet_id: str
    game_type: GameType
    stake: int
    outcome: Outcome
    payout: int
    new_balance: int


def refund_of(bet: Bet, reason: str) -> Bet:
    """The compensating settlement for a bet: stake back, same bet_id."""
    return Bet(
        bet_id=bet.bet_id,
        account_id=bet.account_id,
        game_type=bet.game_type,
        stake=bet.stake,
        payout=bet.stake,
        outcome={"refund_reason": reason},
        status=BetStatus.REFUNDED,
        round_id=bet.round_id,
    )


class SettlementCoordinator:
    def __init__(
        self,
        store: BalanceStoreProtocol,
        registry: GameConfigRegistry,
        rng: RandomOutcomeGenerator | None = None,
        config: Settings = settings,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._store = store
        self._registry = registry
        self._rng = rng or RandomOutcomeGenerator()
        self._debit_max_attempts = config.DEBIT_MAX_ATTEMPTS
        self._settle_max_attempts = config.SETTLEMENT_MAX_ATTEMPTS
        self._backoff_base_ms = config.SETTLEMENT_BACKOFF_BASE_MS
        self._backoff_max_ms = config.SETTLEMENT_BACKOFF_MAX_MS
        self._new_id = id_factory
        # bet_id -> bet that was debited but could not be settled
        self._pending: dict[str, Bet] = {}
        # pending bet_ids whose debit itself was never confirmed
        self._unconfirmed: set[str] = set()

    @property
    def pending_bets(self) -> list[Bet]:
        return list(self._pending.values())

    @property
    def rng(self) -> RandomOutcomeGenerator:
        return self._rng

    @property
    def registry(self) -> GameConfigRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Full play: dice, slots, instant crash
    # ------------------------------------------------------------------

    async def play(
        self, account_id: str, game_type: GameType, stake: int, params: GameParams
    ) -> PlayResult:
        bet_id = self._new_id()
        state = PlayState.RECEIVED
        try:
            config = self.validate_request(game_type, stake, params)
            state = self._advance(bet_id, state, PlayState.VALIDATED)
            balance = await self.accept_stake(account_id, stake, bet_id, game_type)
        except FailedError:
            # The debit may have applied; the stake is queued for compensation
            state = self._advance(bet_id, state, PlayState.DEBITED)
            self._advance(bet_id, state, PlayState.FAILED)
            raise
        except AppError as exc:
            state = self._advance(bet_id, state, PlayState.REJECTED)
            logger.info("Bet %s rejected for %s: %s", bet_id, account_id, exc.message)
            raise
        state = self._advance(bet_id, state, PlayState.DEBITED)

        try:
            outcome = draw_outcome(self._rng, game_type, params, config)
            amount = payout(game_type, outcome, stake, config)
        except Exception as exc:
            logger.exception("Outcome draw failed for bet %s, refunding stake", bet_id)
            self._advance(bet_id, state, PlayState.FAILED)
            staked = Bet(bet_id, account_id, game_type, stake, 0, {})
            try:
                await self.settle(refund_of(staked, "outcome draw failed"))
            except FailedError:
                pass  # queued for compensation and logged at CRITICAL by settle()
            raise InternalError(f"Bet {bet_id} could not be resolved; stake refunded") from exc
        state = self._advance(bet_id, state, PlayState.OUTCOME_DRAWN)

        bet = Bet(
            bet_id=bet_id,
            account_id=account_id,
            game_type=game_type,
            stake=stake,
            payout=amount,
            outcome=outcome.to_payload(),
        )
        try:
            receipt = await self.settle(bet)
        except FailedError:
            self._advance(bet_id, state, PlayState.FAILED)
            raise
        self._advance(bet_id, state, PlayState.SETTLED)
        logger.info(
            "Bet %s settled: account=%s game=%s stake=%d payout=%d balance %d→%d",
            bet_id, account_id, game_type.value, stake, amount, balance.balance, receipt.balance,
        )
        return PlayResult(
            bet_id=bet_id,
            game_type=game_type,
            stake=stake,
            outcome=outcome,
            payout=amount,
            new_balance=receipt.balance,
        )

    # ------------------------------------------------------------------
    # Building blocks, shared with the live crash engine
    # ------------------------------------------------------------------

    def validate_request(
        self, game_type: GameType, stake: int, params: GameParams | None = None
    ) -> GameConfiguration:
        """Input checks that need neither the store nor entropy."""
        config = self._registry.get(game_type)
        config.check_stake(stake)
        if params is None:
            return config
        if not isinstance(params, _PARAMS_BY_GAME[game_type]):
            raise InvalidGameParametersError(
                f"{type(params).__name__} does not apply to {game_type.value}"
            )
        if isinstance(params, DiceParams):
            validate_target(params.target)
        elif isinstance(params, CrashParams):
            validate_auto_cashout(params.auto_cashout, config)
        return config

    async def accept_stake(
        self,
        account_id: str,
        stake: int,
        reference_id: str,
        game_type: GameType,
        round_id: str | None = None,
    ) -> BalanceSnapshot:
        """Account checks, then debit the stake. Returns the balance before the debit.

        If the store failed mid-debit and the stake may have been taken, the bet
        is queued for compensation and FailedError raised instead of a rejection.
        """
        snapshot = await self._store.get_balance(account_id)
        if await self._store.is_banned(account_id):
            raise AccountBannedError(account_id)
        try:
            await self.debit(account_id, stake, reference_id, snapshot)
        except DebitUnconfirmedError as exc:
            staked = Bet(reference_id, account_id, game_type, stake, 0, {}, round_id=round_id)
            self._unconfirmed.add(reference_id)
            self._queue_failed(staked, exc)
            raise FailedError(reference_id) from exc
        return snapshot

    async def debit(
        self,
        account_id: str,
        stake: int,
        reference_id: str,
        snapshot: BalanceSnapshot | None = None,
    ) -> BalanceSnapshot:
        """Compare-and-set debit, applied at most once per reference_id.

        ConflictError means another mutation won the race: re-read, re-check
        the balance and try again. StoreUnavailableError is retried with
        backoff; once it has hit the debit itself, every later attempt first
        looks for the stake's ledger entry. Running out of attempts in that
        state raises DebitUnconfirmedError.
        """
        entry_type = LedgerEntryType.BET_STAKE.value
        unconfirmed = False
        last_error: StoreUnavailableError | None = None
        for attempt in range(1, self._debit_max_attempts + 1):
            debiting = False
            try:
                if unconfirmed and await self._store.has_ledger_entry(entry_type, reference_id):
                    logger.info("Stake %s was debited before the store failed", reference_id)
                    return await self._store.get_balance(account_id)
                if snapshot is None:
                    snapshot = await self._store.get_balance(account_id)
                if stake > snapshot.balance:
                    raise InsufficientBalanceError(stake, snapshot.balance)
                debiting = True
                return await self._store.adjust_balance(
                    account_id,
                    -stake,
                    expected_version=snapshot.version,
                    entry_type=entry_type,
                    reference_id=reference_id,
                )
            except ConflictError:
                logger.warning(
                    "Debit conflict for %s (attempt %d/%d, v%d)",
                    account_id, attempt, self._debit_max_attempts, snapshot.version,
                )
            except StoreUnavailableError as exc:
                last_error = exc
                unconfirmed = unconfirmed or debiting
                logger.warning(
                    "Debit %s failed (attempt %d/%d, in flight: %s): %s",
                    reference_id, attempt, self._debit_max_attempts, debiting, exc.message,
                )
            snapshot = None
            if attempt < self._debit_max_attempts:
                await sleep_backoff(attempt, self._backoff_base_ms, self._backoff_max_ms)
        if unconfirmed:
            raise DebitUnconfirmedError(reference_id) from last_error
        if last_error is not None:
            raise last_error
        raise DebitContentionError(account_id)

    async def settle(self, bet: Bet) -> SettlementReceipt:
        """Credit + append, retried on transient store failures.

        On exhaustion the bet is queued for compensation and FailedError raised.
        """
        last_error: AppError | None = None
        for attempt in range(1, self._settle_max_attempts + 1):
            try:
                receipt = await self._store.settle_bet(bet)
            except StoreUnavailableError as exc:
                last_error = exc
                logger.warning(
                    "Settlement of bet %s failed (attempt %d/%d): %s",
                    bet.bet_id, attempt, self._settle_max_attempts, exc.message,
                )
                if attempt < self._settle_max_attempts:
                    await sleep_backoff(attempt, self._backoff_base_ms, self._backoff_max_ms)
                continue
            except AppError as exc:
                last_error = exc
                break
            if receipt.already_settled:
                logger.info("Bet %s was already settled; nothing credited", bet.bet_id)
            return receipt

        self._queue_failed(bet, last_error)
        raise FailedError(bet.bet_id) from last_error

    def _queue_failed(self, bet: Bet, error: AppError | None) -> None:
        logger.critical(
            "Bet %s FAILED: account=%s stake=%d payout=%d error=%s",
            bet.bet_id, bet.account_id, bet.stake, bet.payout,
            error.message if error else "unknown",
        )
        self._pending[bet.bet_id] = bet

    async def retry_pending(self) -> list[SettlementReceipt]:
        """Refund every queued bet under its own bet_id.

        If the original settlement did commit, the store reports the bet as
        already settled and nothing is credited twice. A stake whose debit was
        never confirmed is only refunded once its ledger entry is found. A bet
        that keeps failing stays queued without holding up the ones behind it.
        """
        receipts: list[SettlementReceipt] = []
        for bet_id, bet in list(self._pending.items()):
            try:
                if bet_id in self._unconfirmed:
                    debited = await self._store.has_ledger_entry(
                        LedgerEntryType.BET_STAKE.value, bet_id
                    )
                    self._unconfirmed.discard(bet_id)
                    if not debited:
                        del self._pending[bet_id]
                        logger.info("Bet %s: stake was never debited; nothing to refund", bet_id)
                        continue
                receipt = await self._store.settle_bet(refund_of(bet, "settlement failed"))
            except StoreUnavailableError as exc:
                logger.warning("Compensation for bet %s still pending: %s", bet_id, exc.message)
                continue
            except AppError as exc:
                logger.critical(
                    "Compensation for bet %s failed: account=%s stake=%d error=%s",
                    bet_id, bet.account_id, bet.stake, exc.message,
                )
                continue
            del self._pending[bet_id]
            receipts.append(receipt)
            if receipt.already_settled:
                logger.info("Bet %s had settled before failing over; no refund", bet_id)
            else:
                logger.info("Bet %s refunded %d to %s", bet_id, bet.stake, bet.account_id)
        return receipts

    async def run_compensation_loop(self, interval_s: float) -> None:
        """Background task: retry queued bets until the process stops."""
        while True:
            await asyncio.sleep(interval_s)
            if self._pending:
                await self.retry_pending()

    def _advance(self, bet_id: str, current: PlayState, target: PlayState) -> PlayState:
        state = transition(current, target)
        logger.debug("Bet %s: %s → %s", bet_id, current.value, target.value)
        return state
