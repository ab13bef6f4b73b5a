"""Unit-test doubles: an in-memory balance store and a scripted entropy source."""

import asyncio

import pytest

from config.settings import Settings, settings
from src.ge_account.domain.models import BalanceSnapshot, Bet, SettlementReceipt
from src.ge_common.errors import (
    AccountNotFoundError,
    AppError,
    ConflictError,
    InsufficientBalanceError,
    StoreUnavailableError,
)
from src.ge_config.domain.registry import GameConfigRegistry, build_default_registry
from src.ge_rng.engine.generator import RandomOutcomeGenerator
from src.ge_settlement.application.coordinator import SettlementCoordinator


class InMemoryBalanceStore:
    """BalanceStoreProtocol with the same guards as the SQL store.

    Every call yields to the event loop first so concurrent plays interleave
    and the version check genuinely races.

    Failure injection:
      conflicts        next N versioned adjustments lose a race
      adjust_failures  next N adjust_balance calls raise StoreUnavailableError unapplied
      lost_acks        next N adjust_balance calls apply, then raise StoreUnavailableError
      ledger_failures  next N has_ledger_entry calls raise StoreUnavailableError
      settle_failures  next N settle_bet calls raise StoreUnavailableError
      settle_errors    bet_id -> error every settle_bet of that bet raises
    """

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.versions: dict[str, int] = {}
        self.banned: set[str] = set()
        self.bets: dict[str, Bet] = {}
        self.ledger: list[tuple[str, str | None, int, str | None]] = []
        self.conflicts = 0
        self.adjust_failures = 0
        self.lost_acks = 0
        self.ledger_failures = 0
        self.settle_failures = 0
        self.settle_errors: dict[str, AppError] = {}
        self.settle_calls = 0
        self._lock = asyncio.Lock()

    def add_account(self, account_id: str, balance: int, banned: bool = False) -> None:
        self.balances[account_id] = balance
        self.versions[account_id] = 0
        if banned:
            self.banned.add(account_id)

    def _require(self, account_id: str) -> None:
        if account_id not in self.balances:
            raise AccountNotFoundError(account_id)

    async def get_balance(self, account_id: str) -> BalanceSnapshot:
        await asyncio.sleep(0)
        self._require(account_id)
        return BalanceSnapshot(account_id, self.balances[account_id], self.versions[account_id])

    async def is_banned(self, account_id: str) -> bool:
        await asyncio.sleep(0)
        self._require(account_id)
        return account_id in self.banned

    async def has_ledger_entry(self, entry_type: str, reference_id: str) -> bool:
        await asyncio.sleep(0)
        if self.ledger_failures > 0:
            self.ledger_failures -= 1
            raise StoreUnavailableError()
        return any(e[1] == entry_type and e[3] == reference_id for e in self.ledger)

    async def adjust_balance(
        self,
        account_id: str,
        delta: int,
        expected_version: int | None = None,
        entry_type: str | None = None,
        reference_id: str | None = None,
    ) -> BalanceSnapshot:
        await asyncio.sleep(0)
        if self.adjust_failures > 0:
            self.adjust_failures -= 1
            raise StoreUnavailableError()
        async with self._lock:
            self._require(account_id)
            if reference_id is not None and any(
                e[1] == entry_type and e[3] == reference_id for e in self.ledger
            ):
                return BalanceSnapshot(
                    account_id, self.balances[account_id], self.versions[account_id]
                )
            if expected_version is not None and self.conflicts > 0:
                self.conflicts -= 1
                self.versions[account_id] += 1  # someone else got there first
                raise ConflictError(account_id, expected_version)
            if expected_version is not None and self.versions[account_id] != expected_version:
                raise ConflictError(account_id, expected_version)
            if self.balances[account_id] + delta < 0:
                raise InsufficientBalanceError(-delta, self.balances[account_id])
            self.balances[account_id] += delta
            self.versions[account_id] += 1
            self.ledger.append((account_id, entry_type, delta, reference_id))
            if self.lost_acks > 0:
                self.lost_acks -= 1
                raise StoreUnavailableError("commit acknowledgement lost")
            return BalanceSnapshot(
                account_id, self.balances[account_id], self.versions[account_id]
            )

    async def append_bet_record(self, bet: Bet) -> int:
        await asyncio.sleep(0)
        self.bets.setdefault(bet.bet_id, bet)
        return list(self.bets).index(bet.bet_id) + 1

    async def settle_bet(self, bet: Bet) -> SettlementReceipt:
        await asyncio.sleep(0)
        self.settle_calls += 1
        if self.settle_failures > 0:
            self.settle_failures -= 1
            raise StoreUnavailableError()
        if bet.bet_id in self.settle_errors:
            raise self.settle_errors[bet.bet_id]
        async with self._lock:
            self._require(bet.account_id)
            if bet.bet_id in self.bets:
                return SettlementReceipt(
                    bet_id=bet.bet_id,
                    record_id=list(self.bets).index(bet.bet_id) + 1,
                    balance=self.balances[bet.account_id],
                    already_settled=True,
                )
            self.bets[bet.bet_id] = bet
            if bet.payout:
                self.balances[bet.account_id] += bet.payout
                self.versions[bet.account_id] += 1
                self.ledger.append((bet.account_id, bet.status.value, bet.payout, bet.bet_id))
            return SettlementReceipt(
                bet_id=bet.bet_id,
                record_id=len(self.bets),
                balance=self.balances[bet.account_id],
            )


class ScriptedEntropy:
    """EntropySource replaying queued values; 0 once a queue runs dry."""

    def __init__(self) -> None:
        self.bits: list[int] = []
        self.below: list[int] = []

    def getrandbits(self, k: int) -> int:
        return self.bits.pop(0) if self.bits else 0

    def randbelow(self, n: int) -> int:
        value = self.below.pop(0) if self.below else 0
        assert 0 <= value < n
        return value


@pytest.fixture
def fast_settings() -> Settings:
    """Default settings without backoff sleeps."""
    return settings.model_copy(update={"SETTLEMENT_BACKOFF_BASE_MS": 0})


@pytest.fixture
def store() -> InMemoryBalanceStore:
    return InMemoryBalanceStore()


@pytest.fixture
def registry(fast_settings: Settings) -> GameConfigRegistry:
    return build_default_registry(fast_settings)


@pytest.fixture
def entropy() -> ScriptedEntropy:
    return ScriptedEntropy()


@pytest.fixture
def scripted_rng(entropy: ScriptedEntropy) -> RandomOutcomeGenerator:
    return RandomOutcomeGenerator(entropy)


@pytest.fixture
def coordinator(
    store: InMemoryBalanceStore,
    registry: GameConfigRegistry,
    scripted_rng: RandomOutcomeGenerator,
    fast_settings: Settings,
) -> SettlementCoordinator:
    counter = iter(range(1, 1_000_000))
    return SettlementCoordinator(
        store,
        registry,
        scripted_rng,
        config=fast_settings,
        id_factory=lambda: f"bet-{next(counter)}",
    )
