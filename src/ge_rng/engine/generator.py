"""RandomOutcomeGenerator — every random draw of the engine goes through here.

Entropy comes from the OS CSPRNG (`secrets.SystemRandom`, backed by
os.urandom). There is deliberately no fallback: if the platform source is
missing the generator refuses to start.

Draws are made only after the stake has been debited, so nothing derived
from them can be observed before the bet is committed.
"""

import logging
import secrets
from collections.abc import Sequence
from typing import Protocol

from src.ge_common.cents import BPS_SCALE, validate_bps
from src.ge_common.errors import EntropyUnavailableError

logger = logging.getLogger(__name__)

CRASH_DRAW_BITS = 52
_CRASH_DRAW_SPACE = 1 << CRASH_DRAW_BITS
MIN_CRASH_X100 = 100


class EntropySource(Protocol):
    """Subset of random.Random used by the generator (SystemRandom in production)."""

    def getrandbits(self, k: int) -> int: ...

    def randbelow(self, n: int) -> int: ...


class _SystemEntropy:
    def __init__(self) -> None:
        self._rng = secrets.SystemRandom()

    def getrandbits(self, k: int) -> int:
        return self._rng.getrandbits(k)

    def randbelow(self, n: int) -> int:
        # SystemRandom._randbelow is rejection sampling over getrandbits
        return self._rng.randrange(n)


class RandomOutcomeGenerator:
    def __init__(self, source: EntropySource | None = None) -> None:
        self._source: EntropySource = source or _SystemEntropy()
        self._probe()

    def _probe(self) -> None:
        try:
            self._source.getrandbits(8)
        except NotImplementedError as exc:
            logger.critical("Secure random source unavailable: %s", exc)
            raise EntropyUnavailableError() from exc

    def _randbelow(self, n: int) -> int:
        try:
            return self._source.randbelow(n)
        except NotImplementedError as exc:
            raise EntropyUnavailableError() from exc

    def _getrandbits(self, k: int) -> int:
        try:
            return self._source.getrandbits(k)
        except NotImplementedError as exc:
            raise EntropyUnavailableError() from exc

    def uniform(self, low: int, high: int) -> int:
        """Integer in [low, high], every value equally likely."""
        if low > high:
            raise ValueError(f"empty range [{low}, {high}]")
        return low + self._randbelow(high - low + 1)

    def crash_point(self, house_edge_bps: int, max_multiplier_x100: int) -> float:
        """Crash multiplier >= 1.0, floored to hundredths.

        crash = (1 - edge) * 2^52 / r for one 52-bit draw r, which gives
        P(crash >= m) = (1 - edge) / m on the hundredths grid. Mass below 1.00x
        collapses to an instant 1.00x crash. r == 0 yields the round's cap.
        """
        validate_bps(house_edge_bps)
        if max_multiplier_x100 < MIN_CRASH_X100:
            raise ValueError("crash cap must be at least 1.00x")
        r = self._getrandbits(CRASH_DRAW_BITS)
        if r == 0:
            return max_multiplier_x100 / 100
        numerator = (BPS_SCALE - house_edge_bps) * _CRASH_DRAW_SPACE * 100
        crash_x100 = numerator // (BPS_SCALE * r)
        crash_x100 = max(MIN_CRASH_X100, min(max_multiplier_x100, crash_x100))
        return crash_x100 / 100

    def slot_grid(
        self, symbols: Sequence[str], rows: int, cols: int
    ) -> tuple[tuple[str, ...], ...]:
        """Independent uniform pick per cell; no linked reels."""
        if not symbols:
            raise ValueError("symbol set is empty")
        return tuple(
            tuple(symbols[self._randbelow(len(symbols))] for _ in range(cols))
            for _ in range(rows)
        )
