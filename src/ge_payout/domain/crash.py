"""Crash payouts and the multiplier curve.

Multipliers are handled in hundredths (2.00x == 200) so comparisons between a
tick, an auto-cash-out threshold and the crash point are exact.
"""

import math

from src.ge_common.cents import apply_hundredths, multiplier_to_hundredths
from src.ge_common.errors import InvalidGameParametersError
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.models import CrashOutcome, CrashParams

MIN_AUTO_CASHOUT_X100 = 101


def validate_auto_cashout(auto_cashout: float, config: GameConfiguration) -> int:
    auto_x100 = multiplier_to_hundredths(auto_cashout)
    if auto_x100 < MIN_AUTO_CASHOUT_X100:
        raise InvalidGameParametersError(
            f"auto cash-out must be at least {MIN_AUTO_CASHOUT_X100 / 100:.2f}x"
        )
    if auto_x100 > config.max_crash_multiplier_x100:
        raise InvalidGameParametersError(
            f"auto cash-out above the {config.max_crash_multiplier}x cap"
        )
    return auto_x100


def auto_cashout_honoured(auto_x100: int, crash_x100: int) -> bool:
    """Cash-out and crash in the same tick: the standing instruction wins."""
    return auto_x100 <= crash_x100


def crash_payout_x100(stake: int, cashout_x100: int | None) -> int:
    if cashout_x100 is None:
        return 0
    return apply_hundredths(stake, cashout_x100)


def resolve_crash(crash_point: float, params: CrashParams) -> CrashOutcome:
    crash_x100 = multiplier_to_hundredths(crash_point)
    auto_x100 = multiplier_to_hundredths(params.auto_cashout)
    cashout = params.auto_cashout if auto_cashout_honoured(auto_x100, crash_x100) else None
    return CrashOutcome(crash_point=crash_point, cashout_multiplier=cashout)


def crash_payout(outcome: CrashOutcome, stake: int, config: GameConfiguration) -> int:
    if outcome.cashout_multiplier is None:
        return 0
    return crash_payout_x100(stake, multiplier_to_hundredths(outcome.cashout_multiplier))


def multiplier_at_x100(elapsed_ms: int, growth_rate: float) -> int:
    """Curve e^(rate * seconds), floored to hundredths; 1.00x at t=0."""
    if elapsed_ms <= 0:
        return 100
    value = math.exp(growth_rate * elapsed_ms / 1000)
    return max(100, math.floor(value * 100 + 1e-9))
