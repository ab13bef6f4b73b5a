"""Dice: roll 1..100 against a target in [1, 99].

OVER wins on roll > target  -> p = (100 - target) / 100
UNDER wins on roll <= target -> p = target / 100

UNDER is inclusive, not the strict roll < target of the classic game: a roll
equal to the target wins. Strict UNDER would make p = (target - 1) / 100, so
UNDER 1 could never win and OVER t and UNDER t would not cover the dice.

multiplier = (1 - house_edge) / p, for every target. This is what bakes the
house edge into each bet; the payout below is the same formula evaluated in
integers so no float rounding can leak value either way.
"""

from src.ge_common.cents import BPS_SCALE
from src.ge_common.enums import DiceDirection
from src.ge_common.errors import InvalidGameParametersError
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.models import DiceOutcome, DiceParams

ROLL_MIN = 1
ROLL_MAX = 100
TARGET_MIN = 1
TARGET_MAX = 99


def validate_target(target: int) -> None:
    if not (TARGET_MIN <= target <= TARGET_MAX):
        raise InvalidGameParametersError(
            f"dice target must be in [{TARGET_MIN}, {TARGET_MAX}], got {target}"
        )


def winning_rolls(target: int, direction: DiceDirection) -> int:
    """Number of rolls in 1..100 that win."""
    validate_target(target)
    if direction == DiceDirection.OVER:
        return ROLL_MAX - target
    return target


def win_probability(target: int, direction: DiceDirection) -> float:
    return winning_rolls(target, direction) / ROLL_MAX


def dice_multiplier(target: int, direction: DiceDirection, house_edge_bps: int) -> float:
    """(1 - edge) / p, for display and audit."""
    return (BPS_SCALE - house_edge_bps) / BPS_SCALE / win_probability(target, direction)


def is_win(roll: int, target: int, direction: DiceDirection) -> bool:
    if direction == DiceDirection.OVER:
        return roll > target
    return roll <= target


def winning_payout(stake: int, target: int, direction: DiceDirection, house_edge_bps: int) -> int:
    """stake * (1 - edge) / p, floored to the cent.

    With p = wins / 100: stake * (BPS - edge_bps) * 100 / (BPS * wins).
    """
    wins = winning_rolls(target, direction)
    return stake * (BPS_SCALE - house_edge_bps) * ROLL_MAX // (BPS_SCALE * wins)


def resolve_dice(roll: int, params: DiceParams, config: GameConfiguration) -> DiceOutcome:
    if not (ROLL_MIN <= roll <= ROLL_MAX):
        raise ValueError(f"roll {roll} outside [{ROLL_MIN}, {ROLL_MAX}]")
    return DiceOutcome(
        roll=roll,
        target=params.target,
        direction=params.direction,
        win_probability=win_probability(params.target, params.direction),
        multiplier=dice_multiplier(params.target, params.direction, config.house_edge_bps),
        won=is_win(roll, params.target, params.direction),
    )


def dice_payout(outcome: DiceOutcome, stake: int, config: GameConfiguration) -> int:
    if not outcome.won:
        return 0
    return winning_payout(stake, outcome.target, outcome.direction, config.house_edge_bps)
