"""payout(game_type, outcome, stake, config) — pure and deterministic.

Settlement calls this once per bet after the outcome is drawn. A payout is
never negative and is positive only when the outcome is a win.
"""

from src.ge_common.enums import GameType
from src.ge_common.errors import GameConfigurationError, InternalError
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.crash import crash_payout
from src.ge_payout.domain.dice import dice_payout
from src.ge_payout.domain.models import CrashOutcome, DiceOutcome, Outcome, SlotOutcome
from src.ge_payout.domain.slots import slots_payout


def payout(
    game_type: GameType, outcome: Outcome, stake: int, config: GameConfiguration
) -> int:
    if config.game_type != game_type:
        raise GameConfigurationError(
            f"configuration for {config.game_type.value} used to settle {game_type.value}"
        )
    if outcome.game_type != game_type:
        raise InternalError(
            f"{type(outcome).__name__} cannot settle a {game_type.value} bet"
        )

    if isinstance(outcome, DiceOutcome):
        amount = dice_payout(outcome, stake, config)
    elif isinstance(outcome, SlotOutcome):
        amount = slots_payout(outcome, stake, config)
    elif isinstance(outcome, CrashOutcome):
        amount = crash_payout(outcome, stake, config)
    else:
        raise InternalError(f"unsupported outcome {type(outcome).__name__}")

    if amount < 0 or (amount > 0 and not outcome.won):
        raise InternalError(f"payout {amount} inconsistent with outcome {outcome!r}")
    return amount
