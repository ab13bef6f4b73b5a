"""Draw one outcome from the generator for a given game."""

from src.ge_common.enums import GameType
from src.ge_common.errors import InternalError
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.crash import resolve_crash
from src.ge_payout.domain.dice import ROLL_MAX, ROLL_MIN, resolve_dice
from src.ge_payout.domain.models import CrashParams, DiceParams, GameParams, Outcome, SlotsParams
from src.ge_payout.domain.slots import GRID_COLS, GRID_ROWS, resolve_slots
from src.ge_rng.engine.generator import RandomOutcomeGenerator


def draw_outcome(
    rng: RandomOutcomeGenerator,
    game_type: GameType,
    params: GameParams,
    config: GameConfiguration,
) -> Outcome:
    if game_type == GameType.DICE and isinstance(params, DiceParams):
        return resolve_dice(rng.uniform(ROLL_MIN, ROLL_MAX), params, config)
    if game_type == GameType.SLOTS and isinstance(params, SlotsParams):
        names = [s.name for s in config.symbols]
        return resolve_slots(rng.slot_grid(names, GRID_ROWS, GRID_COLS), config)
    if game_type == GameType.CRASH and isinstance(params, CrashParams):
        crash_point = rng.crash_point(config.house_edge_bps, config.max_crash_multiplier_x100)
        return resolve_crash(crash_point, params)
    raise InternalError(f"{type(params).__name__} does not fit game {game_type.value}")
