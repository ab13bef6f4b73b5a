"""Monte-Carlo RTP check.

Plays `rounds` bets of a fixed stake through the same draw and payout code
the settlement path uses, without touching any balance, and reports the
empirical return-to-player next to the configured one.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from src.ge_common.enums import GameType
from src.ge_config.domain.models import GameConfiguration
from src.ge_payout.domain.calculator import payout
from src.ge_payout.domain.draw import draw_outcome
from src.ge_payout.domain.models import GameParams
from src.ge_rng.engine.generator import RandomOutcomeGenerator

logger = logging.getLogger(__name__)


@dataclass
class SimulationReport:
    game_type: GameType
    rounds: int
    total_staked: int
    total_paid: int
    wins: int
    configured_rtp: float

    @property
    def rtp(self) -> float:
        return self.total_paid / self.total_staked if self.total_staked else 0.0

    @property
    def hit_rate(self) -> float:
        return self.wins / self.rounds if self.rounds else 0.0


def simulate_rtp(
    game_type: GameType,
    config: GameConfiguration,
    params: GameParams | Callable[[int], GameParams],
    rounds: int,
    stake: int = 100,
    rng: RandomOutcomeGenerator | None = None,
) -> SimulationReport:
    """`params` may be a callable of the round number, to vary strategy per round."""
    if rounds <= 0:
        raise ValueError("rounds must be positive")
    rng = rng or RandomOutcomeGenerator()
    total_paid = 0
    wins = 0
    for i in range(rounds):
        round_params = params(i) if callable(params) else params
        outcome = draw_outcome(rng, game_type, round_params, config)
        amount = payout(game_type, outcome, stake, config)
        total_paid += amount
        if amount > 0:
            wins += 1

    report = SimulationReport(
        game_type=game_type,
        rounds=rounds,
        total_staked=stake * rounds,
        total_paid=total_paid,
        wins=wins,
        configured_rtp=config.rtp,
    )
    logger.info(
        "RTP simulation %s: %d rounds, empirical %.4f vs configured %.4f",
        game_type.value,
        rounds,
        report.rtp,
        report.configured_rtp,
    )
    return report
