"""Win probability estimation.

The live estimate is a Monte Carlo simulation: each side's remaining
projection is decayed by how far its games have progressed, a normal
deviate around that remainder is added to the current score, and the
share of trials the first side wins is returned as a percentage.
"""

import math
import random
from typing import Optional

from .constants import DEFAULT_SIMULATIONS, DEFAULT_VOLATILITY
from .interfaces import NormalSampler


class BoxMullerSampler:
    """Normal deviates from pairs of uniform draws via the Box-Muller transform."""

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng or random.Random(seed)

    def _uniform(self) -> float:
        # Strictly positive so log() is defined
        u = 0.0
        while u <= 0.0:
            u = self.rng.random()
        return u

    def normal(self, mean: float, sd: float) -> float:
        u = self._uniform()
        v = self._uniform()
        z = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
        return mean + sd * z


def remaining_projection(remaining_projected: float, progress: float) -> float:
    """Projected points still to come once a share of games has finished."""
    progress = min(max(progress, 0.0), 1.0)
    return max(remaining_projected, 0.0) * (1.0 - progress)


def estimate_win_probability(
    my_score: float,
    my_remaining_projected: float,
    my_progress: float,
    opp_score: float,
    opp_remaining_projected: float,
    opp_progress: float,
    simulations: int = DEFAULT_SIMULATIONS,
    volatility: float = DEFAULT_VOLATILITY,
    sampler: Optional[NormalSampler] = None,
    decay_opponent: bool = True,
) -> float:
    """
    Estimate the chance (0-100) that "my" side finishes ahead.

    Args:
        my_score: Current points for my side
        my_remaining_projected: My projected points not yet accrued
        my_progress: Fraction of my starters' games completed, in [0, 1]
        opp_score: Current points for the opponent
        opp_remaining_projected: Opponent's projected points not yet accrued
        opp_progress: Fraction of the opponent's games completed
        simulations: Number of trials
        volatility: Standard deviation of each side's remaining points
        sampler: Normal sampler; a fresh unseeded BoxMullerSampler by default
        decay_opponent: Decay the opponent's mean by its progress. When False,
            the opponent is simulated around its undecayed projection.

    Returns:
        Percentage of trials won, in [0, 100]. Ties count as losses.
    """
    if simulations <= 0:
        raise ValueError(f'simulations must be positive, got {simulations}')

    sampler = sampler or BoxMullerSampler()
    sd = max(volatility, 0.0)

    my_mean = remaining_projection(my_remaining_projected, my_progress)
    if decay_opponent:
        opp_mean = remaining_projection(opp_remaining_projected, opp_progress)
    else:
        opp_mean = max(opp_remaining_projected, 0.0)

    wins = 0
    for _ in range(simulations):
        my_total = my_score + sampler.normal(my_mean, sd)
        opp_total = opp_score + sampler.normal(opp_mean, sd)
        if my_total > opp_total:
            wins += 1

    return 100.0 * wins / simulations


def pregame_win_probability(my_combined: float, opp_combined: float, scale: float = 10.0) -> float:
    """
    Closed-form estimate (0-100) from two combined totals.

    Logistic in the point margin; `scale` is the margin that moves the
    estimate from 50% to about 73%.
    """
    if scale <= 0:
        raise ValueError(f'scale must be positive, got {scale}')
    margin = (my_combined - opp_combined) / scale
    # Clamp so exp() cannot overflow
    margin = min(max(margin, -50.0), 50.0)
    return 100.0 / (1.0 + math.exp(-margin))
