"""Projection scoring and player availability classification."""

import math
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_STATUS_CLASS,
    HALF_PPR_FIELD,
    PPR_FIELD,
    STANDARD_FIELD,
    STATUS_CLASSES,
)
from .schemas import Player, ScoringSettings


def _stat(stats: Mapping[str, Any], key: str) -> float:
    """Read a numeric stat, treating missing, None, and non-numeric values as 0."""
    value = stats.get(key, 0) or 0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def points_field(scoring: Optional[ScoringSettings]) -> str:
    """Pick the precomputed points field that matches the league's reception value."""
    rec = scoring.rec if scoring else 0
    if rec == 1:
        return PPR_FIELD
    if rec == 0.5:
        return HALF_PPR_FIELD
    return STANDARD_FIELD


def projected_points(
    stats: Optional[Mapping[str, Any]],
    scoring: Optional[ScoringSettings],
    player: Optional[Player] = None,
) -> float:
    """
    Convert a raw stat bundle into fantasy points for a league.

    Scoring:
        - Base points come from the bundle's precomputed field:
          rec == 1 -> pts_ppr, rec == 0.5 -> pts_half_ppr, otherwise pts_std
        - Tight ends get bonus_rec_te points per reception on top

    Args:
        stats: Stat bundle from the provider (may be None)
        scoring: League scoring settings (may be None)
        player: Player record, used for the tight-end bonus

    Returns:
        Fantasy points (0.0 when there is no stat bundle)
    """
    if not stats:
        return 0.0

    points = _stat(stats, points_field(scoring))

    te_bonus = scoring.bonus_rec_te if scoring else 0
    if player is not None and player.position == 'TE' and te_bonus:
        receptions = _stat(stats, 'rec') or _stat(stats, 'receptions')
        points += te_bonus * receptions

    return points


def status_class(player: Optional[Player]) -> str:
    """Map a player's injury status to 'active', 'questionable' or 'out'."""
    status = (player.injury_status if player else None) or ''
    return STATUS_CLASSES.get(status.strip().lower(), DEFAULT_STATUS_CLASS)
