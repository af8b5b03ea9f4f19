"""Roster-level actual/projected aggregation for one matchup."""

import logging
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from .constants import DEFAULT_SLOT
from .game_progress import completion_weights, game_state_for
from .models import GameState, PlayerContribution, RosterAggregate
from .schemas import Game, Matchup, Player, Roster, ScoringSettings, WeeklyStats
from .scoring import projected_points, status_class

logger = logging.getLogger('sleeper_live.aggregator')


def extract_week_stats(payload: Any, week: int) -> Optional[dict[str, Any]]:
    """
    Pull one week's stat bundle out of a provider payload.

    Accepts either a week-grouped payload ({"3": {"stats": {...}}, ...}),
    a single week record ({"stats": {...}}), or a bare stat dict.
    Anything malformed is treated as "no data".

    Args:
        payload: Raw provider payload (may be None)
        week: Week number to extract

    Returns:
        Stat dict, or None when the payload has nothing usable for the week
    """
    if not payload or not isinstance(payload, Mapping):
        return None

    if 'stats' in payload:
        record = payload
    elif str(week) in payload:
        record = payload[str(week)]
    elif all(str(key).isdigit() for key in payload):
        return None  # week-grouped payload without this week (bye)
    else:
        record = {'stats': payload}

    if not record or not isinstance(record, Mapping):
        return None

    try:
        return WeeklyStats.model_validate(record).stats or None
    except ValidationError as e:
        logger.warning(f'Malformed stat payload for week {week}: {e.error_count()} errors')
        return None


def lineup_starters(roster: Roster, matchup: Matchup) -> list[str]:
    """Starters for the week: the matchup's lineup, falling back to the roster's."""
    return list(matchup.starters or roster.starters or [])


def aggregate_roster(
    roster: Roster,
    matchup: Matchup,
    scoring: Optional[ScoringSettings],
    all_players: Mapping[str, Player],
    week: int,
    projections: Mapping[str, Any],
    games: Sequence[Game],
    roster_positions: Optional[Sequence[str]] = None,
    weekly_stats: Optional[Mapping[str, Any]] = None,
) -> RosterAggregate:
    """
    Combine actual points, projections, and game progress for a roster.

    For each starter (in lineup order) the accrued actual points are
    weighted by how far the player's game has progressed and the projected
    points by how much remains:
        - not started: 0 x actual, 1 x projected
        - in progress: 0.5 x actual, 0.5 x projected
        - final: 1 x actual, 0 x projected

    A starter missing from the player directory is still listed but
    contributes nothing. A missing or malformed projection counts as 0.

    Args:
        roster: Fantasy roster
        matchup: This roster's matchup for the week (carries players_points)
        scoring: League scoring settings
        all_players: Player directory keyed by player id
        week: Week number
        projections: Raw projection payloads keyed by player id
        games: Games for the week from the scoreboard feed
        roster_positions: League lineup slot labels, in lineup order
        weekly_stats: Raw actual stat payloads keyed by player id (optional)

    Returns:
        RosterAggregate with totals and one PlayerContribution per starter
    """
    roster_positions = roster_positions or []
    weekly_stats = weekly_stats or {}
    result = RosterAggregate()

    for i, player_id in enumerate(lineup_starters(roster, matchup)):
        player = all_players.get(player_id)
        actual_points = float(matchup.players_points.get(player_id, 0) or 0)

        stats = extract_week_stats(projections.get(player_id), week)
        proj_points = projected_points(stats, scoring, player) if stats else 0.0

        if player is None:
            logger.warning(
                f'Player {player_id} on roster {roster.roster_id} not in player directory; '
                'counting 0 points'
            )
            state = GameState.NOT_STARTED
            actual_weight, projected_weight = 0.0, 0.0
        else:
            state = game_state_for(player, games)
            actual_weight, projected_weight = completion_weights(state)

        contribution = PlayerContribution(
            player_id=player_id,
            player=player,
            actual_points=actual_points,
            projected_points=proj_points,
            position=roster_positions[i] if i < len(roster_positions) else DEFAULT_SLOT,
            game_state=state,
            weighted_actual=actual_points * actual_weight,
            weighted_projected=proj_points * projected_weight,
            status_class=status_class(player),
            detailed_stats=extract_week_stats(weekly_stats.get(player_id), week) or {},
        )

        result.total_actual += contribution.weighted_actual
        result.total_projected += contribution.weighted_projected
        result.player_contributions.append(contribution)

    result.total_combined = result.total_actual + result.total_projected
    return result
