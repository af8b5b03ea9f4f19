"""Real-world game state resolution and roster completion tracking."""

import logging
import re
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .constants import TEAM_ABBREV_ALIASES
from .models import GameState
from .schemas import Game, Player

logger = logging.getLogger('sleeper_live.game_progress')

# (actual_weight, projected_weight) per state
COMPLETION_WEIGHTS = {
    GameState.NOT_STARTED: (0.0, 1.0),
    GameState.IN_PROGRESS: (0.5, 0.5),
    GameState.FINAL: (1.0, 0.0),
}


def normalize_team(team: Optional[str]) -> str:
    """Normalize a roster-provider team abbreviation to scoreboard format."""
    team = (team or '').strip().upper()
    return TEAM_ABBREV_ALIASES.get(team, team)


def find_game(team: Optional[str], games: Sequence[Game]) -> Optional[Game]:
    """
    Find the game a team is playing in.

    Competitor abbreviations are checked first, then the tokens of the
    game's short name (e.g. "SEA @ ARI").

    Args:
        team: Team abbreviation in roster-provider format
        games: Games for the current week

    Returns:
        The matching Game, or None (bye week, unknown team)
    """
    team = normalize_team(team)
    if not team:
        return None

    for game in games:
        if team in (c.upper() for c in game.competitors):
            return game

    for game in games:
        tokens = re.split(r'[^A-Z0-9]+', game.short_name.upper())
        if team in tokens:
            return game

    return None


def game_state_for(player: Optional[Player], games: Sequence[Game]) -> GameState:
    """Resolve the state of a player's game; NOT_STARTED when no game matches."""
    if player is None:
        return GameState.NOT_STARTED
    game = find_game(player.team, games)
    if game is None:
        return GameState.NOT_STARTED
    return GameState.parse(game.state)


def completion_weights(state: GameState) -> Tuple[float, float]:
    """Return (actual_weight, projected_weight) for a game state. Always sums to 1."""
    return COMPLETION_WEIGHTS.get(state, COMPLETION_WEIGHTS[GameState.NOT_STARTED])


def completion_weight(state: GameState, for_actual: bool = True) -> float:
    """Fraction of a player's contribution counted toward actual (or projected) points."""
    actual, projected = completion_weights(state)
    return actual if for_actual else projected


def roster_progress(
    starters: Iterable[str],
    all_players: Mapping[str, Player],
    games: Sequence[Game],
    fail_closed: bool = True,
) -> float:
    """
    Average game completion across a roster's starters, in [0, 1].

    Starters missing from the player directory are skipped. A starter whose
    team has no game this week makes the whole roster report 0 when
    fail_closed is set; otherwise that starter is skipped too.

    Args:
        starters: Starter player ids
        all_players: Player directory keyed by player id
        games: Games for the current week
        fail_closed: Report 0 for the roster on the first unresolved game

    Returns:
        Mean actual-side completion weight (0 for an empty roster)
    """
    total = 0.0
    counted = 0

    for player_id in starters:
        player = all_players.get(player_id)
        if player is None:
            continue

        game = find_game(player.team, games)
        if game is None:
            if fail_closed:
                logger.debug(f'No game found for {player_id} ({player.team}); roster progress is 0')
                return 0.0
            continue

        total += completion_weight(GameState.parse(game.state), for_actual=True)
        counted += 1

    if counted == 0:
        return 0.0

    return total / counted


def any_game_live(
    player_ids: Iterable[str],
    all_players: Mapping[str, Player],
    games: Sequence[Game],
) -> bool:
    """True if any of the given players' games is in progress."""
    return any(
        game_state_for(all_players.get(player_id), games) == GameState.IN_PROGRESS
        for player_id in player_ids
    )
