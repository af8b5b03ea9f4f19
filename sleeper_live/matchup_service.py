"""Matchup assembly and the per-poll computation pipeline."""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from pydantic import ValidationError

from .aggregator import aggregate_roster, lineup_starters
from .cache import ProbabilityCache
from .constants import DEFAULT_SIMULATIONS, DEFAULT_TEAM_NAME, DEFAULT_VOLATILITY
from .exceptions import (
    MatchupLookupError,
    MatchupNotFoundError,
    OpponentMatchupNotFoundError,
    OpponentRosterNotFoundError,
    ProviderError,
    RosterNotFoundError,
)
from .feed import ScoringFeed
from .game_progress import any_game_live, roster_progress
from .interfaces import DataProvider, GameStatusProvider, NormalSampler
from .models import MatchupContext, MatchupSnapshot, RosterAggregate
from .schemas import Game, League, LeagueUser, Matchup, NflState, Player, Roster, User
from .validators import validate_aggregate, validate_probability
from .win_probability import estimate_win_probability, pregame_win_probability

logger = logging.getLogger('sleeper_live.matchup_service')


def _parse(model, payload: Any, what: str):
    """Validate a structural provider payload; failures are provider errors."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ProviderError(f'Unexpected {what} payload: {e}') from e


def create_user_map(users: Iterable[LeagueUser]) -> dict[str, str]:
    """Map user id to team name, falling back to display name."""
    user_map = {}
    for user in users:
        team_name = (user.metadata or {}).get('team_name')
        user_map[user.user_id] = team_name or user.display_name or DEFAULT_TEAM_NAME
    return user_map


def build_player_index(
    raw_players: Mapping[str, Any], player_ids: Iterable[str]
) -> dict[str, Player]:
    """Validate directory entries for the given ids. Missing or bad entries are left out."""
    players = {}
    for player_id in player_ids:
        raw = raw_players.get(player_id)
        if not isinstance(raw, dict):
            continue
        try:
            players[player_id] = Player.model_validate({**raw, 'player_id': player_id})
        except ValidationError as e:
            logger.warning(f'Malformed directory entry for player {player_id}: {e.error_count()} errors')
    return players


class MatchupService:
    """
    Long-lived service that scores one user's matchup each poll.

    Owns the win-probability cache and the scoring-feed history, so
    several services (e.g. one per league) never share state.
    """

    def __init__(
        self,
        provider: DataProvider,
        game_feed: GameStatusProvider,
        cache: Optional[ProbabilityCache] = None,
        feed: Optional[ScoringFeed] = None,
        simulations: int = DEFAULT_SIMULATIONS,
        volatility: float = DEFAULT_VOLATILITY,
        sampler: Optional[NormalSampler] = None,
        decay_opponent: bool = True,
        fail_closed_progress: bool = True,
        pregame_scale: float = 10.0,
    ):
        self.provider = provider
        self.game_feed = game_feed
        self.cache = cache or ProbabilityCache()
        self.feed = feed or ScoringFeed()
        self.simulations = simulations
        self.volatility = volatility
        self.sampler = sampler
        self.decay_opponent = decay_opponent
        self.fail_closed_progress = fail_closed_progress
        self.pregame_scale = pregame_scale

    async def load_matchup(self, username: str, league_id: str) -> MatchupContext:
        """
        Fetch league data and locate the user's matchup and opponent.

        Raises:
            ProviderError: A fetch failed or returned an unexpected payload
            RosterNotFoundError: The user has no roster in the league
            MatchupNotFoundError: The user's roster has no matchup this week
            OpponentMatchupNotFoundError: Nobody shares the user's matchup id
            OpponentRosterNotFoundError: The opponent's roster is missing
        """
        raw_user, raw_state, raw_league, raw_rosters, raw_users, raw_players = await asyncio.gather(
            self.provider.get_user(username),
            self.provider.get_nfl_state(),
            self.provider.get_league(league_id),
            self.provider.get_league_rosters(league_id),
            self.provider.get_league_users(league_id),
            self.provider.get_all_players(),
        )

        if not raw_user:
            raise RosterNotFoundError(f'User {username} not found')
        user = _parse(User, raw_user, 'user')
        state = _parse(NflState, raw_state, 'NFL state')
        league = _parse(League, raw_league, 'league')
        rosters = [_parse(Roster, r, 'roster') for r in raw_rosters or []]
        users = [_parse(LeagueUser, u, 'league user') for u in raw_users or []]

        raw_matchups = await self.provider.get_league_matchups(league_id, state.week)
        matchups = [_parse(Matchup, m, 'matchup') for m in raw_matchups or []]

        my_roster = next((r for r in rosters if r.owner_id == user.user_id), None)
        if my_roster is None:
            raise RosterNotFoundError(f'User roster not found in league {league_id}')

        my_matchup = next((m for m in matchups if m.roster_id == my_roster.roster_id), None)
        if my_matchup is None or my_matchup.matchup_id is None:
            raise MatchupNotFoundError(
                f'No matchup found for roster {my_roster.roster_id} in week {state.week}'
            )

        opponent_matchup = next(
            (
                m for m in matchups
                if m.matchup_id == my_matchup.matchup_id and m.roster_id != my_roster.roster_id
            ),
            None,
        )
        if opponent_matchup is None:
            raise OpponentMatchupNotFoundError(
                f'Opponent matchup not found for matchup {my_matchup.matchup_id}'
            )

        opponent_roster = next((r for r in rosters if r.roster_id == opponent_matchup.roster_id), None)
        if opponent_roster is None:
            raise OpponentRosterNotFoundError(
                f'Opponent roster {opponent_matchup.roster_id} not found'
            )

        player_ids = set(
            lineup_starters(my_roster, my_matchup) + lineup_starters(opponent_roster, opponent_matchup)
        )

        return MatchupContext(
            league=league,
            season=state.season,
            week=state.week,
            my_roster=my_roster,
            opponent_roster=opponent_roster,
            my_matchup=my_matchup,
            opponent_matchup=opponent_matchup,
            user_map=create_user_map(users),
            all_players=build_player_index(raw_players or {}, player_ids),
        )

    async def list_leagues(self, username: str) -> list[League]:
        """
        The user's leagues for the provider's current season.

        Raises:
            ProviderError: A fetch failed or returned an unexpected payload
            MatchupLookupError: The user does not exist
        """
        raw_user, raw_state = await asyncio.gather(
            self.provider.get_user(username),
            self.provider.get_nfl_state(),
        )
        if not raw_user:
            raise MatchupLookupError(f'User {username} not found')
        user = _parse(User, raw_user, 'user')
        state = _parse(NflState, raw_state, 'NFL state')

        raw_leagues = await self.provider.get_user_leagues(user.user_id, state.season)
        leagues = [_parse(League, league, 'league') for league in raw_leagues or []]
        logger.info(f'{username} has {len(leagues)} leagues in {state.season}')
        return leagues

    async def project_roster(
        self,
        context: MatchupContext,
        roster: Roster,
        matchup: Matchup,
        games: Sequence[Game],
    ) -> RosterAggregate:
        """Fetch projections and stats for a roster's starters and aggregate them."""
        starters = lineup_starters(roster, matchup)
        projections, weekly_stats = await asyncio.gather(
            self.provider.batch_player_projections(starters, context.season, context.week),
            self.provider.get_all_player_stats(starters, context.season, context.week),
        )
        return aggregate_roster(
            roster,
            matchup,
            context.league.scoring_settings,
            context.all_players,
            context.week,
            projections,
            games,
            roster_positions=context.league.roster_positions,
            weekly_stats=weekly_stats,
        )

    def win_probability(
        self,
        context: MatchupContext,
        my_projection: RosterAggregate,
        opponent_projection: RosterAggregate,
        games: Sequence[Game],
    ) -> float:
        """Cached live win probability for the user's side of the matchup."""
        my_starters = lineup_starters(context.my_roster, context.my_matchup)
        opp_starters = lineup_starters(context.opponent_roster, context.opponent_matchup)
        players = context.all_players

        live = any_game_live(my_starters + opp_starters, players, games)

        def compute() -> float:
            return estimate_win_probability(
                context.my_matchup.points or 0.0,
                my_projection.total_projected,
                roster_progress(my_starters, players, games, self.fail_closed_progress),
                context.opponent_matchup.points or 0.0,
                opponent_projection.total_projected,
                roster_progress(opp_starters, players, games, self.fail_closed_progress),
                simulations=self.simulations,
                volatility=self.volatility,
                sampler=self.sampler,
                decay_opponent=self.decay_opponent,
            )

        return self.cache.get_or_compute(context.matchup_id, live, compute)

    async def run_cycle(self, username: str, league_id: str) -> MatchupSnapshot:
        """
        One poll: load the matchup, aggregate both rosters, estimate, diff.

        Provider and lookup errors propagate to the caller; nothing is
        cached or remembered for a cycle that fails before completion.
        """
        context = await self.load_matchup(username, league_id)
        games = await self.game_feed.get_games(context.season, context.week)

        my_projection, opponent_projection = await asyncio.gather(
            self.project_roster(context, context.my_roster, context.my_matchup, games),
            self.project_roster(context, context.opponent_roster, context.opponent_matchup, games),
        )

        probability = self.win_probability(context, my_projection, opponent_projection, games)

        warnings = (
            validate_aggregate(f'roster {context.my_roster.roster_id}', my_projection,
                               len(lineup_starters(context.my_roster, context.my_matchup)))
            + validate_aggregate(f'roster {context.opponent_roster.roster_id}', opponent_projection,
                                 len(lineup_starters(context.opponent_roster, context.opponent_matchup)))
            + validate_probability(probability)
        )
        for warning in warnings:
            logger.warning(f'[{context.matchup_id}] {warning}')

        snapshot = MatchupSnapshot(
            context=context,
            my_projection=my_projection,
            opponent_projection=opponent_projection,
            win_probability=probability,
            pregame_probability=pregame_win_probability(
                my_projection.total_combined,
                opponent_projection.total_combined,
                self.pregame_scale,
            ),
        )
        snapshot.feed_events = self.feed.update(
            context.matchup_id, my_projection.player_contributions, snapshot.my_team_name
        ) + self.feed.update(
            context.matchup_id, opponent_projection.player_contributions, snapshot.opponent_team_name
        )

        logger.info(
            f'[{context.matchup_id}] week {context.week}: '
            f'{my_projection.total_combined:.1f} vs {opponent_projection.total_combined:.1f}, '
            f'win probability {probability:.1f}%'
        )
        return snapshot

    def reset(self) -> None:
        """Forget cached probabilities, feed history, and provider responses."""
        self.cache.clear()
        self.feed.clear()
        self.provider.clear_cache()
