"""Shared fixtures and fake collaborators for tracker tests."""

import copy
from typing import Any, Optional

import pytest

from sleeper_live.exceptions import ProviderError
from sleeper_live.schemas import Game, Player


class FixedSampler:
    """NormalSampler that always returns the mean plus a fixed offset."""

    def __init__(self, offset: float = 0.0):
        self.offset = offset
        self.calls = 0

    def normal(self, mean: float, sd: float) -> float:
        self.calls += 1
        return mean + self.offset


class FakeProvider:
    """In-memory DataProvider built from plain payload dicts."""

    def __init__(self, payloads: dict[str, Any]):
        self.payloads = copy.deepcopy(payloads)
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.cache_cleared = 0

    def _get(self, name: str) -> Any:
        self.calls.append(name)
        if name in self.fail_on:
            raise ProviderError(f'{name} unavailable', url=f'https://example.test/{name}')
        return copy.deepcopy(self.payloads.get(name))

    async def get_user(self, username: str):
        return self._get('user')

    async def get_nfl_state(self):
        return self._get('state')

    async def get_league(self, league_id: str):
        return self._get('league')

    async def get_league_rosters(self, league_id: str):
        return self._get('rosters')

    async def get_league_users(self, league_id: str):
        return self._get('users')

    async def get_league_matchups(self, league_id: str, week: int):
        return self._get('matchups')

    async def get_user_leagues(self, user_id: str, season: str):
        return self._get('user_leagues')

    async def get_all_players(self):
        return self._get('players')

    async def batch_player_projections(self, player_ids, season, week):
        projections = self._get('projections') or {}
        return {pid: projections.get(pid) for pid in player_ids}

    async def get_all_player_stats(self, player_ids, season, week):
        stats = self._get('stats') or {}
        return {pid: stats.get(pid) for pid in player_ids}

    def clear_cache(self) -> None:
        self.cache_cleared += 1


class FakeGameFeed:
    """GameStatusProvider returning a fixed, mutable list of games."""

    def __init__(self, games: Optional[list[Game]] = None):
        self.games = games or []
        self.calls = 0

    async def get_games(self, season=None, week=None):
        self.calls += 1
        return list(self.games)


def game(game_id: str, away: str, home: str, state: str = 'pre') -> Game:
    return Game(game_id=game_id, short_name=f'{away} @ {home}', competitors=[away, home], state=state)


def weekly(week: int, **stats) -> dict:
    """A week-grouped projection payload as Sleeper returns it."""
    return {str(week): {'stats': stats, 'week': week}}


@pytest.fixture
def players() -> dict[str, Player]:
    """A small player directory."""
    return {
        'p1': Player(player_id='p1', full_name='Josh Allen', position='QB', team='BUF'),
        'p2': Player(player_id='p2', full_name='Tyreek Hill', position='WR', team='MIA'),
        'p3': Player(player_id='p3', full_name='Travis Kelce', position='TE', team='KC',
                     injury_status='Questionable'),
        'p4': Player(player_id='p4', full_name='Terry McLaurin', position='WR', team='WAS'),
        'p5': Player(player_id='p5', full_name='Derrick Henry', position='RB', team='BAL'),
        'p6': Player(player_id='p6', full_name='Saquon Barkley', position='RB', team='PHI'),
    }


@pytest.fixture
def week_games() -> list[Game]:
    """Games for the week: BUF final, MIA live, KC not started, WSH live."""
    return [
        game('g1', 'NYJ', 'BUF', 'post'),
        game('g2', 'MIA', 'NE', 'in'),
        game('g3', 'KC', 'DEN', 'pre'),
        game('g4', 'WSH', 'DAL', 'in'),
    ]


@pytest.fixture
def league_payloads() -> dict[str, Any]:
    """Sleeper-shaped payloads for a two-roster league in week 3."""
    return {
        'user': {'user_id': 'u1', 'username': 'me', 'display_name': 'Me'},
        'state': {'season': '2024', 'week': 3},
        'league': {
            'league_id': 'L1',
            'name': 'Test League',
            'scoring_settings': {'rec': 1.0, 'bonus_rec_te': 0.5, 'pass_td': 4.0},
            'roster_positions': ['QB', 'WR', 'TE', 'BN'],
        },
        'rosters': [
            {'roster_id': 1, 'owner_id': 'u1', 'starters': ['p1', 'p2', 'p3']},
            {'roster_id': 2, 'owner_id': 'u2', 'starters': ['p4', 'p5', 'p6']},
        ],
        'user_leagues': [
            {'league_id': 'L1', 'name': 'Test League', 'season': '2024'},
            {'league_id': 'L2', 'name': 'Dynasty', 'season': '2024', 'scoring_settings': None},
        ],
        'users': [
            {'user_id': 'u1', 'display_name': 'Me', 'metadata': {'team_name': 'Bills Mafia'}},
            {'user_id': 'u2', 'display_name': 'Rival', 'metadata': {}},
        ],
        'matchups': [
            {'roster_id': 1, 'matchup_id': 7, 'points': 30.5,
             'starters': ['p1', 'p2', 'p3'],
             'players_points': {'p1': 24.5, 'p2': 6.0, 'p3': 0.0}},
            {'roster_id': 2, 'matchup_id': 7, 'points': 12.0,
             'starters': ['p4', 'p5', 'p6'],
             'players_points': {'p4': 12.0, 'p5': 0.0, 'p6': 0.0}},
        ],
        'players': {
            'p1': {'full_name': 'Josh Allen', 'position': 'QB', 'team': 'BUF'},
            'p2': {'full_name': 'Tyreek Hill', 'position': 'WR', 'team': 'MIA'},
            'p3': {'full_name': 'Travis Kelce', 'position': 'TE', 'team': 'KC',
                   'injury_status': 'Questionable'},
            'p4': {'full_name': 'Terry McLaurin', 'position': 'WR', 'team': 'WAS'},
            'p5': {'full_name': 'Derrick Henry', 'position': 'RB', 'team': 'BAL'},
            'p6': {'full_name': 'Saquon Barkley', 'position': 'RB', 'team': 'PHI'},
        },
        'projections': {
            'p1': weekly(3, pts_ppr=22.0, pts_half_ppr=22.0, pts_std=22.0),
            'p2': weekly(3, pts_ppr=16.0, pts_half_ppr=13.0, pts_std=10.0, rec=6),
            'p3': weekly(3, pts_ppr=12.0, pts_half_ppr=10.0, pts_std=8.0, rec=4),
            'p4': weekly(3, pts_ppr=14.0, pts_half_ppr=12.0, pts_std=10.0, rec=4),
            'p5': weekly(3, pts_ppr=18.0, pts_half_ppr=17.0, pts_std=16.0),
            'p6': weekly(3, pts_ppr=17.0, pts_half_ppr=16.0, pts_std=15.0),
        },
        'stats': {
            'p2': {'rec': 3, 'rec_yd': 30},
            'p4': {'rec': 5, 'rec_yd': 70},
        },
    }
