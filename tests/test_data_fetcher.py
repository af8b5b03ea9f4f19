"""Tests for the remote data sources, using mocked HTTP transports."""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import polars as pl
import pytest

from sleeper_live.data_fetcher import (
    EspnScoreboardFeed,
    NflverseScheduleFeed,
    SleeperClient,
    parse_scoreboard,
    scoreboard_week,
)
from sleeper_live.exceptions import ProviderError

SCOREBOARD = {
    'events': [
        {
            'id': '401',
            'shortName': 'NYJ @ BUF',
            'competitions': [{'competitors': [
                {'team': {'abbreviation': 'BUF'}},
                {'team': {'abbreviation': 'NYJ'}},
            ]}],
            'status': {'type': {'state': 'post'}},
        },
        {
            'id': '402',
            'shortName': 'WSH @ DAL',
            'competitions': [{'competitors': [
                {'team': {'abbreviation': 'DAL'}},
                {'team': {'abbreviation': 'WSH'}},
            ]}],
            'status': {'type': {'state': 'in'}},
        },
        {'shortName': 'no id'},
    ]
}


class Recorder:
    """MockTransport handler that serves canned responses by path."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={'error': 'not found'})
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def sleeper_client(routes: dict, clock=None):
    recorder = Recorder(routes)
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    sleeper = SleeperClient(
        base_url='https://sleeper.test/v1',
        projection_url='https://proj.test',
        client=client,
        clock=clock or FakeClock(),
    )
    return sleeper, recorder


class TestSleeperClient:
    """Tests for the Sleeper API client."""

    def test_fetches_league(self):
        sleeper, recorder = sleeper_client({'/v1/league/L1': {'league_id': 'L1', 'name': 'Test'}})

        league = asyncio.run(sleeper.get_league('L1'))

        assert league['name'] == 'Test'
        assert str(recorder.requests[0].url) == 'https://sleeper.test/v1/league/L1'

    def test_fetches_user_leagues(self):
        sleeper, _ = sleeper_client({
            '/v1/user/u1/leagues/nfl/2024': [{'league_id': 'L1'}, {'league_id': 'L2'}],
        })

        leagues = asyncio.run(sleeper.get_user_leagues('u1', '2024'))

        assert [league['league_id'] for league in leagues] == ['L1', 'L2']

    def test_responses_cached_within_ttl(self):
        """Test a second call inside the TTL does not hit the network."""
        clock = FakeClock()
        sleeper, recorder = sleeper_client({'/v1/state/nfl': {'season': '2024', 'week': 3}}, clock)

        async def run():
            await sleeper.get_nfl_state()
            clock.now = 29
            await sleeper.get_nfl_state()
            clock.now = 31
            await sleeper.get_nfl_state()

        asyncio.run(run())
        assert len(recorder.requests) == 2

    def test_player_directory_uses_longer_ttl(self):
        clock = FakeClock()
        sleeper, recorder = sleeper_client({'/v1/players/nfl': {'p1': {'full_name': 'A'}}}, clock)

        async def run():
            await sleeper.get_all_players()
            clock.now = 600
            await sleeper.get_all_players()

        asyncio.run(run())
        assert len(recorder.requests) == 1

    def test_clear_cache(self):
        sleeper, recorder = sleeper_client({'/v1/user/me': {'user_id': 'u1'}})

        async def run():
            await sleeper.get_user('me')
            sleeper.clear_cache()
            await sleeper.get_user('me')

        asyncio.run(run())
        assert len(recorder.requests) == 2

    def test_http_error_raises_provider_error(self):
        sleeper, _ = sleeper_client({'/v1/league/L1': httpx.Response(500, text='boom')})

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(sleeper.get_league('L1'))

        assert '500' in str(exc_info.value)
        assert exc_info.value.url == 'https://sleeper.test/v1/league/L1'

    def test_invalid_json_raises_provider_error(self):
        sleeper, _ = sleeper_client({'/v1/league/L1': httpx.Response(200, text='<html>')})

        with pytest.raises(ProviderError):
            asyncio.run(sleeper.get_league('L1'))

    def test_network_error_raises_provider_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        sleeper = SleeperClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(ProviderError):
            asyncio.run(sleeper.get_user('me'))

    def test_projection_request_shape(self):
        sleeper, recorder = sleeper_client({'/projections/nfl/player/p1': {'3': {'stats': {'pts_ppr': 9}}}})

        result = asyncio.run(sleeper.get_player_projection('p1', '2024'))

        assert result == {'3': {'stats': {'pts_ppr': 9}}}
        params = recorder.requests[0].url.params
        assert params['season'] == '2024'
        assert params['grouping'] == 'week'
        assert params['season_type'] == 'regular'

    def test_player_stats_for_week(self):
        payload = {'3': {'stats': {'rec': 4}}, '4': {'stats': {}}}
        sleeper, _ = sleeper_client({'/stats/nfl/player/p1': payload})

        async def run():
            return (
                await sleeper.get_player_stats('p1', '2024', 3),
                await sleeper.get_player_stats('p1', '2024', 4),
                await sleeper.get_player_stats('p1', '2024', 5),
            )

        assert asyncio.run(run()) == ({'rec': 4}, None, None)

    def test_batch_failures_become_none(self):
        """Test one failed projection does not fail the batch."""
        sleeper, _ = sleeper_client({
            '/projections/nfl/player/p1': {'3': {'stats': {'pts_ppr': 9}}},
            '/projections/nfl/player/p2': httpx.Response(503),
        })

        result = asyncio.run(sleeper.batch_player_projections(['p1', 'p2'], '2024', 3))

        assert result['p1'] == {'3': {'stats': {'pts_ppr': 9}}}
        assert result['p2'] is None

    def test_batch_stats_failures_become_none(self):
        sleeper, _ = sleeper_client({'/stats/nfl/player/p1': {'3': {'stats': {'rec': 2}}}})

        result = asyncio.run(sleeper.get_all_player_stats(['p1', 'p9'], '2024', 3))

        assert result == {'p1': {'rec': 2}, 'p9': None}

    def test_borrowed_client_left_open(self):
        sleeper, _ = sleeper_client({})
        asyncio.run(sleeper.aclose())
        assert not sleeper.client.is_closed


class TestScoreboard:
    """Tests for ESPN scoreboard parsing."""

    def test_parse_scoreboard(self):
        games = parse_scoreboard(SCOREBOARD)

        assert [g.game_id for g in games] == ['401', '402']
        assert games[0].competitors == ['BUF', 'NYJ']
        assert games[0].state == 'post'
        assert games[1].short_name == 'WSH @ DAL'

    def test_unknown_state_is_pre(self):
        data = {'events': [{'id': 1, 'status': {'type': {'state': 'delayed'}}}]}
        assert parse_scoreboard(data)[0].state == 'pre'

    def test_garbage_document(self):
        assert parse_scoreboard(None) == []
        assert parse_scoreboard({'events': [None]}) == []

    def test_feed_fetches_games(self):
        recorder = Recorder({'/scoreboard': SCOREBOARD})
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        feed = EspnScoreboardFeed(url='https://espn.test/scoreboard', client=client)

        games = asyncio.run(feed.get_games('2024', 3))

        assert len(games) == 2

    def test_feed_failure_raises(self):
        recorder = Recorder({'/scoreboard': httpx.Response(502)})
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        feed = EspnScoreboardFeed(url='https://espn.test/scoreboard', client=client)

        with pytest.raises(ProviderError):
            asyncio.run(feed.get_games())

    def test_scoreboard_week(self):
        assert scoreboard_week({'week': {'number': 4}}) == 4
        assert scoreboard_week({'week': {}}) is None
        assert scoreboard_week(SCOREBOARD) is None
        assert scoreboard_week(None) is None

    def test_feed_warns_on_week_mismatch(self, caplog):
        """Test a scoreboard already rolled to another week is logged."""
        recorder = Recorder({'/scoreboard': {**SCOREBOARD, 'week': {'number': 4}}})
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        feed = EspnScoreboardFeed(url='https://espn.test/scoreboard', client=client)

        with caplog.at_level(logging.WARNING, logger='sleeper_live.data_fetcher'):
            games = asyncio.run(feed.get_games('2024', 3))

        assert len(games) == 2
        assert 'Scoreboard is on week 4 but week 3 was requested' in caplog.text

    def test_feed_matching_week_is_quiet(self, caplog):
        recorder = Recorder({'/scoreboard': {**SCOREBOARD, 'week': {'number': 3}}})
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        feed = EspnScoreboardFeed(url='https://espn.test/scoreboard', client=client)

        with caplog.at_level(logging.WARNING, logger='sleeper_live.data_fetcher'):
            asyncio.run(feed.get_games('2024', 3))

        assert 'was requested' not in caplog.text


@pytest.fixture
def schedules():
    return pl.DataFrame({
        'game_id': ['2024_02_NYJ_BUF', '2024_02_WAS_DAL', '2024_02_LA_ARI', '2024_03_KC_DEN'],
        'week': [2, 2, 2, 3],
        'away_team': ['NYJ', 'WAS', 'LA', 'KC'],
        'home_team': ['BUF', 'DAL', 'ARI', 'DEN'],
        'gameday': ['2024-09-15', '2024-09-15', '2024-09-15', '2024-09-22'],
        'gametime': ['13:00', '13:00', '16:25', '13:00'],
        'away_score': [17, None, None, None],
        'home_score': [24, None, None, None],
    })


@pytest.fixture
def sunday_afternoon():
    # 14:00 Eastern on 2024-09-15
    return lambda: datetime(2024, 9, 15, 18, 0, tzinfo=timezone.utc)


class TestNflverseScheduleFeed:
    """Tests for schedule-derived game states."""

    def test_states_for_week(self, schedules, sunday_afternoon):
        feed = NflverseScheduleFeed(now=sunday_afternoon)

        games = feed.games_for_week(schedules, 2)

        assert [(g.short_name, g.state) for g in games] == [
            ('NYJ @ BUF', 'post'),
            ('WSH @ DAL', 'in'),
            ('LAR @ ARI', 'pre'),
        ]

    def test_game_state_without_kickoff(self, sunday_afternoon):
        feed = NflverseScheduleFeed(now=sunday_afternoon)
        assert feed.game_state({'gameday': None}) == 'pre'
        assert feed.game_state({'gameday': 'TBD', 'gametime': '13:00'}) == 'pre'

    def test_get_games_uses_loaded_schedule(self, schedules, sunday_afternoon):
        feed = NflverseScheduleFeed(now=sunday_afternoon)

        with patch('sleeper_live.data_fetcher.nfl.load_schedules', return_value=schedules) as load:
            games = asyncio.run(feed.get_games('2024', 3))
            asyncio.run(feed.get_games('2024', 2))

        load.assert_called_once_with(seasons=2024)
        assert [g.competitors for g in games] == [['KC', 'DEN']]

    def test_get_games_requires_week(self, sunday_afternoon):
        feed = NflverseScheduleFeed(now=sunday_afternoon)
        with pytest.raises(ValueError):
            asyncio.run(feed.get_games('2024'))

    def test_load_failure_raises_provider_error(self, sunday_afternoon):
        feed = NflverseScheduleFeed(now=sunday_afternoon)
        with patch('sleeper_live.data_fetcher.nfl.load_schedules', side_effect=OSError('offline')):
            with pytest.raises(ProviderError):
                asyncio.run(feed.get_games('2024', 2))

    def test_schedule_reloaded_after_refresh(self, schedules, sunday_afternoon):
        """Test a result published mid-session moves a live game to final."""
        clock = FakeClock()
        feed = NflverseScheduleFeed(refresh_seconds=300, now=sunday_afternoon, clock=clock)
        scored = pl.DataFrame({
            **schedules.to_dict(as_series=False),
            'away_score': [17, 24, None, None],
            'home_score': [24, 24, None, None],
        })

        with patch('sleeper_live.data_fetcher.nfl.load_schedules', side_effect=[schedules, scored]) as load:
            before = asyncio.run(feed.get_games('2024', 2))
            clock.now = 299
            cached = asyncio.run(feed.get_games('2024', 2))
            clock.now = 301
            after = asyncio.run(feed.get_games('2024', 2))

        assert load.call_count == 2
        assert before[1].state == 'in'
        assert cached[1].state == 'in'
        assert after[1].state == 'post'
