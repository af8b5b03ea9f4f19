"""Remote data sources: Sleeper API, ESPN scoreboard, and nflverse schedules."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence
from zoneinfo import ZoneInfo

import httpx
import polars as pl
from pydantic import ValidationError

try:
    import nflreadpy as nfl
except ImportError:
    raise ImportError("Please install nflreadpy: pip install nflreadpy")

from .constants import NFLVERSE_TEAM_ALIASES
from .exceptions import ProviderError
from .schemas import Game

logger = logging.getLogger('sleeper_live.data_fetcher')

SLEEPER_BASE_URL = 'https://api.sleeper.app/v1'
SLEEPER_PROJECTION_URL = 'https://api.sleeper.com'
ESPN_SCOREBOARD_URL = 'https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard'

NFL_KICKOFF_TZ = ZoneInfo('America/New_York')


async def _get_json(client: httpx.AsyncClient, url: str, params: Optional[dict] = None) -> Any:
    """GET a URL and decode JSON, mapping every failure to ProviderError."""
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        raise ProviderError(f'HTTP {e.response.status_code} from {url}', url) from e
    except httpx.TimeoutException as e:
        raise ProviderError(f'Timed out fetching {url}', url) from e
    except httpx.HTTPError as e:
        raise ProviderError(f'Request to {url} failed: {e}', url) from e
    except ValueError as e:
        raise ProviderError(f'Invalid JSON from {url}: {e}', url) from e


class SleeperClient:
    """
    Async Sleeper API client with a short-lived response cache.

    Responses are cached per request for cache_seconds (the player
    directory, which is several megabytes, for directory_cache_seconds).
    """

    def __init__(
        self,
        base_url: str = SLEEPER_BASE_URL,
        projection_url: str = SLEEPER_PROJECTION_URL,
        cache_seconds: float = 30.0,
        directory_cache_seconds: float = 3600.0,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip('/')
        self.projection_url = projection_url.rstrip('/')
        self.cache_seconds = cache_seconds
        self.directory_cache_seconds = directory_cache_seconds
        self.timeout = timeout
        self.clock = clock
        self._client = client
        self._owns_client = client is None
        self._cache: dict[str, tuple[float, Any]] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={'User-Agent': 'sleeper-live/0.1'},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> 'SleeperClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def fetch_with_cache(
        self,
        url: str,
        cache_key: Optional[str] = None,
        params: Optional[dict] = None,
        max_age: Optional[float] = None,
    ) -> Any:
        """Fetch JSON, serving a cached copy younger than max_age seconds."""
        key = cache_key or url
        max_age = self.cache_seconds if max_age is None else max_age
        cached = self._cache.get(key)
        if cached and self.clock() - cached[0] < max_age:
            return cached[1]

        data = await _get_json(self.client, url, params)
        self._cache[key] = (self.clock(), data)
        return data

    def clear_cache(self) -> None:
        self._cache.clear()

    async def get_user(self, username: str) -> dict[str, Any]:
        return await self.fetch_with_cache(f'{self.base_url}/user/{username}', f'user_{username}')

    async def get_nfl_state(self) -> dict[str, Any]:
        return await self.fetch_with_cache(f'{self.base_url}/state/nfl', 'nfl_state')

    async def get_league(self, league_id: str) -> dict[str, Any]:
        return await self.fetch_with_cache(f'{self.base_url}/league/{league_id}', f'league_{league_id}')

    async def get_league_rosters(self, league_id: str) -> list[dict[str, Any]]:
        return await self.fetch_with_cache(
            f'{self.base_url}/league/{league_id}/rosters', f'rosters_{league_id}'
        )

    async def get_league_users(self, league_id: str) -> list[dict[str, Any]]:
        return await self.fetch_with_cache(
            f'{self.base_url}/league/{league_id}/users', f'users_{league_id}'
        )

    async def get_league_matchups(self, league_id: str, week: int) -> list[dict[str, Any]]:
        return await self.fetch_with_cache(
            f'{self.base_url}/league/{league_id}/matchups/{week}', f'matchups_{league_id}_{week}'
        )

    async def get_user_leagues(self, user_id: str, season: str) -> list[dict[str, Any]]:
        return await self.fetch_with_cache(
            f'{self.base_url}/user/{user_id}/leagues/nfl/{season}', f'leagues_{user_id}_{season}'
        )

    async def get_all_players(self) -> dict[str, dict[str, Any]]:
        return await self.fetch_with_cache(
            f'{self.base_url}/players/nfl', 'all_players', max_age=self.directory_cache_seconds
        )

    async def get_player_projection(self, player_id: str, season: str) -> Any:
        """Season projections for a player, grouped by week."""
        return await self.fetch_with_cache(
            f'{self.projection_url}/projections/nfl/player/{player_id}',
            f'proj_{player_id}_{season}',
            params={'season_type': 'regular', 'season': season, 'grouping': 'week'},
        )

    async def get_player_stats(self, player_id: str, season: str, week: int) -> Optional[dict[str, Any]]:
        """A player's actual stat bundle for one week, or None if there is none yet."""
        all_stats = await self.fetch_with_cache(
            f'{self.projection_url}/stats/nfl/player/{player_id}',
            f'stats_{player_id}_{season}',
            params={'season_type': 'regular', 'season': season, 'grouping': 'week'},
        )
        if not isinstance(all_stats, dict):
            return None

        week_data = all_stats.get(str(week))
        if not isinstance(week_data, dict) or not week_data.get('stats'):
            return None
        return week_data['stats']  # type: ignore[no-any-return]

    async def batch_player_projections(
        self, player_ids: Sequence[str], season: str, week: int
    ) -> dict[str, Any]:
        """Projections for many players at once; a failed lookup yields None."""

        async def one(player_id: str) -> Any:
            try:
                return await self.get_player_projection(player_id, season)
            except ProviderError as e:
                logger.warning(f'Failed to get projection for player {player_id} (week {week}): {e}')
                return None

        results = await asyncio.gather(*(one(pid) for pid in player_ids))
        return dict(zip(player_ids, results))

    async def get_all_player_stats(
        self, player_ids: Sequence[str], season: str, week: int
    ) -> dict[str, Optional[dict[str, Any]]]:
        """Weekly stats for many players at once; a failed lookup yields None."""

        async def one(player_id: str) -> Optional[dict[str, Any]]:
            try:
                return await self.get_player_stats(player_id, season, week)
            except ProviderError as e:
                logger.warning(f'Failed to get stats for player {player_id} (week {week}): {e}')
                return None

        results = await asyncio.gather(*(one(pid) for pid in player_ids))
        return dict(zip(player_ids, results))


def parse_scoreboard(data: Any) -> list[Game]:
    """Map an ESPN scoreboard document to Game records, skipping malformed events."""
    games = []
    events = data.get('events', []) if isinstance(data, dict) else []

    for event in events:
        try:
            competitions = event.get('competitions') or [{}]
            competitors = [
                c['team']['abbreviation'] for c in competitions[0].get('competitors', [])
            ]
            state = ((event.get('status') or {}).get('type') or {}).get('state') or 'pre'
            games.append(
                Game(
                    game_id=str(event['id']),
                    short_name=event.get('shortName') or '',
                    competitors=competitors,
                    state=state if state in ('pre', 'in', 'post') else 'pre',
                )
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.warning(f'Skipping malformed scoreboard event {event!r:.80}: {e}')

    return games


def scoreboard_week(data: Any) -> Optional[int]:
    """The week number an ESPN scoreboard document covers, if it says."""
    try:
        return int(data['week']['number'])
    except (KeyError, TypeError, ValueError):
        return None


class EspnScoreboardFeed:
    """Live game states from ESPN's public NFL scoreboard."""

    def __init__(
        self,
        url: str = ESPN_SCOREBOARD_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_games(self, season: Optional[str] = None, week: Optional[int] = None) -> list[Game]:
        """
        The scoreboard's current week.

        season/week are not sent; ESPN picks the live week. A scoreboard
        on a different week than the one requested is logged.
        """
        data = await _get_json(self.client, self.url)
        games = parse_scoreboard(data)

        board_week = scoreboard_week(data)
        if week is not None and board_week is not None and board_week != int(week):
            logger.warning(
                f'Scoreboard is on week {board_week} but week {week} was requested; '
                f'game states may belong to the wrong week'
            )
        logger.debug(f'Scoreboard returned {len(games)} games')
        return games


class NflverseScheduleFeed:
    """
    Game states derived from nflverse schedules.

    Schedules carry final scores but no live status, so a game with a
    score is final, a game past kickoff without one is in progress, and
    anything else has not started. The schedule is reloaded once it is
    older than refresh_seconds, so results published mid-session move
    games to final.
    """

    def __init__(
        self,
        refresh_seconds: float = 300.0,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.refresh_seconds = refresh_seconds
        self.now = now
        self.clock = clock
        self._schedules: dict[int, tuple[float, pl.DataFrame]] = {}

    def _load(self, season: int) -> pl.DataFrame:
        cached = self._schedules.get(season)
        if cached and self.clock() - cached[0] < self.refresh_seconds:
            return cached[1]

        logger.info(f'Loading nflverse schedules for {season}...')
        schedules = nfl.load_schedules(seasons=season)
        self._schedules[season] = (self.clock(), schedules)
        return schedules

    @staticmethod
    def _team(team: Optional[str]) -> str:
        team = (team or '').upper()
        return NFLVERSE_TEAM_ALIASES.get(team, team)

    @staticmethod
    def _kickoff(row: dict) -> Optional[datetime]:
        gameday, gametime = row.get('gameday'), row.get('gametime')
        if not gameday:
            return None
        try:
            local = datetime.strptime(f'{gameday} {gametime or "13:00"}', '%Y-%m-%d %H:%M')
        except ValueError:
            return None
        return local.replace(tzinfo=NFL_KICKOFF_TZ)

    def game_state(self, row: dict) -> str:
        if row.get('home_score') is not None and row.get('away_score') is not None:
            return 'post'
        kickoff = self._kickoff(row)
        if kickoff is not None and kickoff <= self.now():
            return 'in'
        return 'pre'

    def games_for_week(self, schedules: pl.DataFrame, week: int) -> list[Game]:
        games = []
        for row in schedules.filter(pl.col('week') == week).iter_rows(named=True):
            away, home = self._team(row.get('away_team')), self._team(row.get('home_team'))
            games.append(
                Game(
                    game_id=str(row.get('game_id') or f'{away}@{home}'),
                    short_name=f'{away} @ {home}',
                    competitors=[away, home],
                    state=self.game_state(row),
                )
            )
        return games

    async def get_games(self, season: Optional[str] = None, week: Optional[int] = None) -> list[Game]:
        if season is None or week is None:
            raise ValueError('NflverseScheduleFeed needs both season and week')
        try:
            schedules = await asyncio.to_thread(self._load, int(season))
        except (OSError, ValueError) as e:
            raise ProviderError(f'Failed to load nflverse schedules for {season}: {e}') from e
        return self.games_for_week(schedules, week)
