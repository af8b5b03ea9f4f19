#!/usr/bin/env python3
"""
Sleeper Live Matchup Tracker CLI

Polls a Sleeper league for the user's current matchup and prints live
actual/projected totals and a win probability every few seconds.

Usage:
    python live_tracker.py --username someone --league 1048
    python live_tracker.py --username someone --league 1048 --once
    python live_tracker.py --username someone --league 1048 --games nflverse --interval 15
    python live_tracker.py --username someone --list-leagues
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sleeper_live import LivePoller, MatchupService, ProbabilityCache
from sleeper_live.cache import JsonFileStore
from sleeper_live.config import (
    get_config,
    get_poll_interval,
    get_simulation_settings,
    get_staleness_seconds,
)
from sleeper_live.data_fetcher import EspnScoreboardFeed, NflverseScheduleFeed, SleeperClient
from sleeper_live.exceptions import SleeperLiveError
from sleeper_live.logging_config import setup_logging
from sleeper_live.models import MatchupSnapshot
from sleeper_live.schemas import League


def print_snapshot(snapshot: MatchupSnapshot) -> None:
    """Print a matchup snapshot to stdout."""
    context = snapshot.context
    print(f'\n{"=" * 60}')
    print(f'{context.league.name} - Week {context.week}')
    print('=' * 60)

    sides = (
        (snapshot.my_team_name, context.my_matchup.points, snapshot.my_projection),
        (snapshot.opponent_team_name, context.opponent_matchup.points, snapshot.opponent_projection),
    )
    for team_name, points, projection in sides:
        print(
            f'\n{team_name or "Unknown Team"}: {points or 0:.2f} pts '
            f'(projected {projection.total_combined:.1f})'
        )
        for c in projection.player_contributions:
            name = c.player.display_name if c.player else c.player_id
            status = '' if c.status_class == 'active' else f' [{c.status_class.upper()}]'
            print(
                f'  {c.position:<10} {name:<24} {c.actual_points:6.2f} act '
                f'{c.projected_points:6.2f} proj  {c.game_state.name.lower()}{status}'
            )

    print(f'\nWin probability: {snapshot.win_probability:.1f}%', end='')
    if snapshot.pregame_probability is not None:
        print(f' (pregame estimate {snapshot.pregame_probability:.1f}%)')
    else:
        print()

    for event in snapshot.feed_events:
        sign = '+' if event.score_diff >= 0 else ''
        deltas = ', '.join(f'{k} {v:+g}' for k, v in sorted(event.stat_deltas.items()))
        print(f'  * {event.player_name} ({event.team_name}): {sign}{event.score_diff:.2f} {deltas}')


def print_error(error: SleeperLiveError) -> None:
    print(f'Error: {error}', file=sys.stderr)


def print_leagues(leagues: list[League]) -> None:
    """Print one line per league: id, name, season."""
    if not leagues:
        print('No leagues found')
        return
    for league in leagues:
        print(f'{league.league_id:<20} {league.name or "Unnamed League"} ({league.season or "?"})')


async def show_leagues(service: MatchupService, username: str) -> int:
    try:
        leagues = await service.list_leagues(username)
    except SleeperLiveError as e:
        print_error(e)
        return 1
    print_leagues(leagues)
    return 0


async def run(args: argparse.Namespace) -> int:
    config = get_config()
    simulations, volatility = get_simulation_settings()

    provider = SleeperClient(
        base_url=config.sleeper_base_url,
        projection_url=config.sleeper_projection_url,
        cache_seconds=config.response_cache_seconds,
        directory_cache_seconds=config.player_directory_cache_seconds,
        timeout=config.request_timeout,
    )
    if args.games == 'nflverse':
        game_feed = NflverseScheduleFeed(refresh_seconds=config.schedule_refresh_seconds)
    else:
        game_feed = EspnScoreboardFeed(url=config.espn_scoreboard_url, timeout=config.request_timeout)

    store = None if args.no_persist else JsonFileStore(Path(config.cache_path))
    service = MatchupService(
        provider,
        game_feed,
        cache=ProbabilityCache(store=store, staleness_seconds=get_staleness_seconds()),
        simulations=args.simulations or simulations,
        volatility=volatility if args.volatility is None else args.volatility,
        pregame_scale=config.pregame_scale,
    )
    if args.clear_cache:
        service.reset()

    try:
        if args.list_leagues or not args.league:
            return await show_leagues(service, args.username)

        poller = LivePoller(
            service,
            args.username,
            args.league,
            poll_interval=args.interval or get_poll_interval(),
            cycle_timeout=config.cycle_timeout,
            on_update=print_snapshot,
            on_error=print_error,
        )
        if args.once:
            return 0 if await poller.poll_once() else 1
        try:
            await poller.run()
        finally:
            poller.stop()
        return 0
    finally:
        await provider.aclose()
        if isinstance(game_feed, EspnScoreboardFeed):
            await game_feed.aclose()


def main():
    parser = argparse.ArgumentParser(description='Sleeper live matchup tracker')
    parser.add_argument('--username', '-u', required=True, help='Sleeper username')
    parser.add_argument('--league', '-l', help='Sleeper league id (omit to list your leagues)')
    parser.add_argument('--list-leagues', action='store_true', help="List the user's leagues for this season and exit")
    parser.add_argument('--once', action='store_true', help='Run a single cycle and exit')
    parser.add_argument('--interval', type=float, help='Poll interval in seconds')
    parser.add_argument('--simulations', type=int, help='Monte Carlo trials per estimate')
    parser.add_argument('--volatility', type=float, help='Std deviation of remaining points')
    parser.add_argument(
        '--games',
        choices=['espn', 'nflverse'],
        default='espn',
        help='Game status source (default: espn live scoreboard)',
    )
    parser.add_argument('--no-persist', action='store_true', help='Keep the probability cache in memory only')
    parser.add_argument('--clear-cache', action='store_true', help='Clear cached probabilities before starting')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == '__main__':
    main()
