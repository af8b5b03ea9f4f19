"""Scoring feed: detects per-player score and stat changes between polls."""

from typing import Dict, Iterable, List, Optional, Tuple

from .models import FeedEvent, PlayerContribution

StatLine = Dict[str, float]


def _numeric(stats: Dict) -> StatLine:
    line = {}
    for key, value in stats.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        line[key] = float(value)
    return line


class ScoringFeed:
    """
    Remembers each starter's last seen points and stat line.

    State is keyed by (matchup_id, player_id), so feeds for different
    matchups never see each other's history.
    """

    def __init__(self):
        self._last_points: Dict[Tuple[str, str], float] = {}
        self._last_stats: Dict[Tuple[str, str], StatLine] = {}

    def update(
        self,
        matchup_id: str,
        contributions: Iterable[PlayerContribution],
        team_name: str = '',
    ) -> List[FeedEvent]:
        """
        Record a poll's contributions and return what changed.

        An event is emitted when a player's actual points moved or any of
        their stats differ from the previous poll. Stats that did not move
        are left out of the event.
        """
        events = []

        for contribution in contributions:
            key = (matchup_id, contribution.player_id)
            points = contribution.actual_points
            score_diff = points - self._last_points.get(key, 0.0)

            current = _numeric(contribution.detailed_stats)
            previous = self._last_stats.get(key, {})
            deltas = {
                stat: current.get(stat, 0.0) - previous.get(stat, 0.0)
                for stat in set(current) | set(previous)
            }
            deltas = {stat: delta for stat, delta in deltas.items() if delta != 0}

            if score_diff != 0 or deltas:
                player = contribution.player
                events.append(
                    FeedEvent(
                        matchup_id=matchup_id,
                        player_id=contribution.player_id,
                        player_name=player.display_name if player else 'Unknown Player',
                        team_name=team_name,
                        score_diff=score_diff,
                        stat_deltas=deltas,
                    )
                )

            self._last_points[key] = points
            self._last_stats[key] = current

        return events

    def last_points(self, matchup_id: str, player_id: str) -> Optional[float]:
        return self._last_points.get((matchup_id, player_id))

    def clear(self, matchup_id: Optional[str] = None) -> None:
        """Forget history for one matchup, or for all of them."""
        if matchup_id is None:
            self._last_points.clear()
            self._last_stats.clear()
            return
        for store in (self._last_points, self._last_stats):
            for key in [k for k in store if k[0] == matchup_id]:
                del store[key]
