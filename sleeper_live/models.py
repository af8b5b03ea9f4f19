"""Data models for the live matchup tracker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .schemas import League, Matchup, Player, Roster


class GameState(str, Enum):
    """State of a real-world game, in the scoreboard's vocabulary."""
    NOT_STARTED = 'pre'
    IN_PROGRESS = 'in'
    FINAL = 'post'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'GameState':
        """Map a raw scoreboard state to a GameState (unknown -> NOT_STARTED)."""
        try:
            return cls((value or '').lower())
        except ValueError:
            return cls.NOT_STARTED


@dataclass
class PlayerContribution:
    """One starter's share of a roster aggregate for a single poll."""
    player_id: str
    player: Optional[Player]
    actual_points: float
    projected_points: float
    position: str  # lineup slot label, e.g. 'QB', 'FLEX', 'SUPER_FLEX'
    game_state: GameState
    weighted_actual: float = 0.0
    weighted_projected: float = 0.0
    status_class: str = 'active'
    detailed_stats: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RosterAggregate:
    """Actual/projected totals for one roster in one matchup."""
    total_actual: float = 0.0
    total_projected: float = 0.0
    total_combined: float = 0.0
    player_contributions: List[PlayerContribution] = field(default_factory=list)


@dataclass
class CacheEntry:
    """A cached win probability (0-100) and its creation time (epoch seconds)."""
    value: float
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp

    def to_dict(self) -> Dict[str, float]:
        return {'value': self.value, 'timestamp': self.timestamp}


@dataclass
class FeedEvent:
    """A change in a starter's score or stat line between two polls."""
    matchup_id: str
    player_id: str
    player_name: str
    team_name: str
    score_diff: float
    stat_deltas: Dict[str, float] = field(default_factory=dict)


@dataclass
class MatchupContext:
    """Everything needed to score one user's matchup for the current week."""
    league: League
    season: str
    week: int
    my_roster: Roster
    opponent_roster: Roster
    my_matchup: Matchup
    opponent_matchup: Matchup
    user_map: Dict[str, str]
    all_players: Dict[str, Player]

    @property
    def matchup_id(self) -> str:
        return f'{self.league.league_id}:{self.week}:{self.my_matchup.matchup_id}'


@dataclass
class MatchupSnapshot:
    """Result of one poll cycle, handed to the presentation layer."""
    context: MatchupContext
    my_projection: RosterAggregate
    opponent_projection: RosterAggregate
    win_probability: float
    pregame_probability: Optional[float] = None
    feed_events: List[FeedEvent] = field(default_factory=list)

    @property
    def my_team_name(self) -> str:
        return self.context.user_map.get(self.context.my_roster.owner_id or '', '')

    @property
    def opponent_team_name(self) -> str:
        return self.context.user_map.get(self.context.opponent_roster.owner_id or '', '')
