from .models import (
    CacheEntry,
    FeedEvent,
    GameState,
    MatchupContext,
    MatchupSnapshot,
    PlayerContribution,
    RosterAggregate,
)
from .scoring import projected_points, status_class
from .game_progress import (
    any_game_live,
    completion_weight,
    completion_weights,
    game_state_for,
    normalize_team,
    roster_progress,
)
from .aggregator import aggregate_roster
from .win_probability import (
    BoxMullerSampler,
    estimate_win_probability,
    pregame_win_probability,
)
from .cache import JsonFileStore, MemoryStore, ProbabilityCache
from .feed import ScoringFeed
from .exceptions import (
    MatchupLookupError,
    MatchupNotFoundError,
    OpponentMatchupNotFoundError,
    OpponentRosterNotFoundError,
    ProviderError,
    RosterNotFoundError,
    SleeperLiveError,
)
from .matchup_service import MatchupService
from .poller import LivePoller

__all__ = [
    # Models
    'CacheEntry',
    'FeedEvent',
    'GameState',
    'MatchupContext',
    'MatchupSnapshot',
    'PlayerContribution',
    'RosterAggregate',
    # Scoring
    'projected_points',
    'status_class',
    # Game progress
    'any_game_live',
    'completion_weight',
    'completion_weights',
    'game_state_for',
    'normalize_team',
    'roster_progress',
    # Aggregation & estimation
    'aggregate_roster',
    'BoxMullerSampler',
    'estimate_win_probability',
    'pregame_win_probability',
    # Caching & feed
    'JsonFileStore',
    'MemoryStore',
    'ProbabilityCache',
    'ScoringFeed',
    # Errors
    'MatchupLookupError',
    'MatchupNotFoundError',
    'OpponentMatchupNotFoundError',
    'OpponentRosterNotFoundError',
    'ProviderError',
    'RosterNotFoundError',
    'SleeperLiveError',
    # Orchestration
    'MatchupService',
    'LivePoller',
]
