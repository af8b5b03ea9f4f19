"""Exception hierarchy for the live matchup tracker."""

from typing import Optional


class SleeperLiveError(Exception):
    """Base class for tracker errors."""


class ProviderError(SleeperLiveError):
    """A remote data source failed (network, HTTP status, timeout, bad payload)."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class MatchupLookupError(SleeperLiveError):
    """The user's matchup could not be assembled for the current week."""


class RosterNotFoundError(MatchupLookupError):
    """The user has no roster in the league."""


class MatchupNotFoundError(MatchupLookupError):
    """The user's roster has no matchup this week."""


class OpponentMatchupNotFoundError(MatchupLookupError):
    """No other roster shares the user's matchup id."""


class OpponentRosterNotFoundError(MatchupLookupError):
    """The opponent's matchup references an unknown roster."""
