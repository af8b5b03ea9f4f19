"""Constants and mappings for the live matchup tracker."""

# Sleeper team abbreviation -> ESPN scoreboard abbreviation
TEAM_ABBREV_ALIASES = {
    'WAS': 'WSH',
}

# nflverse schedule abbreviation -> ESPN scoreboard abbreviation
NFLVERSE_TEAM_ALIASES = {
    'LA': 'LAR',
    'WAS': 'WSH',
}

# Injury/availability status (lowercased) -> display class
STATUS_CLASSES = {
    'active': 'active',
    'questionable': 'questionable',
    'doubtful': 'questionable',
    'out': 'out',
    'inactive': 'out',
    'injured-reserve': 'out',
    'injured reserve': 'out',
    'ir': 'out',
}

DEFAULT_STATUS_CLASS = 'active'

# Slot label used when the league's roster_positions list is shorter than the lineup
DEFAULT_SLOT = 'FLEX'

# Projection point fields keyed by reception value
PPR_FIELD = 'pts_ppr'
HALF_PPR_FIELD = 'pts_half_ppr'
STANDARD_FIELD = 'pts_std'

# Win-probability cache
CACHE_KEY_PREFIX = 'winProb_'
STALENESS_SECONDS = 60.0

# Simulation defaults
DEFAULT_SIMULATIONS = 1000
DEFAULT_VOLATILITY = 25.0

DEFAULT_TEAM_NAME = 'Unnamed Team'
