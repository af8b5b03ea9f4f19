"""Pydantic schemas for provider payloads and tracker configuration."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Player(BaseModel):
    """Entry in the global player directory."""

    player_id: str
    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    position: str | None = None
    team: str | None = None
    injury_status: str | None = None

    class Config:
        extra = 'ignore'

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        return ' '.join(parts) or self.player_id


class Roster(BaseModel):
    """A fantasy roster in a league."""

    roster_id: int
    owner_id: str | None = None
    starters: list[str] = Field(default_factory=list)

    @field_validator('starters', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    class Config:
        extra = 'ignore'


class Matchup(BaseModel):
    """One roster's side of a weekly matchup."""

    roster_id: int
    matchup_id: int | None = None
    points: float | None = None
    starters: list[str] = Field(default_factory=list)
    players_points: dict[str, float] = Field(default_factory=dict)

    @field_validator('starters', 'players_points', mode='before')
    @classmethod
    def none_to_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == 'starters' else {}
        return v

    class Config:
        extra = 'ignore'


class ScoringSettings(BaseModel):
    """League scoring rules. Only reception value and the TE bonus are read directly."""

    rec: float = 0.0
    bonus_rec_te: float = 0.0

    class Config:
        extra = 'allow'


class League(BaseModel):
    """League metadata and configuration."""

    league_id: str
    name: str = ''
    season: str | None = None
    scoring_settings: ScoringSettings = Field(default_factory=ScoringSettings)
    roster_positions: list[str] = Field(default_factory=list)

    @field_validator('scoring_settings', mode='before')
    @classmethod
    def none_to_default(cls, v):
        return v or {}

    class Config:
        extra = 'ignore'


class LeagueUser(BaseModel):
    """A user participating in a league."""

    user_id: str
    display_name: str | None = None
    metadata: dict[str, Any] | None = None

    class Config:
        extra = 'ignore'


class User(BaseModel):
    """A provider account looked up by username."""

    user_id: str
    username: str | None = None
    display_name: str | None = None

    class Config:
        extra = 'ignore'


class NflState(BaseModel):
    """Current season and week according to the provider."""

    season: str
    week: int = Field(..., ge=0, le=22)

    @field_validator('season', mode='before')
    @classmethod
    def season_to_str(cls, v):
        return str(v)

    class Config:
        extra = 'ignore'


class WeeklyStats(BaseModel):
    """A raw per-week statistic bundle (actual or projected)."""

    stats: dict[str, float | None] = Field(default_factory=dict)

    class Config:
        extra = 'ignore'


class Game(BaseModel):
    """A real-world game from the scoreboard feed."""

    game_id: str
    short_name: str = ''
    competitors: list[str] = Field(default_factory=list)
    state: str = Field(default='pre', pattern=r'^(pre|in|post)$')

    class Config:
        extra = 'forbid'


class TrackerConfig(BaseModel):
    """Live tracker configuration settings."""

    sleeper_base_url: str = 'https://api.sleeper.app/v1'
    sleeper_projection_url: str = 'https://api.sleeper.com'
    espn_scoreboard_url: str = (
        'https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard'
    )
    response_cache_seconds: float = Field(default=30.0, ge=0)
    player_directory_cache_seconds: float = Field(default=3600.0, ge=0)
    schedule_refresh_seconds: float = Field(default=300.0, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)
    poll_interval: float = Field(default=5.0, gt=0)
    cycle_timeout: float = Field(default=30.0, gt=0)
    staleness_seconds: float = Field(default=60.0, ge=0)
    simulations: int = Field(default=100, ge=1, le=1_000_000)
    volatility: float = Field(default=2.0, ge=0)
    pregame_scale: float = Field(default=10.0, gt=0)
    cache_path: str = 'data/win_prob_cache.json'

    class Config:
        extra = 'forbid'
