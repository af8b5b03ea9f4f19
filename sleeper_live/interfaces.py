"""Capability interfaces for the collaborators the tracker depends on."""

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from .schemas import Game


@runtime_checkable
class DataProvider(Protocol):
    """Read-only fantasy data source. All calls are idempotent."""

    async def get_user(self, username: str) -> dict[str, Any]: ...

    async def get_nfl_state(self) -> dict[str, Any]: ...

    async def get_league(self, league_id: str) -> dict[str, Any]: ...

    async def get_league_rosters(self, league_id: str) -> list[dict[str, Any]]: ...

    async def get_league_users(self, league_id: str) -> list[dict[str, Any]]: ...

    async def get_league_matchups(self, league_id: str, week: int) -> list[dict[str, Any]]: ...

    async def get_user_leagues(self, user_id: str, season: str) -> list[dict[str, Any]]: ...

    async def get_all_players(self) -> dict[str, dict[str, Any]]: ...

    async def batch_player_projections(
        self, player_ids: Sequence[str], season: str, week: int
    ) -> dict[str, Any]: ...

    async def get_all_player_stats(
        self, player_ids: Sequence[str], season: str, week: int
    ) -> dict[str, Optional[dict[str, Any]]]: ...

    def clear_cache(self) -> None: ...


@runtime_checkable
class GameStatusProvider(Protocol):
    """Live scoreboard: the week's games and their states."""

    async def get_games(self, season: Optional[str] = None, week: Optional[int] = None) -> list[Game]: ...


@runtime_checkable
class CacheStore(Protocol):
    """Durable key-value store. Failures raise OSError or ValueError."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def items(self, prefix: str = '') -> list[tuple[str, Any]]: ...


@runtime_checkable
class NormalSampler(Protocol):
    """Source of normally distributed deviates."""

    def normal(self, mean: float, sd: float) -> float: ...
