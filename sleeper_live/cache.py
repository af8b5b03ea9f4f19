"""Win-probability cache with a live-game aware freshness policy."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .constants import CACHE_KEY_PREFIX, STALENESS_SECONDS
from .interfaces import CacheStore
from .models import CacheEntry
from .utils import load_json_safe, save_json

logger = logging.getLogger('sleeper_live.cache')

STORE_ERRORS = (OSError, ValueError, TypeError)


class MemoryStore:
    """In-process CacheStore, used when no durable store is configured."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self, prefix: str = '') -> list[tuple[str, Any]]:
        return [(k, v) for k, v in self._data.items() if k.startswith(prefix)]


class JsonFileStore:
    """CacheStore persisted as a single JSON object on disk."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        data = load_json_safe(self.path, default={})
        if not isinstance(data, dict):
            raise ValueError(f'Cache file {self.path} does not hold a JSON object')
        return data

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        save_json(self.path, data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            save_json(self.path, data)

    def items(self, prefix: str = '') -> list[tuple[str, Any]]:
        return [(k, v) for k, v in self._load().items() if k.startswith(prefix)]


def _parse_entry(raw: Any) -> Optional[CacheEntry]:
    if not isinstance(raw, dict):
        return None
    try:
        return CacheEntry(value=float(raw['value']), timestamp=float(raw['timestamp']))
    except (KeyError, TypeError, ValueError):
        return None


class ProbabilityCache:
    """
    Memoizes win probabilities per matchup.

    Entries live in an in-memory index and are written through to a
    durable store. A store that fails is dropped for the rest of the
    session and the cache carries on in memory.

    Freshness:
        - no game in progress: any cached entry is reused, whatever its age
        - a game in progress: entries older than staleness_seconds are recomputed
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        staleness_seconds: float = STALENESS_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.staleness_seconds = staleness_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.restore()

    @staticmethod
    def _key(matchup_id: str) -> str:
        return f'{CACHE_KEY_PREFIX}{matchup_id}'

    def _store_failed(self, action: str, error: Exception) -> None:
        logger.warning(f'Cache store {action} failed ({error}); continuing in memory only')
        self.store = None

    def restore(self) -> int:
        """Load persisted entries into memory. Returns the number restored."""
        if self.store is None:
            return 0
        try:
            items = self.store.items(CACHE_KEY_PREFIX)
        except STORE_ERRORS as e:
            self._store_failed('restore', e)
            return 0

        restored = 0
        for key, raw in items:
            entry = _parse_entry(raw)
            if entry is None:
                logger.warning(f'Ignoring malformed cache entry {key}')
                continue
            self._entries[key[len(CACHE_KEY_PREFIX):]] = entry
            restored += 1

        logger.debug(f'Restored {restored} cached win probabilities')
        return restored

    def get(self, matchup_id: str) -> Optional[CacheEntry]:
        """Cached entry for a matchup, from memory or else the store."""
        entry = self._entries.get(matchup_id)
        if entry is not None or self.store is None:
            return entry

        try:
            entry = _parse_entry(self.store.get(self._key(matchup_id)))
        except STORE_ERRORS as e:
            self._store_failed('read', e)
            return None

        if entry is not None:
            self._entries[matchup_id] = entry
        return entry

    def put(self, matchup_id: str, probability: float) -> CacheEntry:
        """Store a probability with the current timestamp (write-through)."""
        entry = CacheEntry(value=probability, timestamp=self.clock())
        self._entries[matchup_id] = entry

        if self.store is not None:
            try:
                self.store.set(self._key(matchup_id), entry.to_dict())
            except STORE_ERRORS as e:
                self._store_failed('write', e)

        return entry

    def is_fresh(self, entry: Optional[CacheEntry], live: bool) -> bool:
        """Whether an entry can be served without recomputation."""
        if entry is None:
            return False
        if not live:
            return True
        return entry.age(self.clock()) < self.staleness_seconds

    def get_or_compute(self, matchup_id: str, live: bool, compute: Callable[[], float]) -> float:
        """
        Serve a matchup's probability under the freshness policy.

        Args:
            matchup_id: Matchup grouping key
            live: Whether any participating game is in progress
            compute: Called to produce a new probability when needed

        Returns:
            The cached or freshly computed probability
        """
        entry = self.get(matchup_id)
        if self.is_fresh(entry, live):
            return entry.value  # type: ignore[union-attr]

        value = compute()
        self.put(matchup_id, value)
        logger.debug(f'Recomputed win probability for {matchup_id}: {value:.1f} (live={live})')
        return value

    def clear(self) -> None:
        """Drop every entry from memory and the store."""
        keys = list(self._entries)
        self._entries.clear()
        if self.store is None:
            return
        try:
            stored = [k for k, _ in self.store.items(CACHE_KEY_PREFIX)]
            for key in set(stored) | {self._key(k) for k in keys}:
                self.store.delete(key)
        except STORE_ERRORS as e:
            self._store_failed('clear', e)

    def __len__(self) -> int:
        return len(self._entries)
