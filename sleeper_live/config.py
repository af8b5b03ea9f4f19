"""Tracker configuration management."""

from functools import lru_cache
from pathlib import Path

from .schemas import TrackerConfig
from .utils import load_json_safe

CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'tracker_config.json'


@lru_cache(maxsize=1)
def get_config() -> TrackerConfig:
    """
    Load tracker configuration from data/tracker_config.json.

    Configuration is cached after first load. A missing file yields
    the defaults declared on TrackerConfig.

    Returns:
        TrackerConfig object with validated settings

    Raises:
        ValueError: If the config file has an invalid structure

    Example:
        from sleeper_live.config import get_config
        config = get_config()
        print(f"Polling every {config.poll_interval}s")
    """
    return load_json_safe(CONFIG_PATH, default=TrackerConfig(), schema=TrackerConfig)


def get_poll_interval() -> float:
    """Get the poll interval in seconds."""
    return get_config().poll_interval


def get_staleness_seconds() -> float:
    """Get the live-game staleness threshold for cached probabilities."""
    return get_config().staleness_seconds


def get_simulation_settings() -> tuple[int, float]:
    """Get (simulations, volatility) for the live estimator."""
    config = get_config()
    return config.simulations, config.volatility


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file is modified during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
