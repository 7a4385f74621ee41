"""Application and season configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from .schemas import PointTable, ScoutConfig, SeasonConfig, ThresholdConfig
from .utils import load_json

DATA_DIR = Path(__file__).parent.parent / 'data'


@lru_cache(maxsize=1)
def get_config() -> ScoutConfig:
    """
    Load application configuration from data/scout_config.json.

    Configuration is cached after first load.

    Raises:
        FileNotFoundError: If scout_config.json doesn't exist
        ValueError: If config file has invalid structure

    Example:
        from fieldscout.config import get_config
        config = get_config()
        print(f"Current season: {config.current_season}")
    """
    return load_json(DATA_DIR / 'scout_config.json', schema=ScoutConfig)


@lru_cache(maxsize=8)
def _load_season(season: int) -> SeasonConfig:
    season_config = load_json(DATA_DIR / 'seasons' / f'{season}.json', schema=SeasonConfig)
    if season_config.season != season:
        raise ValueError(
            f'Season file {season}.json declares season {season_config.season}'
        )
    return season_config


def get_season_config(season: Optional[int] = None) -> SeasonConfig:
    """
    Load a season's configuration from data/seasons/{season}.json.

    Args:
        season: Season year (default: current season from scout_config.json)

    Returns:
        SeasonConfig with point table, counter schema and validation mapping
    """
    if season is None:
        season = get_config().current_season
    return _load_season(season)


def get_current_season() -> int:
    """Get the current season from config."""
    return get_config().current_season


def get_point_table(season: Optional[int] = None) -> PointTable:
    """Get the point table for a season."""
    return get_season_config(season).point_table


def get_thresholds(season: Optional[int] = None) -> ThresholdConfig:
    """Get validation severity thresholds for a season."""
    return get_season_config(season).thresholds


def get_start_position_labels(season: Optional[int] = None) -> list[str]:
    """Get start position bucket labels for a season."""
    return get_season_config(season).start_positions


def clear_config_cache() -> None:
    """
    Clear the configuration caches.

    Use this if a config file is modified during runtime and needs reloading.
    """
    get_config.cache_clear()
    _load_season.cache_clear()
