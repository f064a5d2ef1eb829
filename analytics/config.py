"""
Configuration utilities for the review analytics service.
Every process builds exactly one Config from the environment; request handlers
only read it.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

_LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "REVIEW_ANALYTICS_"


# ---------------------------------------------------------------------------
# Dataclass Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Config:
    """Immutable configuration for the analytics runtime."""

    duckdb_path: Path
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    top_limit_default: int = 5
    min_reviews_default: int = 1
    list_limit_default: int = 20
    list_limit_max: int = 50
    recent_limit_default: int = 5
    good_location_threshold: float = 0.70
    bad_location_threshold: float = 0.30
    min_location_reviews: int = 2

    @property
    def duckdb_path_str(self) -> str:
        return str(self.duckdb_path)


_cached_config: Optional[Config] = None


# ---------------------------------------------------------------------------
# Environment Handling
# ---------------------------------------------------------------------------

def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default).strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        _LOGGER.warning("Ignoring non-integer %s%s=%r", ENV_PREFIX, name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        _LOGGER.warning("Ignoring non-numeric %s%s=%r", ENV_PREFIX, name, raw)
        return default


def load_config(refresh: bool = False) -> Config:
    """
    Load configuration from environment and cache the result.
    Parameters
    ----------
    refresh : bool
        If True, re-read environment variables and reinitialize Config.
    """
    global _cached_config
    if _cached_config is not None and not refresh:
        return _cached_config

    load_dotenv(override=False)

    project_root = Path(_env("ROOT", str(Path.cwd())))
    duckdb_path = Path(_env("DUCKDB", "db/reviews.duckdb"))
    if not duckdb_path.is_absolute() and str(duckdb_path) != ":memory:":
        duckdb_path = project_root / duckdb_path

    cors_env = _env("CORS_ORIGINS", "*")
    cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()] or ["*"]

    _cached_config = Config(
        duckdb_path=duckdb_path,
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        cors_origins=cors_origins,
        top_limit_default=_env_int("TOP_LIMIT", 5),
        min_reviews_default=_env_int("MIN_REVIEWS", 1),
        list_limit_default=_env_int("LIST_LIMIT", 20),
        list_limit_max=_env_int("LIST_LIMIT_MAX", 50),
        recent_limit_default=_env_int("RECENT_LIMIT", 5),
        good_location_threshold=_env_float("GOOD_LOCATION_THRESHOLD", 0.70),
        bad_location_threshold=_env_float("BAD_LOCATION_THRESHOLD", 0.30),
        min_location_reviews=_env_int("MIN_LOCATION_REVIEWS", 2),
    )

    _LOGGER.debug(
        "Loaded configuration: duckdb=%s | log_level=%s | list_limit=%s/%s",
        _cached_config.duckdb_path, _cached_config.log_level,
        _cached_config.list_limit_default, _cached_config.list_limit_max,
    )
    return _cached_config


__all__ = [
    "Config",
    "ENV_PREFIX",
    "load_config",
]
