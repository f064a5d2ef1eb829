"""FastAPI dependencies wiring the analytics service to the DuckDB store."""
from __future__ import annotations

from functools import lru_cache

from analytics.config import load_config
from analytics.service import AnalyticsService

from .store import DuckDBReviewStore


@lru_cache
def get_store() -> DuckDBReviewStore:
    cfg = load_config()
    return DuckDBReviewStore(cfg.duckdb_path)


def get_service() -> AnalyticsService:
    return AnalyticsService(get_store(), load_config())
