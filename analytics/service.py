"""Request-scoped orchestration: resolve filters, fetch one snapshot, fold it.

Each public method handles a single request. Nothing is cached between calls;
the only process-wide state is the Config passed in at construction.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .buckets import aggregate_types, aggregate_volume, ensure_granularity
from .config import Config, load_config
from .filters import QueryValue, resolve_filter
from .insights import aggregate_insights, chart_summary
from .mentions import guest_mentions
from .ranking import PropertyListQuery, list_properties, pick_top
from .stats import compute_property_stats, property_lookup
from .stays import aggregate_stays
from .store import ReviewStore
from .totals import aggregate_overview_metrics, aggregate_recent, aggregate_totals
from .types import AnalyticsFilter, Property, Review, isoformat_utc

_LOGGER = logging.getLogger(__name__)

OVERVIEW_RANGES = {"7d": 7, "14d": 14, "30d": 30, "90d": 90, "1y": 365}
DEFAULT_OVERVIEW_RANGE = "14d"
CUSTOM_RANGE_LABEL = "previous period"


class AnalyticsService:
    def __init__(self, store: ReviewStore, config: Optional[Config] = None) -> None:
        self.store = store
        self.config = config or load_config()

    # ------------------------------------------------------------------ #
    # Snapshot helpers
    # ------------------------------------------------------------------ #

    def create_filters(
        self,
        location: QueryValue = None,
        date_from: QueryValue = None,
        date_to: QueryValue = None,
    ) -> AnalyticsFilter:
        return resolve_filter(self.store, location, date_from, date_to)

    def filter_reviews(self, filters: AnalyticsFilter) -> List[Review]:
        if filters.property_ids is not None and not filters.property_ids:
            _LOGGER.info("[ANALYTICS] location=%r matched no properties; skipping fetch", filters.location)
            return []
        started = time.perf_counter()
        reviews = [review for review in self.store.fetch_reviews(filters) if review.approved_for_public]
        _LOGGER.info(
            "[ANALYTICS] fetched %d reviews in %.3fs (location=%r from=%s to=%s)",
            len(reviews), time.perf_counter() - started,
            filters.location, filters.date_from, filters.date_to,
        )
        return reviews

    def _properties_for(self, reviews: Sequence[Review]) -> Dict[str, Property]:
        ids = sorted({review.property_id for review in reviews})
        if not ids:
            return {}
        return property_lookup(self.store.fetch_properties_by_ids(ids))

    def _snapshot(self, filters: AnalyticsFilter) -> Tuple[List[Review], Dict[str, Property]]:
        reviews = self.filter_reviews(filters)
        return reviews, self._properties_for(reviews)

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    def get_totals(self, filters: AnalyticsFilter) -> Dict[str, int]:
        return aggregate_totals(self.filter_reviews(filters))

    def get_recent_reviews(self, filters: AnalyticsFilter, page: Any = 1, limit: Any = None) -> Dict[str, Any]:
        reviews, properties = self._snapshot(filters)
        return aggregate_recent(
            reviews,
            properties,
            page=page,
            limit=self.config.recent_limit_default if limit in (None, "") else limit,
        )

    def get_top_properties(
        self,
        filters: AnalyticsFilter,
        kind: str = "good",
        limit: Any = None,
        min_reviews: Any = None,
    ) -> List[Dict[str, Any]]:
        reviews, properties = self._snapshot(filters)
        stats = compute_property_stats(reviews, properties)
        top = pick_top(
            stats,
            "bad" if kind == "bad" else "good",
            limit=limit or self.config.top_limit_default,
            min_reviews=min_reviews or self.config.min_reviews_default,
        )
        return [entry.to_payload() for entry in top]

    def get_review_types(self, filters: AnalyticsFilter, bucket: Optional[str] = "month") -> Dict[str, Any]:
        return aggregate_types(self.filter_reviews(filters), ensure_granularity(bucket, "month"))

    def get_review_volume(self, filters: AnalyticsFilter, bucket: Optional[str] = "week") -> Dict[str, Any]:
        return aggregate_volume(self.filter_reviews(filters), ensure_granularity(bucket, "week"))

    def get_stay_length_distribution(self, filters: AnalyticsFilter) -> Dict[str, Any]:
        """Raises StayLengthUnavailable when no review has stay nights, including an empty snapshot such as an unmatched location."""
        return aggregate_stays(self.filter_reviews(filters))

    def get_insights(self, filters: AnalyticsFilter) -> Dict[str, Any]:
        reviews, properties = self._snapshot(filters)
        types_section = aggregate_types(reviews, "month")
        return aggregate_insights(
            reviews,
            properties,
            types_section,
            good_threshold=self.config.good_location_threshold,
            bad_threshold=self.config.bad_location_threshold,
            min_location_reviews=self.config.min_location_reviews,
        )

    def _overview_windows(
        self, filters: AnalyticsFilter, date_range: Optional[str], now: Optional[datetime]
    ) -> Tuple[AnalyticsFilter, AnalyticsFilter, str]:
        if filters.date_from is not None:
            end = filters.date_to or now or datetime.now(tz=UTC)
            start, label = filters.date_from, CUSTOM_RANGE_LABEL
        else:
            label = (date_range or "").strip().lower()
            if label not in OVERVIEW_RANGES:
                label = DEFAULT_OVERVIEW_RANGE
            end = filters.date_to or now or datetime.now(tz=UTC)
            start = end - timedelta(days=OVERVIEW_RANGES[label])
        previous_start = start - (end - start)
        current = replace(filters, date_from=start, date_to=end)
        # both bounds are inclusive; stop just short of `start` so no review counts twice
        previous = replace(filters, date_from=previous_start, date_to=start - timedelta(microseconds=1))
        return current, previous, label

    def get_overview(
        self,
        filters: AnalyticsFilter,
        date_range: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Period-over-period counts plus the trailing-months sentiment summary.

        With an explicit ``from`` the window is ``from``..``to`` (or now);
        otherwise it is the named range ending at ``to`` (or now). The
        comparison window is the equally long span right before it.
        """
        current, previous, label = self._overview_windows(filters, date_range, now)
        metrics = aggregate_overview_metrics(
            self.filter_reviews(current), self.filter_reviews(previous), label
        )
        summary = chart_summary(self.filter_reviews(filters), filters.location, filters.date_to)
        return {
            "metrics": metrics,
            "chartSummary": summary,
            "window": {
                "from": isoformat_utc(current.date_from),
                "to": isoformat_utc(current.date_to),
                "previousFrom": isoformat_utc(previous.date_from),
                "previousTo": isoformat_utc(current.date_from),
            },
        }

    def get_guest_mentions(self, filters: AnalyticsFilter, category: Optional[str] = None) -> Dict[str, Any]:
        reviews, properties = self._snapshot(filters)
        return guest_mentions(reviews, properties, category)

    def get_property_list(self, filters: AnalyticsFilter, query: PropertyListQuery) -> Dict[str, Any]:
        reviews, properties = self._snapshot(filters)
        stats = compute_property_stats(reviews, properties)
        return list_properties(
            stats,
            query,
            filters,
            default_limit=self.config.list_limit_default,
            max_limit=self.config.list_limit_max,
        )


__all__ = ["AnalyticsService"]
