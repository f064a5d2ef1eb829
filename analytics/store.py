"""Contract the analytics engine expects from a review/property store."""
from __future__ import annotations

from typing import FrozenSet, Iterable, List, Protocol

from .types import AnalyticsFilter, Property, Review


class ReviewStore(Protocol):
    def resolve_properties_by_location(self, substring: str) -> FrozenSet[str]:
        """Ids of properties whose name, city or country contains ``substring`` (case-insensitive)."""
        ...

    def fetch_reviews(self, filters: AnalyticsFilter) -> List[Review]:
        """All approved reviews matching ``filters``. Order is unspecified."""
        ...

    def fetch_properties_by_ids(self, ids: Iterable[str]) -> List[Property]:
        """Properties for the known ``ids``; unknown ids are simply absent."""
        ...


__all__ = ["ReviewStore"]
