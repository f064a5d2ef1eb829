from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterable, List, Optional

import pytest

from analytics.config import Config
from analytics.types import AnalyticsFilter, Property, PropertyStat, Review, StayNights

_COUNTER = {"value": 0}


def make_review(
    property_id: str,
    rating: int,
    when: str = "2025-03-01T12:00:00Z",
    *,
    channel: str = "airbnb",
    categories: Optional[Dict[str, int]] = None,
    stay_nights: Optional[int] = None,
    stay_date: Optional[str] = None,
    checkout_date: Optional[str] = None,
    approved: bool = True,
    title: Optional[str] = None,
    text: str = "",
) -> Review:
    _COUNTER["value"] += 1

    def _dt(value: Optional[str]) -> Optional[datetime]:
        if value is None:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    return Review(
        source="hostaway",
        source_review_id=f"r{_COUNTER['value']}",
        property_id=property_id,
        channel=channel,
        rating=rating,
        review_date=_dt(when),
        categories=categories or {},
        stay_date=_dt(stay_date),
        stay_nights=stay_nights,
        checkout_date=_dt(checkout_date),
        approved_for_public=approved,
        title=title,
        text=text,
    )


def make_property(property_id: str, name: Optional[str] = None, city: Optional[str] = "London", country: Optional[str] = "UK") -> Property:
    return Property(id=property_id, name=name or f"Property {property_id}", city=city, country=country)


def make_stat(property_id: str, avg_rating: float, reviews: int, **overrides) -> PropertyStat:
    values = dict(
        property_id=property_id,
        name=f"Property {property_id}",
        city="London",
        country="UK",
        image_url=None,
        reviews=reviews,
        avg_rating=avg_rating,
        good_count=reviews,
        neutral_count=0,
        bad_count=0,
        last_review_date=None,
        channel_counts={},
        category_averages={},
        stay_nights=StayNights(),
    )
    values.update(overrides)
    return PropertyStat(**values)


class FakeStore:
    """In-memory ReviewStore recording how it was called."""

    def __init__(self, properties: Iterable[Property] = (), reviews: Iterable[Review] = ()) -> None:
        self.properties = {prop.id: prop for prop in properties}
        self.reviews = list(reviews)
        self.location_calls: List[str] = []
        self.fetch_calls = 0

    def resolve_properties_by_location(self, substring: str) -> FrozenSet[str]:
        self.location_calls.append(substring)
        needle = substring.lower()
        return frozenset(
            prop.id
            for prop in self.properties.values()
            if any(needle in (field or "").lower() for field in (prop.name, prop.city, prop.country))
        )

    def fetch_reviews(self, filters: AnalyticsFilter) -> List[Review]:
        self.fetch_calls += 1
        return [review for review in self.reviews if filters.matches(review)]

    def fetch_properties_by_ids(self, ids: Iterable[str]) -> List[Property]:
        return [self.properties[i] for i in ids if i in self.properties]


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(duckdb_path=tmp_path / "reviews.duckdb")


@pytest.fixture
def portfolio() -> FakeStore:
    properties = [
        make_property("p1", "Shoreditch Loft", city="London", country="UK"),
        make_property("p2", "Camden Flat", city="London", country="UK"),
        make_property("p3", "Le Marais Studio", city="Paris", country="France"),
    ]
    reviews = [
        make_review("p1", 5, "2025-01-01T09:00:00Z", categories={"cleanliness": 5, "location": 4}, stay_nights=3),
        make_review("p1", 5, "2025-01-15T09:00:00Z", channel="booking", stay_nights=2, text="Spotless and quiet"),
        make_review("p1", 4, "2025-02-03T09:00:00Z", categories={"cleanliness": 4}),
        make_review("p2", 3, "2025-02-10T09:00:00Z", channel="google", text="A bit noisy at night"),
        make_review("p2", 2, "2025-02-11T09:00:00Z", text="Dirty bathroom, broken shower"),
        make_review("p3", 1, "2025-03-01T09:00:00Z", channel="direct", text="Dirty and loud"),
        make_review("p3", 2, "2025-03-02T09:00:00Z"),
        make_review("p3", 5, "2025-03-03T09:00:00Z", approved=False),
    ]
    return FakeStore(properties, reviews)
