"""Domain records shared across the analytics engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional

CHANNELS = ("airbnb", "booking", "direct", "google")

CATEGORY_KEYS = (
    "cleanliness",
    "communication",
    "location",
    "checkin",
    "accuracy",
    "value",
)

CATEGORY_LABELS: Dict[str, str] = {
    "cleanliness": "Cleanliness",
    "communication": "Communication",
    "location": "Location",
    "checkin": "Check-in",
    "accuracy": "Accuracy",
    "value": "Value",
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 in UTC with a `Z` suffix; the one timestamp format used in responses."""
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")


def classify_rating(rating: int) -> str:
    """Map a 1-5 rating onto good (>=4), bad (<=2) or neutral (3)."""
    if rating >= 4:
        return "good"
    if rating <= 2:
        return "bad"
    return "neutral"


@dataclass(frozen=True)
class Property:
    id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Review:
    """A guest review as returned by the store. Read-only to the engine."""

    source: str
    source_review_id: str
    property_id: str
    channel: str
    rating: int
    review_date: datetime
    categories: Mapping[str, Optional[int]] = field(default_factory=dict)
    stay_date: Optional[datetime] = None
    stay_nights: Optional[int] = None
    checkout_date: Optional[datetime] = None
    approved_for_public: bool = True
    title: Optional[str] = None
    text: str = ""
    author_name: Optional[str] = None

    def __post_init__(self):
        if not (1 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 1-5")
        for key, score in (self.categories or {}).items():
            if score is None:
                continue
            if isinstance(score, bool) or not isinstance(score, int) or not (1 <= score <= 5):
                raise ValueError(f"Invalid {key} score: {score!r}. Must be 1-5")


@dataclass
class StayNights:
    count: int = 0
    sum: int = 0
    min: Optional[int] = None
    max: Optional[int] = None

    @property
    def average(self) -> Optional[float]:
        if self.count <= 0:
            return None
        return self.sum / self.count


@dataclass
class PropertyStat:
    """Per-property rollup of a review set. Rebuilt on every request."""

    property_id: str
    name: str
    city: Optional[str]
    country: Optional[str]
    image_url: Optional[str]
    reviews: int
    avg_rating: float
    good_count: int
    neutral_count: int
    bad_count: int
    last_review_date: Optional[datetime] = None
    channel_counts: Dict[str, int] = field(default_factory=dict)
    category_averages: Dict[str, float] = field(default_factory=dict)
    stay_nights: StayNights = field(default_factory=StayNights)


@dataclass(frozen=True)
class TopProperty:
    property_id: str
    name: str
    city: Optional[str]
    avg_rating: float
    reviews: int

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation."""
        return {
            "propertyId": self.property_id,
            "name": self.name,
            "city": self.city,
            "avgRating": self.avg_rating,
            "reviews": self.reviews,
        }


@dataclass(frozen=True)
class AnalyticsFilter:
    """Normalised request filter.

    ``property_ids`` is ``None`` when no location was requested and an empty
    frozenset when the location matched no property; the two filter
    differently and must not be collapsed.
    """

    location: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    property_ids: Optional[FrozenSet[str]] = None

    def matches(self, review: Review) -> bool:
        if not review.approved_for_public:
            return False
        if self.property_ids is not None and review.property_id not in self.property_ids:
            return False
        reviewed_at = as_utc(review.review_date)
        if self.date_from is not None and reviewed_at < self.date_from:
            return False
        if self.date_to is not None and reviewed_at > self.date_to:
            return False
        return True


__all__ = [
    "AnalyticsFilter",
    "CATEGORY_KEYS",
    "CATEGORY_LABELS",
    "CHANNELS",
    "Property",
    "PropertyStat",
    "Review",
    "StayNights",
    "TopProperty",
    "as_utc",
    "classify_rating",
    "isoformat_utc",
]
