"""Narrative insight blurbs derived from aggregated review statistics."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .buckets import format_month
from .ranking import pick_top
from .stats import compute_property_stats
from .types import Property, PropertyStat, Review, TopProperty, as_utc, classify_rating

_LOGGER = logging.getLogger(__name__)

EMPTY_GOOD_BLURB = "No reviews available for the selected filters yet."
EMPTY_BAD_BLURB = "No negative signals due to lack of reviews."
FALLBACK_GOOD_BLURB = "Properties are earning positive feedback."
FALLBACK_BAD_BLURB = "No notable negative trends detected."
UNKNOWN_CITY = "Unknown"

GOOD_LOCATION_THRESHOLD = 0.70
BAD_LOCATION_THRESHOLD = 0.30
MIN_LOCATION_REVIEWS = 2
INSIGHT_TOP_LIMIT = 3
SUMMARY_MONTHS = 3
NEUTRAL_SUMMARY_THRESHOLD = 0.50
ALL_LOCATIONS = "all locations"


@dataclass
class LocationSignal:
    location: str
    ratio: float


def _city_signals(
    stats: Sequence[PropertyStat], min_reviews: int
) -> Tuple[Optional[LocationSignal], Optional[LocationSignal]]:
    """Best city by good ratio and worst city by bad ratio, tracked independently."""
    by_city: Dict[str, Dict[str, int]] = {}
    for stat in stats:
        entry = by_city.setdefault(stat.city or UNKNOWN_CITY, {"good": 0, "bad": 0, "total": 0})
        entry["good"] += stat.good_count
        entry["bad"] += stat.bad_count
        entry["total"] += stat.reviews

    best: Optional[LocationSignal] = None
    worst: Optional[LocationSignal] = None
    for city, entry in by_city.items():
        if entry["total"] < min_reviews:
            continue
        good_ratio = entry["good"] / entry["total"]
        bad_ratio = entry["bad"] / entry["total"]
        # strict comparison: the first city to reach a ratio keeps it
        if good_ratio > (best.ratio if best else 0):
            best = LocationSignal(city, good_ratio)
        if bad_ratio > (worst.ratio if worst else 0):
            worst = LocationSignal(city, bad_ratio)
    return best, worst


def _good_blurb(best: Optional[LocationSignal], top_good: List[TopProperty], threshold: float) -> str:
    if best is not None and best.ratio > threshold:
        return f"Locations like {best.location} get consistently good reviews"
    if top_good:
        return f"Guests love {top_good[0].name} ({top_good[0].avg_rating}★ avg)."
    return FALLBACK_GOOD_BLURB


def _bad_blurb(worst: Optional[LocationSignal], top_bad: List[TopProperty], threshold: float) -> str:
    if worst is not None and worst.ratio > threshold:
        return f"{worst.location} properties have frequent bad reviews lately"
    if top_bad:
        return f"{top_bad[0].name} is trending down with {top_bad[0].avg_rating}★."
    return FALLBACK_BAD_BLURB


def build_insight_links(top_good: List[TopProperty], top_bad: List[TopProperty]) -> List[Dict[str, str]]:
    links: List[Dict[str, str]] = []
    if top_good:
        links.append(
            {
                "label": f"See positive reviews for {top_good[0].name}",
                "href": f"/drilldown/reviews?propertyId={top_good[0].property_id}&kind=good",
                "kind": "good",
            }
        )
    if top_bad:
        links.append(
            {
                "label": f"See issues for {top_bad[0].name}",
                "href": f"/drilldown/reviews?propertyId={top_bad[0].property_id}&kind=bad",
                "kind": "bad",
            }
        )
    return links


def aggregate_insights(
    reviews: Sequence[Review],
    properties: Mapping[str, Property],
    types_section: Mapping[str, Any],
    *,
    good_threshold: float = GOOD_LOCATION_THRESHOLD,
    bad_threshold: float = BAD_LOCATION_THRESHOLD,
    min_location_reviews: int = MIN_LOCATION_REVIEWS,
) -> Dict[str, Any]:
    if not reviews:
        return {
            "goodBlurb": EMPTY_GOOD_BLURB,
            "badBlurb": EMPTY_BAD_BLURB,
            "goodPct": 0,
            "badPct": 0,
            "links": [],
        }

    stats = compute_property_stats(reviews, properties)
    top_good = pick_top(stats, "good", limit=INSIGHT_TOP_LIMIT)
    top_bad = pick_top(stats, "bad", limit=INSIGHT_TOP_LIMIT)
    best, worst = _city_signals(stats, min_location_reviews)

    _LOGGER.debug(
        "[INSIGHTS] best=%s worst=%s top_good=%d top_bad=%d",
        best, worst, len(top_good), len(top_bad),
    )
    return {
        "goodBlurb": _good_blurb(best, top_good, good_threshold),
        "badBlurb": _bad_blurb(worst, top_bad, bad_threshold),
        "goodPct": types_section.get("goodPct", 0),
        "badPct": types_section.get("badPct", 0),
        "links": build_insight_links(top_good, top_bad),
    }


def _trailing_month_keys(as_of: datetime, months: int) -> List[str]:
    year, month = as_of.year, as_of.month
    keys: List[str] = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys


def chart_summary(
    reviews: Sequence[Review],
    location: Optional[str] = None,
    as_of: Optional[datetime] = None,
    *,
    months: int = SUMMARY_MONTHS,
) -> Dict[str, str]:
    """One-line sentiment read-out for the trailing calendar months.

    The window ends at the month of ``as_of`` (default: the newest review).
    More than half neutral reviews in the window reads as "consistently
    neutral"; anything else, including an empty window, as "mixed".
    """
    place = location or ALL_LOCATIONS
    period = f"last {months} months"
    anchor = as_of or max((review.review_date for review in reviews), key=as_utc, default=None)

    total = neutral = 0
    if anchor is not None:
        window = set(_trailing_month_keys(as_utc(anchor), months))
        for review in reviews:
            if format_month(review.review_date) not in window:
                continue
            total += 1
            if classify_rating(review.rating) == "neutral":
                neutral += 1

    if total and neutral / total > NEUTRAL_SUMMARY_THRESHOLD:
        text = f"Consistently neutral reviews over the {period} for properties in {place}"
    else:
        text = f"Mixed review sentiment over the {period} for properties in {place}"
    return {"text": text, "location": place, "period": period}


__all__ = [
    "EMPTY_BAD_BLURB",
    "EMPTY_GOOD_BLURB",
    "FALLBACK_BAD_BLURB",
    "FALLBACK_GOOD_BLURB",
    "aggregate_insights",
    "build_insight_links",
    "chart_summary",
]
