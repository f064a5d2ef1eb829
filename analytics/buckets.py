"""Time bucketing for sentiment and volume series.

All keys are computed in UTC and are zero-padded, so sorting them as strings
sorts them chronologically.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .types import Review, as_utc, classify_rating

GRANULARITIES = ("day", "week", "month")


def ensure_granularity(value: Optional[str], default: str = "month") -> str:
    """Return ``value`` when it is a known granularity, otherwise ``default``."""
    candidate = (value or "").strip().lower()
    return candidate if candidate in GRANULARITIES else default


def format_day(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%d")


def format_month(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m")


def format_iso_week(value: datetime) -> str:
    """ISO-8601 week key; the week holding the year's first Thursday is W01."""
    iso_year, iso_week, _ = as_utc(value).date().isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def bucket_key(value: datetime, granularity: str) -> str:
    if granularity == "day":
        return format_day(value)
    if granularity == "week":
        return format_iso_week(value)
    return format_month(value)


def aggregate_types(reviews: Iterable[Review], granularity: str = "month") -> Dict[str, Any]:
    """Good/neutral/bad shares overall and per bucket, rounded to 2 decimals."""
    totals: Counter = Counter()
    series: Dict[str, Counter] = {}

    for review in reviews:
        label = classify_rating(review.rating)
        totals[label] += 1
        key = bucket_key(review.review_date, granularity)
        entry = series.setdefault(key, Counter())
        entry[label] += 1
        entry["total"] += 1

    total_reviews = sum(totals.values())
    if total_reviews == 0:
        return {"goodPct": 0, "neutralPct": 0, "badPct": 0, "timeSeries": []}

    time_series: List[Dict[str, Any]] = []
    for key in sorted(series):
        entry = series[key]
        time_series.append(
            {
                "t": key,
                "good": round(entry["good"] / entry["total"], 2),
                "neutral": round(entry["neutral"] / entry["total"], 2),
                "bad": round(entry["bad"] / entry["total"], 2),
            }
        )

    return {
        "goodPct": round(totals["good"] / total_reviews, 2),
        "neutralPct": round(totals["neutral"] / total_reviews, 2),
        "badPct": round(totals["bad"] / total_reviews, 2),
        "timeSeries": time_series,
    }


def aggregate_volume(reviews: Iterable[Review], granularity: str = "week") -> Dict[str, Any]:
    histogram = Counter(bucket_key(review.review_date, granularity) for review in reviews)
    return {
        "histogram": [{"bucket": key, "count": histogram[key]} for key in sorted(histogram)],
    }


__all__ = [
    "GRANULARITIES",
    "aggregate_types",
    "aggregate_volume",
    "bucket_key",
    "ensure_granularity",
    "format_day",
    "format_iso_week",
    "format_month",
]
