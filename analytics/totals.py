"""Raw totals and the recent-reviews feed."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Sequence

from .types import Property, Review, as_utc, isoformat_utc

DEFAULT_RECENT_LIMIT = 5


def aggregate_totals(reviews: Sequence[Review]) -> Dict[str, int]:
    """Review and distinct-property counts. Orphaned reviews still count."""
    return {
        "totalReviews": len(reviews),
        "totalProperties": len({str(review.property_id) for review in reviews}),
    }


def _metric(current: int, previous: int, comparison: str) -> Dict[str, Any]:
    change = current - previous
    return {
        "count": current,
        "change": abs(change),
        "changeType": "increase" if change >= 0 else "decrease",
        "comparisonPeriod": comparison,
    }


def aggregate_overview_metrics(
    current: Sequence[Review],
    previous: Sequence[Review],
    label: str,
) -> Dict[str, Dict[str, Any]]:
    """Review and property counts for a window against the window before it.

    `change` is always non-negative; its direction is in `changeType`, and an
    unchanged count reports as an increase.
    """
    now_totals = aggregate_totals(current)
    before_totals = aggregate_totals(previous)
    comparison = f"VS {label.upper()}"
    return {
        "totalReviews": _metric(now_totals["totalReviews"], before_totals["totalReviews"], comparison),
        "allProperties": _metric(now_totals["totalProperties"], before_totals["totalProperties"], comparison),
    }


def _positive_int(value: Any, default: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return max(1, math.floor(number))


def aggregate_recent(
    reviews: Sequence[Review],
    properties: Mapping[str, Property],
    page: Any = 1,
    limit: Any = DEFAULT_RECENT_LIMIT,
) -> Dict[str, Any]:
    """Newest reviews first, paged, each decorated with its property."""
    safe_page = _positive_int(page, 1)
    safe_limit = _positive_int(limit, DEFAULT_RECENT_LIMIT)

    ordered = sorted(reviews, key=lambda review: as_utc(review.review_date), reverse=True)
    start = (safe_page - 1) * safe_limit
    rows: List[Dict[str, Any]] = []
    for review in ordered[start:start + safe_limit]:
        prop = properties.get(review.property_id)
        rows.append(
            {
                "id": review.source_review_id,
                "source": review.source,
                "channel": review.channel,
                "rating": review.rating,
                "title": review.title,
                "text": review.text,
                "reviewDate": isoformat_utc(review.review_date),
                "property": {
                    "id": review.property_id,
                    "name": prop.name if prop else None,
                    "city": prop.city if prop else None,
                    "country": prop.country if prop else None,
                },
            }
        )

    total = len(reviews)
    return {
        "data": rows,
        "pagination": {
            "page": safe_page,
            "limit": safe_limit,
            "total": total,
            "hasNext": safe_page * safe_limit < total,
        },
    }


__all__ = ["DEFAULT_RECENT_LIMIT", "aggregate_overview_metrics", "aggregate_recent", "aggregate_totals"]
