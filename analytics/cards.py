"""Property card projection used by the paginated property list."""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping

from .types import CATEGORY_LABELS, PropertyStat, isoformat_utc

MAX_WORTHY_MENTIONS = 4


def compute_share(count: int, total: int) -> float:
    if not total or total <= 0:
        return 0.0
    return count / total


def format_category_label(category: str) -> str:
    normalised = category.lower()
    if normalised in CATEGORY_LABELS:
        return CATEGORY_LABELS[normalised]
    return " ".join(part.capitalize() for part in re.split(r"[\s_]+", normalised) if part)


def build_worthy_mentions(category_averages: Mapping[str, float]) -> List[Dict[str, Any]]:
    """Highest-scoring categories first, at most four."""
    scored = [
        (category, float(score))
        for category, score in category_averages.items()
        if isinstance(score, (int, float)) and not math.isnan(score)
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [
        {"category": category, "label": format_category_label(category), "score": round(score, 2)}
        for category, score in scored[:MAX_WORTHY_MENTIONS]
    ]


def build_property_card(stat: PropertyStat) -> Dict[str, Any]:
    average_stay = stat.stay_nights.average
    stay_summary = None
    if average_stay is not None:
        stay_summary = {
            "averageNights": round(average_stay, 1),
            "minNights": stat.stay_nights.min,
            "maxNights": stat.stay_nights.max,
        }

    channels = sorted(
        ({"channel": code, "count": count} for code, count in stat.channel_counts.items()),
        key=lambda entry: entry["count"],
        reverse=True,
    )

    return {
        "id": stat.property_id,
        "name": stat.name,
        "city": stat.city,
        "country": stat.country,
        "imageUrl": stat.image_url,
        "avgRating": round(stat.avg_rating, 2),
        "totalReviews": stat.reviews,
        "lastReviewDate": isoformat_utc(stat.last_review_date),
        "goodShare": round(compute_share(stat.good_count, stat.reviews), 2),
        "neutralShare": round(compute_share(stat.neutral_count, stat.reviews), 2),
        "badShare": round(compute_share(stat.bad_count, stat.reviews), 2),
        "worthyMentions": build_worthy_mentions(stat.category_averages),
        "channels": channels,
        "staySummary": stay_summary,
        "links": {
            "reviews": f"/drilldown/reviews?propertyId={stat.property_id}",
            "insights": f"/analytics/properties/{stat.property_id}",
        },
    }


__all__ = [
    "build_property_card",
    "build_worthy_mentions",
    "compute_share",
    "format_category_label",
]
