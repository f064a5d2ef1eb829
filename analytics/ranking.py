"""Top-N rankings and the filter/sort/paginate property list."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .cards import build_property_card, compute_share
from .cursor import decode_cursor, encode_cursor
from .types import CATEGORY_KEYS, CHANNELS, AnalyticsFilter, PropertyStat, TopProperty, isoformat_utc

_LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_LIMIT = 5
DEFAULT_MIN_REVIEWS = 1
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 50

SORT_KEYS = ("topRated", "mostReviews", "recent", "badShare")
DEFAULT_SORT = "topRated"


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def parse_number(value: Any) -> Optional[float]:
    """Lenient numeric parse for query values; non-numeric becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_limit(limit: Any, default: int = DEFAULT_LIST_LIMIT, maximum: int = MAX_LIST_LIMIT) -> int:
    number = parse_number(limit)
    if number is None:
        return default
    return min(max(1, math.floor(number)), maximum)


def ensure_sort(sort: Optional[str]) -> str:
    candidate = (sort or "").strip()
    return candidate if candidate in SORT_KEYS else DEFAULT_SORT


def _clean_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


# ---------------------------------------------------------------------------
# Top-N
# ---------------------------------------------------------------------------

def pick_top(
    stats: Sequence[PropertyStat],
    kind: str = "good",
    limit: Any = DEFAULT_TOP_LIMIT,
    min_reviews: Any = DEFAULT_MIN_REVIEWS,
) -> List[TopProperty]:
    """Best ("good") or worst ("bad") rated properties.

    Ties on rating go to the property with more reviews in both directions;
    full ties keep their input order.
    """
    safe_limit = max(1, int(parse_number(limit) or DEFAULT_TOP_LIMIT))
    safe_min_reviews = max(1, int(parse_number(min_reviews) or DEFAULT_MIN_REVIEWS))

    eligible = [stat for stat in stats if stat.reviews >= safe_min_reviews]
    if kind == "bad":
        ranked = sorted(eligible, key=lambda stat: (stat.avg_rating, -stat.reviews))
    else:
        ranked = sorted(eligible, key=lambda stat: (-stat.avg_rating, -stat.reviews))

    return [
        TopProperty(
            property_id=stat.property_id,
            name=stat.name,
            city=stat.city,
            avg_rating=round(stat.avg_rating, 2),
            reviews=stat.reviews,
        )
        for stat in ranked[:safe_limit]
    ]


# ---------------------------------------------------------------------------
# Property list
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PropertyListQuery:
    search: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    channel: Optional[str] = None
    min_rating: Any = None
    max_rating: Any = None
    min_stay_nights: Any = None
    max_stay_nights: Any = None
    category: Optional[str] = None
    sort: Optional[str] = None
    page_token: Optional[str] = None
    limit: Any = None


def _review_time(stat: PropertyStat) -> float:
    if stat.last_review_date is None:
        return 0.0
    return stat.last_review_date.timestamp()


_SORT_KEY_FUNCS: Dict[str, Callable[[PropertyStat], Tuple[float, ...]]] = {
    "topRated": lambda s: (-s.avg_rating, -s.reviews, -_review_time(s)),
    "mostReviews": lambda s: (-s.reviews, -s.avg_rating, -_review_time(s)),
    "recent": lambda s: (-_review_time(s), -s.reviews),
    "badShare": lambda s: (-compute_share(s.bad_count, s.reviews), -s.reviews),
}


def sort_property_stats(stats: Sequence[PropertyStat], sort: Optional[str]) -> List[PropertyStat]:
    return sorted(stats, key=_SORT_KEY_FUNCS[ensure_sort(sort)])


def _build_predicates(query: PropertyListQuery) -> List[Callable[[PropertyStat], bool]]:
    predicates: List[Callable[[PropertyStat], bool]] = []

    search = (_clean_text(query.search) or "").lower()
    if search:
        predicates.append(lambda s: search in (s.name or "").lower())

    city = (_clean_text(query.city) or "").lower()
    if city:
        predicates.append(lambda s: city in (s.city or "").lower())

    country = (_clean_text(query.country) or "").lower()
    if country:
        predicates.append(lambda s: country in (s.country or "").lower())

    channel = (_clean_text(query.channel) or "").lower()
    if channel in CHANNELS:
        predicates.append(lambda s: s.channel_counts.get(channel, 0) > 0)

    min_rating = parse_number(query.min_rating)
    if min_rating is not None:
        predicates.append(lambda s: s.avg_rating >= min_rating)

    max_rating = parse_number(query.max_rating)
    if max_rating is not None:
        predicates.append(lambda s: s.avg_rating <= max_rating)

    min_stay = parse_number(query.min_stay_nights)
    if min_stay is not None:
        predicates.append(lambda s: s.stay_nights.average is not None and s.stay_nights.average >= min_stay)

    max_stay = parse_number(query.max_stay_nights)
    if max_stay is not None:
        predicates.append(lambda s: s.stay_nights.average is not None and s.stay_nights.average <= max_stay)

    category = (_clean_text(query.category) or "").lower()
    if category in CATEGORY_KEYS:
        predicates.append(lambda s: category in s.category_averages)

    return predicates


def _applied_filters(query: PropertyListQuery, filters: AnalyticsFilter) -> Dict[str, Any]:
    candidates: Dict[str, Any] = {
        "search": _clean_text(query.search),
        "city": _clean_text(query.city),
        "country": _clean_text(query.country),
        "channel": _clean_text(query.channel),
        "minRating": parse_number(query.min_rating),
        "maxRating": parse_number(query.max_rating),
        "minStayNights": parse_number(query.min_stay_nights),
        "maxStayNights": parse_number(query.max_stay_nights),
        "category": _clean_text(query.category),
        "location": filters.location,
        "from": isoformat_utc(filters.date_from),
        "to": isoformat_utc(filters.date_to),
    }
    return {key: value for key, value in candidates.items() if value is not None and value != ""}


def list_properties(
    stats: Sequence[PropertyStat],
    query: PropertyListQuery,
    filters: Optional[AnalyticsFilter] = None,
    *,
    default_limit: int = DEFAULT_LIST_LIMIT,
    max_limit: int = MAX_LIST_LIMIT,
) -> Dict[str, Any]:
    """Filter (AND), sort and page property stats into cards."""
    filters = filters or AnalyticsFilter()
    predicates = _build_predicates(query)
    matched = [stat for stat in stats if all(predicate(stat) for predicate in predicates)]

    sort = ensure_sort(query.sort)
    ordered = sort_property_stats(matched, sort)

    safe_limit = normalize_limit(query.limit, default=default_limit, maximum=max_limit)
    offset = decode_cursor(query.page_token)
    total = len(ordered)
    page = ordered[offset:offset + safe_limit]
    next_offset = offset + len(page)
    next_token = encode_cursor(next_offset) if next_offset < total else None

    _LOGGER.debug(
        "[RANKING] property list sort=%s matched=%d offset=%d returned=%d", sort, total, offset, len(page)
    )
    return {
        "data": [build_property_card(stat) for stat in page],
        "meta": {
            "total": total,
            "sort": sort,
            "appliedFilters": _applied_filters(query, filters),
        },
        "cursor": {"nextPageToken": next_token, "limit": safe_limit},
    }


__all__ = [
    "DEFAULT_SORT",
    "PropertyListQuery",
    "SORT_KEYS",
    "ensure_sort",
    "list_properties",
    "normalize_limit",
    "parse_number",
    "pick_top",
    "sort_property_stats",
]
