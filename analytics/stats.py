"""Per-property rollups of a review set."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .stays import stay_nights_for
from .types import CATEGORY_KEYS, CHANNELS, Property, PropertyStat, Review, StayNights, as_utc

_LOGGER = logging.getLogger(__name__)

_CATEGORY_COLUMNS = {key: f"cat_{key}" for key in CATEGORY_KEYS}


def _category_value(categories: Mapping[str, Any], key: str) -> Optional[float]:
    value = (categories or {}).get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def reviews_frame(reviews: Iterable[Review]) -> pd.DataFrame:
    """Flatten reviews into one row each; missing category scores become NaN."""
    rows: List[Dict[str, Any]] = []
    for review in reviews:
        row: Dict[str, Any] = {
            "property_id": str(review.property_id),
            "channel": (review.channel or "").strip().lower(),
            "rating": int(review.rating),
            "review_date": as_utc(review.review_date),
            "nights": stay_nights_for(review),
        }
        for key, column in _CATEGORY_COLUMNS.items():
            row[column] = _category_value(review.categories, key)
        rows.append(row)

    columns = ["property_id", "channel", "rating", "review_date", "nights", *_CATEGORY_COLUMNS.values()]
    df = pd.DataFrame(rows, columns=columns)
    df["nights"] = pd.to_numeric(df["nights"], errors="coerce")
    for column in _CATEGORY_COLUMNS.values():
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df["review_date"] = pd.to_datetime(df["review_date"], utc=True)
    return df


def _optional_int(value: Any) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(value)


def _channel_counts(df: pd.DataFrame) -> Dict[str, Dict[str, int]]:
    known = df[df["channel"].isin(CHANNELS)]
    counts: Dict[str, Dict[str, int]] = {}
    if known.empty:
        return counts
    for (property_id, channel), count in known.groupby(["property_id", "channel"], sort=False).size().items():
        if count > 0:
            counts.setdefault(property_id, {})[channel] = int(count)
    return counts


def compute_property_stats(
    reviews: Iterable[Review],
    properties: Mapping[str, Property],
) -> List[PropertyStat]:
    """Fold reviews into one PropertyStat per known property.

    Only approved reviews are counted. Output follows the order in which each
    property first appears in ``reviews``; properties missing from
    ``properties`` are dropped.
    """
    approved = [review for review in reviews if review.approved_for_public]
    if not approved:
        return []

    df = reviews_frame(approved)
    df["good"] = (df["rating"] >= 4).astype(int)
    df["neutral"] = (df["rating"] == 3).astype(int)
    df["bad"] = (df["rating"] <= 2).astype(int)

    aggregations: Dict[str, Any] = {
        "reviews": ("rating", "size"),
        "avg_rating": ("rating", "mean"),
        "good_count": ("good", "sum"),
        "neutral_count": ("neutral", "sum"),
        "bad_count": ("bad", "sum"),
        "last_review_date": ("review_date", "max"),
        "nights_count": ("nights", "count"),
        "nights_sum": ("nights", "sum"),
        "nights_min": ("nights", "min"),
        "nights_max": ("nights", "max"),
    }
    for key, column in _CATEGORY_COLUMNS.items():
        aggregations[f"avg_{key}"] = (column, "mean")

    summary = df.groupby("property_id", sort=False).agg(**aggregations)
    channels = _channel_counts(df)

    stats: List[PropertyStat] = []
    dropped = 0
    for property_id, row in summary.iterrows():
        prop = properties.get(property_id)
        if prop is None:
            dropped += 1
            continue

        category_averages: Dict[str, float] = {}
        for key in CATEGORY_KEYS:
            value = row[f"avg_{key}"]
            if not pd.isna(value):
                category_averages[key] = round(float(value), 1)

        last_review = row["last_review_date"]
        stats.append(
            PropertyStat(
                property_id=property_id,
                name=prop.name,
                city=prop.city,
                country=prop.country,
                image_url=prop.image_url,
                reviews=int(row["reviews"]),
                avg_rating=round(float(row["avg_rating"]), 2),
                good_count=int(row["good_count"]),
                neutral_count=int(row["neutral_count"]),
                bad_count=int(row["bad_count"]),
                last_review_date=None if pd.isna(last_review) else last_review.to_pydatetime(),
                channel_counts=channels.get(property_id, {}),
                category_averages=category_averages,
                stay_nights=StayNights(
                    count=int(row["nights_count"]),
                    sum=int(row["nights_sum"]),
                    min=_optional_int(row["nights_min"]),
                    max=_optional_int(row["nights_max"]),
                ),
            )
        )

    if dropped:
        _LOGGER.debug("[STATS] Dropped %d properties with no matching property record", dropped)
    return stats


def property_lookup(properties: Iterable[Property]) -> Dict[str, Property]:
    return {str(prop.id): prop for prop in properties}


__all__ = ["compute_property_stats", "property_lookup", "reviews_frame"]
