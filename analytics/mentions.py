"""Keyword mention counts per city, a text heuristic over review bodies."""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .types import Property, Review

MENTION_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Cleanliness": ("clean", "dirty", "spotless", "messy", "hygiene", "tidy"),
    "Lack of cleanliness": ("dirty", "messy", "unclean", "filthy", "stain", "dust"),
    "Noise complaints": ("noisy", "loud", "quiet", "noise", "sound", "peaceful"),
    "Maintenance problems": ("broken", "fix", "repair", "maintenance", "issue", "problem"),
}
DEFAULT_MENTION_CATEGORY = "Cleanliness"


def ensure_mention_category(category: Optional[str]) -> str:
    lookup = {name.lower(): name for name in MENTION_KEYWORDS}
    return lookup.get((category or "").strip().lower(), DEFAULT_MENTION_CATEGORY)


def mentions_keyword(text: str, keywords: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in keywords)


def guest_mentions(
    reviews: Iterable[Review],
    properties: Mapping[str, Property],
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """Count reviews mentioning the category per property city.

    Reviews of unknown properties or properties without a city are skipped.
    """
    selected = ensure_mention_category(category)
    keywords = MENTION_KEYWORDS[selected]
    counts: Counter = Counter()

    for review in reviews:
        prop = properties.get(review.property_id)
        if prop is None or not prop.city:
            continue
        body = " ".join(part for part in (review.title, review.text) if part)
        if mentions_keyword(body, keywords):
            counts[prop.city] += 1

    location_data: List[Dict[str, Any]] = [
        {"location": city, "count": count} for city, count in counts.most_common()
    ]
    return {
        "categories": list(MENTION_KEYWORDS),
        "selectedCategory": selected,
        "locationData": location_data,
    }


__all__ = ["MENTION_KEYWORDS", "ensure_mention_category", "guest_mentions", "mentions_keyword"]
