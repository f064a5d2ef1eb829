"""Stay-length derivation and the nights distribution."""
from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from .errors import StayLengthUnavailable
from .types import Review, as_utc

SECONDS_IN_DAY = 24 * 60 * 60
STAY_BANDS = ("1-2", "3-5", "6+")


def stay_nights_for(review: Review) -> Optional[int]:
    """Nights for one stay, or None when the review does not say.

    An explicit positive night count wins; otherwise the checkout/stay dates
    are differenced and rounded half-up to whole days.
    """
    nights = review.stay_nights
    if isinstance(nights, (int, float)) and not isinstance(nights, bool) and nights > 0:
        return int(nights)

    if review.stay_date is not None and review.checkout_date is not None:
        elapsed = as_utc(review.checkout_date) - as_utc(review.stay_date)
        diff = math.floor(elapsed.total_seconds() / SECONDS_IN_DAY + 0.5)
        return diff if diff > 0 else None
    return None


def stay_band(nights: int) -> str:
    if nights <= 2:
        return "1-2"
    if nights <= 5:
        return "3-5"
    return "6+"


def aggregate_stays(reviews: Iterable[Review]) -> Dict[str, Any]:
    """Share of reviews per nights band.

    Raises StayLengthUnavailable when not a single review has derivable
    nights; an all-zero distribution would misreport missing data.
    """
    counts: Counter = Counter()
    nights_available = False

    for review in reviews:
        nights = stay_nights_for(review)
        if nights is None:
            continue
        nights_available = True
        counts[stay_band(nights)] += 1

    if not nights_available:
        raise StayLengthUnavailable()

    total = sum(counts.values())
    if total == 0:
        return {"lengthDist": []}

    length_dist: List[Dict[str, Any]] = [
        {"nights": band, "pct": round(counts[band] / total, 2)}
        for band in STAY_BANDS
        if counts[band] > 0
    ]
    return {"lengthDist": length_dist}


__all__ = ["STAY_BANDS", "aggregate_stays", "stay_band", "stay_nights_for"]
