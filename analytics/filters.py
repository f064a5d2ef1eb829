"""
Request filter resolution.

Purpose:
- Turn raw query values (location substring, from/to date strings) into an
  AnalyticsFilter.
- Degrade silently: a blank location or an unparsable date simply drops out of
  the filter instead of failing the request.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Optional, Sequence, Union

from .store import ReviewStore
from .types import AnalyticsFilter, as_utc

_LOGGER = logging.getLogger(__name__)

QueryValue = Union[str, Sequence[str], None]


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def unwrap(value: QueryValue) -> Optional[str]:
    """Return the first value of a repeated query parameter."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else None
    return str(value)


def parse_date(value: Any) -> Optional[datetime]:
    """Strict ISO-8601 parse; anything else becomes ``None``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        _LOGGER.debug("Ignoring unparsable date value: %r", value)
        return None
    return as_utc(parsed)


def normalise_location(value: QueryValue) -> Optional[str]:
    location = (unwrap(value) or "").strip()
    return location or None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_filter(
    store: ReviewStore,
    location: QueryValue = None,
    date_from: QueryValue = None,
    date_to: QueryValue = None,
) -> AnalyticsFilter:
    """Build the AnalyticsFilter for one request.

    The store is consulted only when a location is present; an empty match is
    kept as an empty id set so downstream stages filter everything out.
    """
    normalised_location = normalise_location(location)
    parsed_from = parse_date(unwrap(date_from))
    parsed_to = parse_date(unwrap(date_to))

    property_ids = None
    if normalised_location:
        property_ids = frozenset(store.resolve_properties_by_location(normalised_location))
        _LOGGER.debug(
            "[FILTERS] location=%r resolved to %d properties", normalised_location, len(property_ids)
        )

    return AnalyticsFilter(
        location=normalised_location,
        date_from=parsed_from,
        date_to=parsed_to,
        property_ids=property_ids,
    )


__all__ = [
    "normalise_location",
    "parse_date",
    "resolve_filter",
    "unwrap",
]
