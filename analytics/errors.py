"""Exceptions that cross the boundary between the analytics engine and its callers."""
from __future__ import annotations

from typing import Any, Dict


class StayLengthUnavailable(RuntimeError):
    """Raised when no review in the filtered set carries derivable stay nights."""

    reason = "stay_length_unavailable"

    def __init__(self, message: str = "Stay length data is unavailable for the selected filters.") -> None:
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"reason": self.reason, "message": str(self)}


class StoreUnavailableError(RuntimeError):
    """Raised when the review store cannot be reached or queried."""
