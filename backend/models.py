from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from analytics.ranking import PropertyListQuery


class PropertyListParams(BaseModel):
    """Raw `/api/properties` query string. Every value stays a string; the
    ranking core parses numbers leniently and drops what it cannot read."""

    model_config = ConfigDict(populate_by_name=True)

    q: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    channel: Optional[str] = None
    min_rating: Optional[str] = Field(default=None, alias='minRating')
    max_rating: Optional[str] = Field(default=None, alias='maxRating')
    min_stay_nights: Optional[str] = Field(default=None, alias='minStayNights')
    max_stay_nights: Optional[str] = Field(default=None, alias='maxStayNights')
    category: Optional[str] = None
    sort: Optional[str] = None
    page_token: Optional[str] = Field(default=None, alias='pageToken')
    limit: Optional[str] = None

    def to_query(self) -> PropertyListQuery:
        return PropertyListQuery(
            search=self.q,
            city=self.city,
            country=self.country,
            channel=self.channel,
            min_rating=self.min_rating,
            max_rating=self.max_rating,
            min_stay_nights=self.min_stay_nights,
            max_stay_nights=self.max_stay_nights,
            category=self.category,
            sort=self.sort,
            page_token=self.page_token,
            limit=self.limit,
        )


class HealthResponse(BaseModel):
    status: str = 'ok'
    database: str
    timestamp: str
