"""FastAPI router exposing the review analytics read endpoints."""
from __future__ import annotations
import logging
from typing import Any, Callable, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from analytics.errors import StayLengthUnavailable, StoreUnavailableError
from analytics.service import AnalyticsService
from .dependencies import get_service
from .envelope import success_envelope
logger = logging.getLogger('review_analytics.analytics')
router = APIRouter()

_PASSTHROUGH = (HTTPException, StayLengthUnavailable, StoreUnavailableError)


def _respond(request: Request, label: str, producer: Callable[[], Any]) -> JSONResponse:
    try:
        payload = producer()
        return JSONResponse(content=success_envelope(request, payload))
    except _PASSTHROUGH:
        raise
    except Exception as exc:
        logger.exception('Unable to build %s: %s', label, exc)
        raise HTTPException(status_code=500, detail=f'Unable to build {label}.') from exc


@router.get('/totals')
def analytics_totals(
    request: Request,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Review and property counts for the filtered snapshot."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'analytics totals', lambda: service.get_totals(filters))


@router.get('/properties/top')
def analytics_top_properties(
    request: Request,
    kind: Optional[str] = None,
    limit: Optional[str] = None,
    min_reviews: Optional[str] = Query(None, alias='minReviews'),
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Best (``kind=good``) or worst (``kind=bad``) rated properties."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(
        request,
        'top properties',
        lambda: service.get_top_properties(filters, kind or 'good', limit=limit, min_reviews=min_reviews),
    )


@router.get('/reviews/types')
def analytics_review_types(
    request: Request,
    bucket: Optional[str] = None,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'review types', lambda: service.get_review_types(filters, bucket))


@router.get('/reviews/volume')
def analytics_review_volume(
    request: Request,
    bucket: Optional[str] = None,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'review volume', lambda: service.get_review_volume(filters, bucket))


@router.get('/reviews/recent')
def analytics_recent_reviews(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Newest approved reviews, paged."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(
        request,
        'recent reviews',
        lambda: service.get_recent_reviews(filters, page=page or 1, limit=limit),
    )


@router.get('/stays/length')
def analytics_stay_length(
    request: Request,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Stay-length distribution; 501 when no review carries stay data."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'stay length distribution', lambda: service.get_stay_length_distribution(filters))


@router.get('/insights')
def analytics_insights(
    request: Request,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Good/bad blurbs with drill-down links."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'insights', lambda: service.get_insights(filters))


@router.get('/mentions')
def analytics_guest_mentions(
    request: Request,
    category: Optional[str] = None,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'guest mentions', lambda: service.get_guest_mentions(filters, category))


@router.get('/overview')
def analytics_overview(
    request: Request,
    date_range: Optional[str] = Query(None, alias='range'),
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Review/property counts against the previous window, with a sentiment summary."""
    filters = service.create_filters(location, date_from, date_to)
    return _respond(request, 'overview', lambda: service.get_overview(filters, date_range))
