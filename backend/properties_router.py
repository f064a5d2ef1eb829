"""FastAPI router for the paged property card list."""
from __future__ import annotations
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from analytics.errors import StoreUnavailableError
from analytics.service import AnalyticsService
from .dependencies import get_service
from .envelope import success_envelope
from .models import PropertyListParams
logger = logging.getLogger('review_analytics.properties')
router = APIRouter()


@router.get('')
def list_property_cards(
    request: Request,
    location: Optional[List[str]] = Query(None),
    date_from: Optional[List[str]] = Query(None, alias='from'),
    date_to: Optional[List[str]] = Query(None, alias='to'),
    service: AnalyticsService = Depends(get_service),
) -> JSONResponse:
    """Filter, sort and page property cards. `meta.cursor.nextPageToken` continues the listing."""
    # repeated keys keep their first value, matching location/from/to
    raw = {key: request.query_params.getlist(key)[0] for key in request.query_params.keys()}
    params = PropertyListParams.model_validate(raw)
    try:
        filters = service.create_filters(location, date_from, date_to)
        payload = service.get_property_list(filters, params.to_query())
        return JSONResponse(content=success_envelope(request, payload))
    except (HTTPException, StoreUnavailableError):
        raise
    except Exception as exc:
        logger.exception('Unable to list properties: %s', exc)
        raise HTTPException(status_code=500, detail='Unable to list properties.') from exc
