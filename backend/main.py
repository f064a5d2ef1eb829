"""FastAPI backend wiring for the review analytics service.

Exposes read-only analytics over approved guest reviews (totals, top
properties, type/volume series, stay lengths, insights, guest mentions) and
the paged property card list. Every response uses the success/error envelope
from ``backend.envelope``.
"""
from __future__ import annotations

import logging
import time
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from analytics.config import load_config
from analytics.errors import StayLengthUnavailable, StoreUnavailableError
from .analytics_router import router as analytics_router
from .envelope import error_envelope, utcnow_iso
from .models import HealthResponse
from .properties_router import router as properties_router

CONFIG = load_config()

logger = logging.getLogger("review_analytics.backend")
if not logger.handlers:
    logging.basicConfig(
        level=getattr(logging, CONFIG.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


# ---------------------------------------------------------------------------
# FastAPI init + CORS
# ---------------------------------------------------------------------------

app = FastAPI(title="Review Analytics Backend", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(analytics_router, prefix="/api/analytics", tags=["analytics"])
app.include_router(properties_router, prefix="/api/properties", tags=["properties"])


@app.middleware("http")
async def telemetry_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start
    response.headers["X-Process-Time"] = f"{duration:.2f}s"
    logger.info("[HTTP] %s %s took %.2fs", request.method, request.url.path, duration)
    return response


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _status_code_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name.lower()
    except ValueError:
        return "http_error"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    details = None if isinstance(exc.detail, str) else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(request, exc.status_code, message, _status_code_name(exc.status_code), details),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=error_envelope(request, 422, "Invalid request parameters.", "validation_error", jsonable_encoder(exc.errors())),
    )


@app.exception_handler(StayLengthUnavailable)
async def stay_length_unavailable_handler(request: Request, exc: StayLengthUnavailable) -> JSONResponse:
    logger.info("[HTTP] stay length unavailable for %s", request.url.path)
    return JSONResponse(
        status_code=501,
        content=error_envelope(request, 501, str(exc), exc.reason, exc.to_payload()),
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("[HTTP] review store unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content=error_envelope(request, 503, "Review store is unavailable.", "store_unavailable"),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=error_envelope(request, 500, "Internal server error.", "internal_server_error"),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(database=CONFIG.duckdb_path.name, timestamp=utcnow_iso())


@app.get("/")
async def root() -> dict:
    return {"service": "review-analytics", "health": "/health"}
