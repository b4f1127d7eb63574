"""
api/main.py -- FastAPI application entry point for bizdir.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. apply_cors        -- answers every OPTIONS with 204, stamps CORS headers
                          on every other response, errors included
  2. log_requests      -- one log line per request with latency
  3. catch_unhandled   -- turns any escaped exception into a generic 500
  4. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Starlette's CORSMiddleware is not used: it only decorates requests that send
an Origin header and never sees responses built by ServerErrorMiddleware.
Browsers must be able to read every error body, so the headers are applied
unconditionally here, outside the 500 handler.

Lifespan opens the stores on startup and disposes their engines on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.body import PayloadTooLarge
from api.limiter import limiter
from api.models import HealthResponse, MessageResponse
from api.routes.auth import router as auth_router
from api.routes.companies import router as companies_router
from auth.sessions import SessionManager
from auth.store import UserStore
from core.config import get_settings
from directory.store import CompanyStore
from directory.validation import CompanyValidationError

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("bizdir.api")

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
_PREFLIGHT_HEADERS = {**_CORS_HEADERS, "Access-Control-Max-Age": "600"}

# Starlette's default details for unmatched routes. Both are reported as a
# plain 404 so clients see a single "no such endpoint" shape.
_UNMATCHED_DETAILS = {"Not Found", "Method Not Allowed"}


def _message(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageResponse(message=message).model_dump(),
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and dispose of them on shutdown.

    Both stores point at the same DATABASE_URL. The session manager wraps the
    user store; it has no background task because expired sessions are
    purged whenever a new one is created.
    """
    settings = get_settings()
    logger.info("bizdir API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.company_store = CompanyStore(settings.database_url)
    app.state.sessions = SessionManager(app.state.user_store, ttl_seconds=settings.session_ttl_seconds)
    logger.info("Stores initialized (session TTL %ds)", settings.session_ttl_seconds)

    yield

    app.state.company_store.close()
    app.state.user_store.close()
    logger.info("bizdir API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="bizdir API",
    description="Business directory: company search records with per-user ownership and visibility.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Middleware
#
# Each @app.middleware registration wraps the ones before it, so the last one
# defined below is the outermost.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def catch_unhandled(request: Request, call_next):
    """Convert any exception no handler claimed into a generic 500.

    The traceback goes to the log only. Clients never see storage or code
    details.
    """
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _message(500, "Internal server error")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


@app.middleware("http")
async def apply_cors(request: Request, call_next):
    """Wide-open CORS: 204 for any preflight, CORS headers on everything else."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=_PREFLIGHT_HEADERS)
    response = await call_next(request)
    response.headers.update(_CORS_HEADERS)
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(companies_router, prefix="/api", tags=["Companies"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"message": "..."} so clients parse one shape.
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route-raised HTTPExceptions and Starlette's own 404/405 for unmatched routes."""
    if exc.detail in _UNMATCHED_DETAILS:
        return _message(404, "Not found")
    return _message(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(CompanyValidationError)
async def company_validation_handler(request: Request, exc: CompanyValidationError) -> JSONResponse:
    return _message(400, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
    return _message(400, "Invalid request")


@app.exception_handler(PayloadTooLarge)
async def payload_too_large_handler(request: Request, exc: PayloadTooLarge) -> Response:
    """Refuse the body outright: no JSON, and ask the client to drop the connection."""
    logger.warning("Rejected oversized body on %s %s", request.method, request.url.path)
    return Response(status_code=413, headers={"Connection": "close"})


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    # exc.limit wraps the limits item that tripped; its expiry is the window length.
    retry_after = exc.limit.limit.get_expiry() if getattr(exc, "limit", None) is not None else 60
    return _message(429, "Too many requests", headers={"Retry-After": str(retry_after)})


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly on the app so it is reachable regardless of router state.
# No auth and no rate limit: load balancers poll it.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse()
