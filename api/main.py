"""
api/main.py -- FastAPI application entry point for scaffold-api.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. trace_id               -- accept/generate X-Trace-Id, echo it on the response
  2. log_requests           -- one log line per request with latency
  3. TrustedHostMiddleware  -- rejects requests with unexpected Host headers
  4. CORSMiddleware         -- adds CORS headers for allowed browser origins
  5. SlowAPIMiddleware      -- enforces per-route rate limits from api.limiter

Lifespan wires the collaborators every use case needs onto app.state:
  user_store, password_hasher, jwt_service. Tests swap the lifespan for one
  that installs an isolated store (see tests/conftest.py).
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import DeepHealthResponse, ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.passwords import BcryptPasswordHasher, timing_dummy_hash
from auth.store import InMemoryUserStore
from auth.tokens import JWTService
from core.config import get_settings
from core.errors import AppError, ValidationError
from core.trace import TRACE_ID_HEADER, TraceIdFilter, get_or_generate_trace_id, trace_id_var

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s [%(trace_id)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(TraceIdFilter())
logger = logging.getLogger("scaffold.api")

_STARTED_AT = time.monotonic()


# ---------------------------------------------------------------------------
# Lifespan -- collaborators shared by every request
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared collaborators once per process.

    JWTService is constructed here, not at import time, so a bad
    JWT_EXPIRES_IN fails at startup with a clear error instead of on the
    first login.
    """
    logger.info("scaffold-api starting up")
    app.state.jwt_service = JWTService(
        settings.secret_key,
        default_expires_in=settings.jwt_expires_in,
        issuer=settings.jwt_issuer,
    )
    app.state.password_hasher = BcryptPasswordHasher(rounds=settings.bcrypt_rounds)
    # Build the unknown-email comparison hash now, not on the first failed login.
    timing_dummy_hash(settings.bcrypt_rounds)
    app.state.user_store = InMemoryUserStore()
    logger.info(
        "Auth initialized (issuer=%s, token_ttl=%s, bcrypt_rounds=%d)",
        settings.jwt_issuer,
        app.state.jwt_service.default_ttl,
        settings.bcrypt_rounds,
    )

    yield

    logger.info("scaffold-api shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the current stack, so the LAST registration is the
# outermost layer. Register innermost-first: SlowAPI -> CORS -> TrustedHost.
# The @app.middleware("http") functions below are registered after these and
# therefore sit outside them.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", TRACE_ID_HEADER],
    expose_headers=[TRACE_ID_HEADER],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


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
async def trace_id(request: Request, call_next):
    """Attach a trace id to the request, the logging context and the response.

    Registered last so it is the outermost middleware: every log line and
    every error envelope produced further in carries the same id.
    """
    value = get_or_generate_trace_id(request.headers.get(TRACE_ID_HEADER))
    request.state.trace_id = value
    token = trace_id_var.set(value)
    try:
        response = await call_next(request)
    finally:
        trace_id_var.reset(token)
    response.headers[TRACE_ID_HEADER] = value
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every failure leaves as {"error": {code, message, details?, trace_id?}}.
# AppError covers the deliberate ones; the rest map framework errors onto it.
# ---------------------------------------------------------------------------


def _request_trace_id(request: Request) -> str | None:
    return getattr(request.state, "trace_id", None) or trace_id_var.get() or None


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(mode="json", exclude_none=True),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render any AppError. Status and code come from exc.kind."""
    exc.with_trace_id(_request_trace_id(request))
    logger.warning(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.message,
    )
    return _error_response(exc.status_code, ErrorDetail(**exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with every failing field, same shape as use-case validation errors."""
    return await app_error_handler(
        request,
        ValidationError.from_error_list(list(exc.errors())),
    )


def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the exceeded limit's window, e.g. 60 for "10/minute", 3600 for "5/hour"."""
    return int(exc.limit.limit.get_expiry())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 rate_limited in the error envelope.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = _retry_after_seconds(exc)
    response = _error_response(
        429,
        ErrorDetail(
            code="rate_limited",
            message="Too many requests.",
            details=str(exc.detail),
            trace_id=_request_trace_id(request),
        ),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for framework-raised HTTP errors (404 route, 405 method, ...)."""
    return _error_response(
        exc.status_code,
        ErrorDetail(
            code=f"http_{exc.status_code}",
            message=str(exc.detail),
            trace_id=_request_trace_id(request),
        ),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors, including store failures.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(
        500,
        ErrorDetail(
            code="internal_error",
            message="An unexpected error occurred.",
            trace_id=_request_trace_id(request),
        ),
    )


# ---------------------------------------------------------------------------
# Health endpoints
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


def _health_fields() -> dict:
    return {
        "version": settings.api_version,
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "timestamp": datetime.now(timezone.utc),
    }


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return liveness, version and process uptime."""
    return HealthResponse(**_health_fields())


@app.get("/api/v1/health/deep", tags=["Health"])
async def deep_health(request: Request) -> DeepHealthResponse:
    """Liveness plus a round trip to each backing dependency."""
    checks: dict[str, str] = {}
    try:
        await request.app.state.user_store.count()
        checks["repository"] = "ok"
    except Exception:
        logger.exception("Repository health check failed")
        checks["repository"] = "error"
    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return DeepHealthResponse(status=status, checks=checks, **_health_fields())
