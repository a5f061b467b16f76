"""
Portfolio Analytics - Backend API
Snapshots, performance, risk, attribution and rebalancing recommendations per wallet
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio_analytics.api.v1.router import api_router
from portfolio_analytics.core.config import settings
from portfolio_analytics.core.exceptions import (
    DataUnavailable,
    InvalidWalletId,
    NoSnapshotAvailable,
    PortfolioAnalyticsError,
)
from portfolio_analytics.core.logging import get_logger, setup_logging
from portfolio_analytics.core.rate_limit import limiter
from portfolio_analytics.services.analytics_service import build_analytics_service

# Setup structured logging
setup_logging()
logger = get_logger(__name__)

ERROR_STATUS = {
    InvalidWalletId: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoSnapshotAvailable: status.HTTP_404_NOT_FOUND,
    DataUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }

        # Skip health check logs to reduce noise
        if request.url.path != "/health":
            if response.status_code >= 500:
                logger.error("Request failed", extra=log_data)
            elif response.status_code >= 400:
                logger.warning("Request error", extra=log_data)
            elif duration_ms > 1000:  # Log slow requests (>1s)
                logger.warning("Slow request", extra=log_data)
            else:
                logger.debug("Request completed", extra=log_data)

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} (env={settings.APP_ENV}, debug={settings.DEBUG})")
    app.state.analytics_service = build_analytics_service(settings)
    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


# Conditionally expose OpenAPI docs (only in development/debug mode)
app = FastAPI(
    title=settings.APP_NAME,
    description="Portfolio analytics API: snapshots, risk, attribution and recommendations",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if settings.DEBUG else None,
    docs_url=f"{settings.API_V1_PREFIX}/docs" if settings.DEBUG else None,
    redoc_url=f"{settings.API_V1_PREFIX}/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


@app.exception_handler(PortfolioAnalyticsError)
async def analytics_error_handler(request: Request, exc: PortfolioAnalyticsError):
    """Translate analytics errors into HTTP responses."""
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.warning(
        "Analytics error",
        extra={
            "error": type(exc).__name__,
            "wallet_id": exc.wallet_id,
            "path": request.url.path,
            "detail": exc.message,
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(TimeoutError)
async def lock_timeout_handler(request: Request, exc: TimeoutError):
    """A snapshot for the same wallet is still in progress."""
    logger.warning("Wallet busy: %s", exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


# Global exception handler to log errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,  # Cache preflight for 10 minutes
)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check(request: Request):
    """Health check with snapshot store occupancy."""
    health = {"app": settings.APP_NAME, "status": "healthy"}
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        health["status"] = "starting"
    else:
        health["wallets_tracked"] = len(service.store.wallets())
    return health
