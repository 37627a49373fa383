"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from growthtrack.core.config import settings
from growthtrack.core.errors import ConfigurationError, NotConnectedError, UpstreamFailure
from growthtrack.core.structured_logging import build_log_context
from growthtrack.db.session import engine

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Child health data must never reach Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from growthtrack.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Growth Tracker API",
    description="Child growth tracking with doctor share links and calendar sync",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ============================================================================
# Error Mapping
# ============================================================================

@app.exception_handler(NotConnectedError)
async def not_connected_handler(request: Request, exc: NotConnectedError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(UpstreamFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamFailure):
    """Rate-limit and payment signals pass through; everything else is 502."""
    logger.warning(
        "upstream_failure: %s",
        exc.message,
        extra=build_log_context(route=request.url.path, upstream_status=exc.status),
    )
    status_code = exc.status if exc.status in (402, 429) else 502
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "upstream_status": exc.status},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "storage_error",
        exc_info=exc,
        extra=build_log_context(route=request.url.path),
    )
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# ============================================================================
# Routers
# ============================================================================

from growthtrack.routers import auth, children, share_links, shared, calendar, assistant

app.include_router(auth.router)
app.include_router(children.router)

# Doctor sharing: owner management + public verification
app.include_router(share_links.router)
app.include_router(shared.router)

# Google Calendar (per-user OAuth)
app.include_router(calendar.router)

# AI assistant proxy
app.include_router(assistant.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
