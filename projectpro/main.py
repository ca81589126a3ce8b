"""
Main FastAPI Application

Entry point for the ProjectPro construction management API.
Configures middleware, routes, error handlers, and startup/shutdown events.

Middleware order matters: Starlette runs the middleware added last
first, so TenantMiddleware is added after RateLimitMiddleware to make
request.state.tenant available when the rate limiter runs.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
import time
from contextlib import asynccontextmanager

from projectpro import __version__
from projectpro.config import get_settings
from projectpro.database import engine, init_db
from projectpro.middleware.tenant import TenantMiddleware
from projectpro.middleware.rate_limit import RateLimitMiddleware
from projectpro.utils.logging import setup_logging, get_logger, log_security_event
from projectpro.core.exceptions import (
    AuthenticationError,
    TenantIsolationError
)

from projectpro.api.endpoints import (
    activity,
    auth,
    billing,
    calendar,
    contacts,
    dashboard,
    documents,
    invitations,
    messages,
    projects,
    settings as tenant_settings,
    tasks,
    team,
    tenants,
    update_logs,
)

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting ProjectPro {__version__} in {settings.ENVIRONMENT} mode")

    # Production schemas are managed by Alembic (`alembic upgrade head`)
    if settings.ENVIRONMENT == "development":
        logger.warning("Initializing database tables (dev mode)")
        init_db()

    yield

    logger.info("Shutting down application")
    engine.dispose()


app = FastAPI(
    title="ProjectPro",
    description="Multi-tenant construction project management API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "development" else settings.cors_origin_list,
    allow_credentials=settings.ENVIRONMENT != "development",
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.time() - start_time:.4f}"
    return response


# Added first so it runs after tenant resolution
app.add_middleware(RateLimitMiddleware)

# CRITICAL: Added last so it runs first and every later layer sees the tenant
app.add_middleware(TenantMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(TenantIsolationError)
async def tenant_isolation_error_handler(request: Request, exc: TenantIsolationError):
    """
    Handle tenant isolation violations.

    CRITICAL: These are logged as security events.
    """
    log_security_event(
        "tenant_isolation_violation",
        {
            "detail": exc.detail,
            "path": request.url.path,
            "method": request.method,
            "tenant_id": getattr(request.state, "tenant_id", None),
        },
        logger,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "tenant_isolation_error"}
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "authentication_error"},
        headers=exc.headers or {}
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """
    Unique and check constraints that raced past the endpoint checks.

    The session is rolled back by get_db; report a conflict without
    leaking the SQL.
    """
    logger.warning(
        f"Integrity error on {request.method} {request.url.path}: {exc.orig}",
        extra={"tenant_id": getattr(request.state, "tenant_id", None)}
    )
    return JSONResponse(
        status_code=409,
        content={"detail": "Request conflicts with existing data", "type": "integrity_error"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    SECURITY: Log full details but return a generic error outside debug mode.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
            "tenant_id": getattr(request.state, "tenant_id", None)
        }
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "type": type(exc).__name__}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"}
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "ProjectPro API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


for module in (
    auth,
    tenants,
    team,
    invitations,
    projects,
    tasks,
    contacts,
    documents,
    calendar,
    update_logs,
    messages,
    billing,
    activity,
    dashboard,
    tenant_settings,
):
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    uvicorn.run(
        "projectpro.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
