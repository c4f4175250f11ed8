"""
Internship Portal API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Graceful drain of background notification emails on shutdown
- Sentry error tracking (when SENTRY_DSN is set)
- CORS middleware
- API routing and error response shapes
- Health check endpoints
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from internship_portal.api import api_router
from internship_portal.core.config import configure_logging, settings
from internship_portal.core.database import close_db, init_db, ping_db
from internship_portal.core.redis import close_redis, init_redis, is_redis_available
from internship_portal.core.sentry import init_sentry
from internship_portal.modules.applications.helpers import collect_field_errors
from internship_portal.modules.applications.notifications import drain_notifications
from internship_portal.modules.applications.schemas import ValidationErrorResponse

configure_logging()
init_sentry()

ROUTE_NOT_FOUND_MESSAGE = "Route not found"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection (rate limiting falls back to memory without it)
    - Database connection
    - Waiting for in-flight notification emails
    """
    # Startup
    print(f"Starting Internship Portal API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database (tables are created directly outside production;
    # production schemas are managed by Alembic)
    try:
        await init_db(create_tables=not settings.is_production)
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down Internship Portal API...")

    # Let queued emails go out before the connections close
    await drain_notifications(timeout=settings.notification_drain_timeout_seconds)
    print("[OK] Notifications drained")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Internship Portal API",
    description="Internship application collection and review API",
    version="1.0.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report every invalid field at once as a 400."""
    body = ValidationErrorResponse(errors=collect_field_errors(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Return structured error details as the response body itself.

    Registered on the Starlette base class so unknown routes and wrong
    methods get the same {success, message} shape.
    """
    if isinstance(exc.detail, dict):
        content = exc.detail
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {"success": False, "message": ROUTE_NOT_FOUND_MESSAGE}
    else:
        content = {"success": False, "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Internship Portal API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/api/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint, reporting database connectivity."""
    database_up = await ping_db()
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_up else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if database_up else "error",
            "database": "connected" if database_up else "disconnected",
            "redis": "connected" if is_redis_available() else "unavailable",
            "environment": settings.python_env,
        },
    )
