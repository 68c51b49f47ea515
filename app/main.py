# app/main.py - Taskboard API application
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.middleware import SlowAPIMiddleware
import time

from app.core.config import settings
from app.core import tracing
from app.db.database import get_db, init_db, engine
from app.api.v1 import api_router
from app.integrations.storage import image_storage

from app.middleware.security import SecurityHeadersMiddleware
from app.middleware.cors import setup_cors_middleware
from app.middleware.rate_limiting import limiter
from app.middleware.monitoring import MonitoringMiddleware
from app.middleware.tracing import TracingMiddleware

from app.exceptions.handlers import (
    http_exception_handler,
    validation_exception_handler,
    global_exception_handler,
    starlette_http_exception_handler,
    domain_exception_handler
)
from app.exceptions.tasks import TaskDomainError

SERVICE_NAME = "Taskboard API"
IS_DEVELOPMENT = settings.ENVIRONMENT == "development"


@asynccontextmanager
async def lifespan(app: FastAPI):
    tracing.info(
        f"{SERVICE_NAME} starting",
        environment=settings.ENVIRONMENT,
        rate_limiting=settings.RATE_LIMIT_ENABLED,
        cors_origins=len(settings.cors_origins_list)
    )
    try:
        await init_db()
    except Exception as e:
        tracing.error(f"Database initialization failed: {e}")
        raise

    yield

    await engine.dispose()
    tracing.info(f"{SERVICE_NAME} stopped")


app = FastAPI(
    title=SERVICE_NAME,
    description="Task assignment, checklist progress tracking and dashboards",
    version=tracing.VERSION,
    lifespan=lifespan,
    docs_url="/docs" if IS_DEVELOPMENT else None,
    redoc_url="/redoc" if IS_DEVELOPMENT else None,
    openapi_url="/openapi.json" if IS_DEVELOPMENT else None
)

tracing_enabled = tracing.setup_tracing(app, engine)

# =============================================================================
# MIDDLEWARE (last added runs first: tracing wraps everything)
# =============================================================================

app.add_middleware(MonitoringMiddleware)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.ENVIRONMENT == "production")
setup_cors_middleware(app)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(TracingMiddleware)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

app.add_exception_handler(TaskDomainError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# =============================================================================
# METRICS, ROUTES, UPLOADS
# =============================================================================

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/uploads"]
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.include_router(api_router, prefix="/api/v1")
app.mount("/uploads", StaticFiles(directory=image_storage.ensure_directory()), name="uploads")


@app.get("/health", tags=["System"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database round trip"""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        tracing.error(f"Health check failed: {e}", error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )

    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": tracing.VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": time.time(),
        "trace_id": tracing.get_current_trace_id(),
        "checks": {
            "database": "connected",
            "tracing": "enabled" if tracing_enabled else "disabled",
            "rate_limiting": "enabled" if settings.RATE_LIMIT_ENABLED else "disabled"
        }
    }


@app.get("/", tags=["System"])
async def api_information():
    return {
        "message": SERVICE_NAME,
        "version": tracing.VERSION,
        "environment": settings.ENVIRONMENT,
        "trace_id": tracing.get_current_trace_id(),
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "authentication": "/api/v1/auth",
            "users": "/api/v1/users",
            "tasks": "/api/v1/tasks",
            "uploads": "/uploads",
            "documentation": "/docs" if IS_DEVELOPMENT else None
        }
    }
