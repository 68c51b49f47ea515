# app/middleware/cors.py - CORS for the browser client
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from loguru import logger

# The Vite dev server, always allowed outside production
DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]

TASKBOARD_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
TRACE_HEADERS = ["X-Request-ID", "X-Trace-ID"]


def allowed_origins() -> list:
    origins = list(settings.cors_origins_list)
    if settings.ENVIRONMENT != "production":
        origins += [origin for origin in DEV_ORIGINS if origin not in origins]
    return origins


def setup_cors_middleware(app: FastAPI) -> None:
    """Bearer tokens and multipart image uploads from the configured frontends"""
    origins = allowed_origins()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=TASKBOARD_METHODS,
        allow_headers=["Accept", "Content-Type", "Authorization", *TRACE_HEADERS],
        expose_headers=TRACE_HEADERS,
        max_age=600,
    )

    logger.info(f"✅ CORS configured for {len(origins)} origins")
