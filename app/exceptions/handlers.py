# app/exceptions/handlers.py
"""
Every error leaves the API as JSON carrying the request's trace id, so a
client report can be matched to the server log line.
"""
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.util import get_remote_address
from app.core import tracing
from app.exceptions.tasks import TaskDomainError, UnexpectedError
from app.middleware.monitoring import record_task_error
import time

GENERIC_ERROR = "Internal server error"


def get_safe_headers(request: Request) -> dict:
    """Request headers worth logging, with the bearer token truncated"""
    headers = request.headers
    authorization = headers.get("authorization")
    return {
        "user_agent": headers.get("user-agent", "unknown"),
        "authorization": f"{authorization[:10]}..." if authorization else "none",
        "referer": headers.get("referer", "none")
    }


def error_response(request: Request, status_code: int, detail, headers: dict = None, **extra) -> JSONResponse:
    content = {
        "detail": detail,
        "status_code": status_code,
        "trace_id": tracing.get_current_trace_id(),
        "timestamp": time.time(),
        "path": request.url.path,
        **extra
    }
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    log = tracing.error if exc.status_code >= 500 else tracing.warning
    log(
        f"🚨 HTTP {exc.status_code}: {exc.detail}",
        url=str(request.url),
        ip=get_remote_address(request),
        **get_safe_headers(request)
    )
    return error_response(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing 404/405s and slowapi's 429s"""
    return await http_exception_handler(request, exc)


async def domain_exception_handler(request: Request, exc: TaskDomainError) -> JSONResponse:
    """Task rule violations keep their message; unexpected failures never do"""
    client_ip = get_remote_address(request)
    record_task_error(exc)

    if isinstance(exc, UnexpectedError):
        tracing.error(f"🔥 Unexpected task error: {exc.detail}", url=str(request.url), ip=client_ip)
        return error_response(request, exc.status_code, GENERIC_ERROR)

    tracing.warning(f"⚠️ {type(exc).__name__}: {exc.detail}", url=str(request.url), ip=client_ip)
    return error_response(request, exc.status_code, exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request shapes are client errors: 400 with a per-field breakdown"""
    errors = [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]

    tracing.warning(
        f"⚠️ Validation error: {len(errors)} errors",
        url=str(request.url),
        ip=get_remote_address(request),
        **get_safe_headers(request)
    )
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    tracing.error(
        f"🔥 UNHANDLED EXCEPTION: {type(exc).__name__}: {exc}",
        url=str(request.url),
        ip=get_remote_address(request),
        **get_safe_headers(request)
    )
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)
