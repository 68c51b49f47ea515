# app/middleware/tracing.py - Request tracing middleware
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger
import time
from slowapi.util import get_remote_address
from typing import Callable

from app.core.tracing import (
    generate_span_id, generate_trace_id, get_current_trace_id, set_trace_context
)


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Gives every request a trace context, logs request and response,
    and returns the trace id in X-Trace-ID / X-Request-ID
    """

    def __init__(self, app, log_requests: bool = True, log_responses: bool = True):
        super().__init__(app)
        self.log_requests = log_requests
        self.log_responses = log_responses

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.perf_counter()
        client_ip = get_remote_address(request)

        set_trace_context(generate_trace_id(), generate_span_id())
        trace_id = get_current_trace_id()

        if self.log_requests:
            logger.bind(trace_id=trace_id).info(f"🚀 {request.method} {request.url.path} | ip={client_ip}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.perf_counter() - start_time
            logger.bind(trace_id=trace_id).error(f"🔥 REQUEST FAILED: {str(e)} in {process_time:.3f}s")
            raise

        process_time = time.perf_counter() - start_time
        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Request-ID"] = trace_id

        if self.log_responses:
            status_emoji = "✅" if response.status_code < 400 else "❌"
            logger.bind(trace_id=trace_id).info(
                f"{status_emoji} {response.status_code} in {process_time:.3f}s"
            )

        return response
