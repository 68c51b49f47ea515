# app/middleware/monitoring.py - Taskboard-specific Prometheus metrics
# Per-route request counts and latencies come from prometheus-fastapi-instrumentator
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from prometheus_client import Counter, Gauge
from typing import Callable

ACTIVE_REQUESTS = Gauge(
    'taskboard_requests_active',
    'Requests currently being handled'
)

TASK_ERRORS = Counter(
    'taskboard_task_errors_total',
    'Task operations rejected or failed, by error type',
    ['error']
)


def record_task_error(exc: Exception) -> None:
    TASK_ERRORS.labels(error=type(exc).__name__).inc()


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Gauges requests in flight"""

    async def dispatch(self, request: Request, call_next: Callable):
        with ACTIVE_REQUESTS.track_inprogress():
            return await call_next(request)
