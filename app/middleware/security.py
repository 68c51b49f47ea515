from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses; API payloads are never cached,
    uploaded images may be
    """

    def __init__(self, app, enable_hsts: bool = False, uploads_path: str = "/uploads"):
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.uploads_path = uploads_path

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        if not request.url.path.startswith(self.uploads_path):
            response.headers["Cache-Control"] = "no-store"

        # HSTS only makes sense behind HTTPS
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
