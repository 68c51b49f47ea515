# app/middleware/rate_limiting.py - Shared slowapi limiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# One limiter for the app and for per-route limits on the auth endpoints
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.DEFAULT_RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED
)
