# PURPOSE: per-client rate limiting for the unauthenticated auth endpoints.

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from .config import settings


def get_storage_uri() -> str:
    return settings.REDIS_URL or settings.RATE_LIMIT_STORAGE_URI


def client_key(request: Request) -> str:
    """Client address; first X-Forwarded-For hop when running behind a trusted proxy."""
    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


limiter = Limiter(
    key_func=client_key,
    storage_uri=get_storage_uri(),
    headers_enabled=True,
)

__all__ = ["limiter", "client_key", "_rate_limit_exceeded_handler"]
