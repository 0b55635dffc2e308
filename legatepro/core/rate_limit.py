"""Rate limiting configuration for the LegatePro API."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from legatepro.core.config import settings

# Redis for multi-worker deployments, in-memory otherwise
REDIS_URL = os.getenv("REDIS_URL", "")
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)


def _storage_uri() -> str:
    if IS_TESTING or not REDIS_URL:
        return "memory://"
    try:
        import redis

        r = redis.from_url(REDIS_URL, socket_connect_timeout=1)
        r.ping()
        return REDIS_URL
    except Exception as e:
        logging.warning(f"Redis unavailable for rate limiting, using in-memory: {e}")
        return "memory://"


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_storage_uri(),
    default_limits=DEFAULT_LIMITS,
    enabled=not IS_TESTING,
)

AUTH_LIMIT = f"{settings.RATE_LIMIT_AUTH}/minute"
BILLING_LIMIT = f"{settings.RATE_LIMIT_BILLING}/minute"
INVITES_LIMIT = f"{settings.RATE_LIMIT_INVITES}/minute"
