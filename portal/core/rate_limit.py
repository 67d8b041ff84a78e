"""Rate limiting configuration for the portal API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from portal.core.config import settings

# Login is the only limited route; storage is in-memory unless a shared
# backend (e.g. redis://) is configured for multi-worker deployments.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)

AUTH_LIMIT = f"{settings.RATE_LIMIT_AUTH}/minute"
