"""
Flask extensions for Autoledger.

This module initializes Flask extensions that need to be shared
across the application to avoid circular imports.
"""

import os

from config import Config
from flask import g, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from utils.auth_utils import parse_user_id

# Rate limiting storage (Redis in production, memory for development)
RATE_LIMIT_STORAGE = os.environ.get("RATE_LIMIT_STORAGE_URI", "memory://")


def owner_or_remote_address():
    """Limit per authenticated owner when known, per client address otherwise."""
    user_id = g.get("user_id") or parse_user_id(request.headers.get(Config.USER_ID_HEADER))
    if user_id is not None:
        return f"user:{user_id}"
    return get_remote_address()


limiter = Limiter(
    key_func=owner_or_remote_address,
    default_limits=["1000 per hour", "200 per minute"],
    storage_uri=RATE_LIMIT_STORAGE,
    strategy="fixed-window",
    headers_enabled=True,
)


class RateLimits:
    """Common rate limit configurations for different endpoint types."""

    # Timeline listing (paged, cheap per call)
    READ_HEAVY = "500 per hour"

    # Period statistics and comparisons scan whole windows
    EXPENSIVE = "120 per hour"

    # Public/unauthenticated endpoints
    PUBLIC = "50 per hour"
