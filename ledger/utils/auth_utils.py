"""
Authentication utilities for Autoledger.

Identity is established upstream; the gateway forwards the authenticated
owner id in a request header. This module reads it and exposes:
- current_user_id(): the owner of the current request
- require_owner: decorator that rejects anonymous requests
"""

import logging
from functools import wraps
from typing import Optional

from config import Config
from exceptions import AuthenticationRequiredError
from flask import g, request

logger = logging.getLogger(__name__)


def parse_user_id(raw_value: Optional[str]) -> Optional[int]:
    """
    Parse an owner id header value.

    Returns:
        Positive integer id, or None if missing or malformed

    Example:
        >>> parse_user_id("42")
        42
        >>> parse_user_id("abc") is None
        True
    """
    if raw_value is None:
        return None
    raw_value = raw_value.strip()
    if not (raw_value.isascii() and raw_value.isdigit()):
        return None
    user_id = int(raw_value)
    return user_id if user_id > 0 else None


def current_user_id() -> int:
    """
    Owner id of the current request.

    Raises:
        AuthenticationRequiredError: header missing or malformed
    """
    user_id = g.get("user_id")
    if user_id is not None:
        return user_id

    user_id = parse_user_id(request.headers.get(Config.USER_ID_HEADER))
    if user_id is None:
        logger.warning(f"Rejected request to {request.path} without a valid {Config.USER_ID_HEADER} header")
        raise AuthenticationRequiredError(
            "Authentication required", {"header": Config.USER_ID_HEADER}
        )

    g.user_id = user_id
    return user_id


def require_owner(f):
    """Decorator resolving the request owner before the view runs."""

    @wraps(f)
    def decorated(*args, **kwargs):
        current_user_id()
        return f(*args, **kwargs)

    return decorated
