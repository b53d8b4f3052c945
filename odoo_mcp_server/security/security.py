# -*- coding: utf-8 -*-
"""Security utilities for log masking and bearer token checks."""

import hmac
import logging
from typing import Any, Dict, Optional

_logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {
    "password",
    "passwd",
    "api_key",
    "secret",
    "token",
    "authorization",
}


def mask_sensitive(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive values in a dictionary before it is logged.

    Args:
        config_dict: Configuration or credentials dictionary

    Returns:
        Dictionary with sensitive values masked
    """
    masked = {}
    for key, value in config_dict.items():
        if isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        elif any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            masked[key] = "***MASKED***" if value else None
        else:
            masked[key] = value

    return masked


def check_bearer_token(authorization: Optional[str], expected: Optional[str]) -> bool:
    """Check an ``Authorization: Bearer`` header against the configured token.

    The result is advisory: callers log a mismatch and carry on.

    Args:
        authorization: Raw Authorization header value
        expected: Configured token; None disables the check

    Returns:
        bool: True when no token is configured or the header matches
    """
    if not expected:
        return True

    if not authorization or not authorization.startswith("Bearer "):
        _logger.warning("MCP: Request without bearer token (pass-through)")
        return False

    token = authorization[len("Bearer "):].strip()
    if not hmac.compare_digest(token.encode(), expected.encode()):
        _logger.warning("MCP: Bearer token mismatch (pass-through)")
        return False

    return True
