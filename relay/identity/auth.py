"""Bearer-token check for the agent endpoint."""
from __future__ import annotations

import logging
from typing import Optional

from relay.common.identity import extract_bearer_token
from relay.config import runtime_config
from relay.identity.jwt_service import AuthContext, default_jwt_service

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Missing or invalid bearer token."""


def authenticate_bearer(authorization: Optional[str]) -> Optional[AuthContext]:
    """Validate the Authorization header when the password gate is enabled.

    Returns None when the gate is disabled; raises AuthError on rejection.
    """
    if not runtime_config.auth_enabled():
        return None
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthError("Authentication required")
    try:
        return default_jwt_service().decode_token(token)
    except ValueError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise AuthError("Invalid or expired token")
