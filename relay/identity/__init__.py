"""Password gate and bearer tokens for the agent endpoint."""

from relay.identity.jwt_service import AuthContext, JwtService, default_jwt_service  # noqa: F401
