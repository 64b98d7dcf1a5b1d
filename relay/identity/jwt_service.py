"""Minimal HS256 JWT issue/verify for the shared-password gate."""
from __future__ import annotations

import base64
import hmac
import json
import time
import uuid
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, Callable, Dict, Optional

from relay.config import runtime_config


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


@dataclass
class AuthContext:
    subject: str
    issued_at: int
    expires_at: Optional[int] = None
    claims: Dict[str, Any] = field(default_factory=dict)


class JwtService:
    def __init__(self, secret: str, ttl_seconds: Optional[int] = None, clock: Callable[[], float] = time.time) -> None:
        if not secret:
            raise ValueError("signing secret is required")
        self._secret = secret.encode("utf-8")
        self._ttl = ttl_seconds
        self._clock = clock

    def _sign(self, signing_input: str) -> bytes:
        return hmac.new(self._secret, signing_input.encode("utf-8"), sha256).digest()

    def issue_token(self, claims: Optional[Dict[str, object]] = None) -> str:
        header = {"alg": "HS256", "typ": "JWT"}
        now = int(self._clock())
        payload: Dict[str, object] = {"sub": f"session-{uuid.uuid4().hex[:12]}", "iat": now}
        if self._ttl:
            payload["exp"] = now + self._ttl
        payload.update(claims or {})
        signing_input = ".".join(
            [
                _b64url(json.dumps(header, separators=(",", ":"), sort_keys=True).encode()),
                _b64url(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode()),
            ]
        )
        return signing_input + "." + _b64url(self._sign(signing_input))

    def decode_token(self, token: str) -> AuthContext:
        try:
            header_b64, payload_b64, sig_b64 = token.split(".")
        except ValueError:
            raise ValueError("invalid token")
        signing_input = header_b64 + "." + payload_b64
        try:
            signature = _b64url_decode(sig_b64)
            payload = json.loads(_b64url_decode(payload_b64))
        except (ValueError, TypeError):
            raise ValueError("invalid token")
        if not hmac.compare_digest(self._sign(signing_input), signature):
            raise ValueError("invalid signature")
        if not isinstance(payload, dict):
            raise ValueError("invalid token")
        expires_at = payload.get("exp")
        if isinstance(expires_at, (int, float)) and expires_at <= self._clock():
            raise ValueError("token expired")
        return AuthContext(
            subject=str(payload.get("sub", "")),
            issued_at=int(payload.get("iat", 0)),
            expires_at=int(expires_at) if isinstance(expires_at, (int, float)) else None,
            claims=payload,
        )


def default_jwt_service() -> JwtService:
    secret = runtime_config.get_auth_signing_secret()
    if not secret:
        raise RuntimeError("AUTH_JWT_SIGNING must be set when AUTH_PASSWORD is configured")
    return JwtService(secret, ttl_seconds=runtime_config.get_auth_token_ttl())
