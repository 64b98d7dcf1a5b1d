"""Client identity resolution for per-client request accounting."""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

UNKNOWN_IDENTITY = "unknown"

# Checked in order; the first header carrying a value wins.
IDENTITY_HEADERS: Sequence[str] = (
    "cf-connecting-ip",
    "x-real-ip",
    "x-forwarded-for",
    "x-client-ip",
)


def _lookup(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    if value is None:
        return None
    return value.strip() or None


def resolve_client_identity(headers: Mapping[str, str]) -> str:
    """Resolve the rate-limit key from proxy-supplied address headers.

    Clients without any of the headers share the ``"unknown"`` bucket.
    """
    for name in IDENTITY_HEADERS:
        value = _lookup(headers, name)
        if not value:
            continue
        if name == "x-forwarded-for":
            # Left-most hop is the originating client.
            first = value.split(",")[0].strip()
            if first:
                return first
            continue
        return value
    return UNKNOWN_IDENTITY


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
