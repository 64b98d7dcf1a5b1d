"""Shared-password check."""
from __future__ import annotations

import secrets
from typing import Optional


def verify_password(candidate: str, expected: Optional[str]) -> bool:
    if not expected or not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
