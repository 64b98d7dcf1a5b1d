from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from relay.chat.contracts import AuthRequest


class AuthResult(BaseModel):
    success: bool
    token: Optional[str] = None
    error: Optional[str] = None


class AuthRequestError(ValueError):
    """Auth body is not JSON or carries no usable password."""


async def read_auth_request(request: Request) -> AuthRequest:
    try:
        body = await request.json()
    except ValueError:
        raise AuthRequestError("Invalid JSON body")
    password = body.get("password") if isinstance(body, dict) else None
    if not isinstance(password, str) or not password:
        raise AuthRequestError("Missing password")
    return AuthRequest(password=password)


def auth_failure(message: str, status_code: int) -> JSONResponse:
    result = AuthResult(success=False, error=message)
    return JSONResponse(content=result.model_dump(exclude_none=True), status_code=status_code)
