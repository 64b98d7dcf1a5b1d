from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from relay.config import runtime_config
from relay.identity.auth_schemas import AuthRequestError, AuthResult, auth_failure, read_auth_request
from relay.identity.jwt_service import default_jwt_service
from relay.identity.passwords import verify_password

router = APIRouter(prefix="/agent", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/auth", response_model=AuthResult, response_model_exclude_none=True)
async def login(request: Request):
    try:
        payload = await read_auth_request(request)
    except AuthRequestError as exc:
        return auth_failure(str(exc), status_code=400)

    expected = runtime_config.get_auth_password()
    if expected is None:
        return auth_failure("Authentication is not configured", status_code=503)

    if not verify_password(payload.password, expected):
        logger.info("Password check failed")
        return auth_failure("Incorrect password. Please try again.", status_code=401)

    token = default_jwt_service().issue_token()
    return AuthResult(success=True, token=token)
