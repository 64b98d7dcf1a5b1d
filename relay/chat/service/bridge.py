"""HTTP bridge: rate-limits, forwards to the agent endpoint and pipes its stream back.

Browser -> /api/chat (this module) -> agent endpoint -> agent runtime
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from relay.chat.contracts import ChatRequest
from relay.chat.errors import UpstreamFailure, user_message
from relay.chat.wire import NDJSON_MEDIA_TYPE, error_line, streaming_headers
from relay.common.identity import resolve_client_identity
from relay.config import runtime_config
from relay.hardening.rate_limit import RateLimitService, get_rate_limiter
from relay.identity.auth_schemas import AuthRequestError, auth_failure, read_auth_request

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)

_upstream_client: Optional[httpx.AsyncClient] = None


def _build_upstream_client() -> httpx.AsyncClient:
    # Reads are never timed out here; the agent runtime enforces its own ceilings.
    timeout = httpx.Timeout(None, connect=runtime_config.get_upstream_connect_timeout())
    return httpx.AsyncClient(timeout=timeout)


def get_upstream_client() -> httpx.AsyncClient:
    global _upstream_client
    if _upstream_client is None:
        _upstream_client = _build_upstream_client()
    return _upstream_client


def set_upstream_client(client: Optional[httpx.AsyncClient]) -> None:
    global _upstream_client
    _upstream_client = client


async def close_upstream_client() -> None:
    global _upstream_client
    if _upstream_client is not None:
        await _upstream_client.aclose()
        _upstream_client = None


def _ndjson_response(body: bytes, status_code: int = 200) -> Response:
    return Response(content=body, status_code=status_code, media_type=NDJSON_MEDIA_TYPE)


async def _pipe(upstream: httpx.Response) -> AsyncIterator[bytes]:
    at_line_start = True
    try:
        async for chunk in upstream.aiter_bytes():
            if chunk:
                at_line_start = chunk.endswith(b"\n")
            yield chunk
    except httpx.HTTPError as exc:
        logger.exception("Upstream stream failed after the response started")
        line = error_line(user_message(UpstreamFailure.from_exception(exc)))
        # Terminate a cut-off line so the error event parses on its own.
        yield line if at_line_start else b"\n" + line
    finally:
        # Runs on normal completion and when the client goes away mid-stream.
        await upstream.aclose()


@router.post("/chat")
async def chat(
    payload: ChatRequest,
    request: Request,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    limiter: RateLimitService = Depends(get_rate_limiter),
    client: httpx.AsyncClient = Depends(get_upstream_client),
):
    identity = resolve_client_identity(request.headers)
    decision = limiter.check(identity)
    if not decision.allowed:
        seconds = decision.retry_after_seconds
        return _ndjson_response(
            error_line(f"Rate limit exceeded. Please wait {seconds} seconds before trying again.")
        )

    upstream_url = runtime_config.get_upstream_url()
    body = payload.forward_payload(runtime_config.get_history_questions())
    headers: Dict[str, str] = {"Content-Type": "application/json"}
    if authorization:
        headers["Authorization"] = authorization

    logger.info(
        "Forwarding chat request: upstream=%s prompt_length=%d repo=%s history=%d has_auth=%s",
        upstream_url,
        len(payload.prompt),
        payload.repoUrl or "(default)",
        len(body.get("history", [])),
        bool(authorization),
    )

    try:
        upstream_request = client.build_request("POST", upstream_url, json=body, headers=headers)
        upstream = await client.send(upstream_request, stream=True)
    except httpx.HTTPError as exc:
        logger.exception("Upstream call failed")
        return _ndjson_response(error_line(user_message(UpstreamFailure.from_exception(exc))), status_code=502)

    if upstream.is_success:
        return StreamingResponse(
            _pipe(upstream),
            status_code=upstream.status_code,
            media_type=NDJSON_MEDIA_TYPE,
            headers=streaming_headers(),
        )

    logger.warning("Upstream returned status %s", upstream.status_code)
    try:
        error_body = await upstream.aread()
    except httpx.HTTPError as exc:
        logger.warning("Could not read upstream error body: %s", exc)
        error_body = b""
    finally:
        await upstream.aclose()

    if error_body:
        # Upstream already speaks the wire protocol; pass it through untouched.
        return _ndjson_response(error_body, status_code=upstream.status_code)
    failure = UpstreamFailure(status=upstream.status_code)
    return _ndjson_response(error_line(user_message(failure)), status_code=upstream.status_code)


@router.post("/auth")
async def auth(
    request: Request,
    client: httpx.AsyncClient = Depends(get_upstream_client),
):
    try:
        payload = await read_auth_request(request)
    except AuthRequestError as exc:
        return auth_failure(str(exc), status_code=400)

    auth_url = runtime_config.get_upstream_auth_url()
    try:
        response = await client.post(auth_url, json={"password": payload.password})
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Auth proxy call failed")
        return auth_failure(str(exc) or "Authentication failed", status_code=500)
    return JSONResponse(content=data, status_code=response.status_code)
