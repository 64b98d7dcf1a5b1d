"""Agent endpoint: runs one exchange and streams translated wire events."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import Response, StreamingResponse

from relay.chat.contracts import ChatRequest, trim_history
from relay.chat.errors import UpstreamFailure, user_message
from relay.chat.runtime import AgentOptions, build_prompt, get_runtime
from relay.chat.translator import StreamTranslator
from relay.chat.wire import NDJSON_MEDIA_TYPE, error_line, streaming_headers
from relay.config import runtime_config
from relay.identity.auth import AuthError, authenticate_bearer

router = APIRouter(prefix="/agent", tags=["agent"])
logger = logging.getLogger(__name__)


@router.post("")
async def run_agent(
    payload: ChatRequest,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
):
    try:
        authenticate_bearer(authorization)
    except AuthError as exc:
        return Response(content=error_line(str(exc)), status_code=401, media_type=NDJSON_MEDIA_TYPE)

    history = trim_history(payload.history or [], runtime_config.get_history_questions())
    options = AgentOptions.from_config(repo_url=payload.repoUrl, history=history)
    logger.info(
        "Starting agent run: prompt_length=%d repo=%s history=%d tools=%s",
        len(payload.prompt),
        options.repo_url,
        len(history),
        ",".join(options.allowed_tools),
    )

    try:
        runtime = get_runtime()
    except LookupError:
        logger.exception("No agent runtime available")
        failure = UpstreamFailure(status=503)
        return Response(content=error_line(user_message(failure)), status_code=503, media_type=NDJSON_MEDIA_TYPE)

    raw_events = runtime.invoke(build_prompt(payload.prompt, history), options)
    translator = StreamTranslator()
    return StreamingResponse(
        translator.ndjson_stream(raw_events),
        media_type=NDJSON_MEDIA_TYPE,
        headers=streaming_headers(),
    )
