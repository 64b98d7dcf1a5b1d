"""Reinterprets the agent runtime's raw event stream as wire events.

Raw events are untrusted: any field may be missing, and event or block types
this module does not know are dropped without error.

Turn boundaries are inferred, not signalled upstream. A ``turn`` event is
emitted when an assistant event directly follows a user event (a tool result
being fed back to the model). The first assistant step of an exchange is turn
0 and is not announced. Consecutive assistant events with no user event in
between are counted as one turn.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Callable, List, Mapping, Optional

from relay.chat.errors import UpstreamFailure, user_message
from relay.chat.wire import (
    ErrorEvent,
    ResultEvent,
    TextEvent,
    ToolUseEvent,
    TurnEvent,
    UsageEvent,
    UsageSnapshot,
    WireEvent,
    encode_event,
)

logger = logging.getLogger(__name__)

ASSISTANT = "assistant"
USER = "user"
RESULT = "result"

_CLASS_KINDS = {
    "AssistantMessage": ASSISTANT,
    "UserMessage": USER,
    "ResultMessage": RESULT,
    "SystemMessage": "system",
    "TextBlock": "text",
    "ToolUseBlock": "tool_use",
    "ToolResultBlock": "tool_result",
    "ThinkingBlock": "thinking",
}

# Tool input keys worth showing next to the tool name, most specific first.
DETAIL_KEYS = ("file_path", "path", "pattern", "command", "url", "query")


def _field(raw: Any, name: str, default: Any = None) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _kind(raw: Any) -> Optional[str]:
    kind = _field(raw, "type")
    if isinstance(kind, str):
        return kind
    return _CLASS_KINDS.get(type(raw).__name__)


def _content_blocks(raw: Any) -> List[Any]:
    message = _field(raw, "message")
    content = _field(message, "content") if message is not None else None
    if content is None:
        content = _field(raw, "content")
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    if isinstance(content, (list, tuple)):
        return list(content)
    return []


def _tool_detail(tool_input: Any) -> Optional[str]:
    if not isinstance(tool_input, Mapping):
        return None
    for key in DETAIL_KEYS:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _failure_detail(raw: Any) -> Optional[str]:
    result = _field(raw, "result")
    if isinstance(result, str) and result:
        return result
    errors = _field(raw, "errors")
    if isinstance(errors, (list, tuple)) and errors:
        return "; ".join(str(err) for err in errors)
    if isinstance(errors, str) and errors:
        return errors
    return None


class StreamTranslator:
    """Stateful translator for exactly one exchange."""

    def __init__(self, describe_failure: Callable[[UpstreamFailure], str] = user_message) -> None:
        self.describe_failure = describe_failure
        self.current_turn = 0
        self.last_kind: Optional[str] = None

    def translate_event(self, raw: Any) -> List[WireEvent]:
        kind = _kind(raw)
        try:
            if kind == ASSISTANT:
                return self._assistant(raw)
            if kind == RESULT:
                return self._result(raw)
            return []
        finally:
            self.last_kind = kind

    def _assistant(self, raw: Any) -> List[WireEvent]:
        events: List[WireEvent] = []
        if self.last_kind == USER:
            self.current_turn += 1
            events.append(TurnEvent(turn=self.current_turn))

        for block in _content_blocks(raw):
            block_kind = _kind(block)
            if block_kind == "text":
                text = _field(block, "text")
                if isinstance(text, str) and text:
                    events.append(TextEvent(content=text))
            elif block_kind == "tool_use":
                name = _field(block, "name")
                tool_id = _field(block, "id")
                events.append(
                    ToolUseEvent(
                        tool=name if isinstance(name, str) and name else "unknown",
                        id=str(tool_id) if tool_id is not None else "",
                        detail=_tool_detail(_field(block, "input")),
                    )
                )
        return events

    def _result(self, raw: Any) -> List[WireEvent]:
        events: List[WireEvent] = [UsageEvent(data=UsageSnapshot.from_result(raw))]
        subtype = _field(raw, "subtype")
        subtype = subtype if isinstance(subtype, str) else None
        is_error = bool(_field(raw, "is_error", False))

        if subtype in (None, "success") and not is_error:
            result = _field(raw, "result")
            events.append(ResultEvent(content=result if isinstance(result, str) else ""))
            return events

        failure = UpstreamFailure(subtype=subtype, detail=_failure_detail(raw))
        logger.warning("Agent run ended with failure subtype=%s", subtype)
        events.append(ErrorEvent(content=self.describe_failure(failure)))
        return events

    async def translate(self, raw_events: AsyncIterator[Any]) -> AsyncIterator[WireEvent]:
        try:
            async for raw in raw_events:
                for event in self.translate_event(raw):
                    yield event
        except Exception as exc:
            logger.exception("Agent event stream failed")
            yield ErrorEvent(content=self.describe_failure(UpstreamFailure.from_exception(exc)))

    async def ndjson_stream(self, raw_events: AsyncIterator[Any]) -> AsyncIterator[bytes]:
        async for event in self.translate(raw_events):
            yield encode_event(event)
