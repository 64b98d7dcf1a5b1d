"""Client-facing wire protocol: one JSON object per line."""
from __future__ import annotations

import json
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NDJSON_MEDIA_TYPE = "application/x-ndjson"


class ModelUsage(BaseModel):
    model_config = ConfigDict(extra="allow")

    inputTokens: Optional[int] = None
    outputTokens: Optional[int] = None
    cacheReadInputTokens: Optional[int] = None
    cacheCreationInputTokens: Optional[int] = None
    costUSD: Optional[float] = None


class UsageSnapshot(BaseModel):
    """Cost, timing and token data for one finished exchange.

    ``num_tools`` and ``total_duration_ms`` are filled in client-side.
    """
    model_config = ConfigDict(extra="allow")

    total_cost_usd: Optional[float] = None
    duration_ms: Optional[int] = None
    duration_api_ms: Optional[int] = None
    num_turns: Optional[int] = None
    usage: Optional[Dict[str, Any]] = None
    modelUsage: Optional[Dict[str, ModelUsage]] = None
    num_tools: Optional[int] = None
    total_duration_ms: Optional[int] = None

    @classmethod
    def from_result(cls, raw: Any) -> "UsageSnapshot":
        """Pick usage fields off an untrusted terminal result, dropping anything malformed."""
        snapshot = cls()
        snapshot.total_cost_usd = _number(_field(raw, "total_cost_usd"), float)
        snapshot.duration_ms = _number(_field(raw, "duration_ms"), int)
        snapshot.duration_api_ms = _number(_field(raw, "duration_api_ms"), int)
        snapshot.num_turns = _number(_field(raw, "num_turns"), int)

        usage = _field(raw, "usage")
        if isinstance(usage, Mapping):
            snapshot.usage = dict(usage)

        model_usage = _field(raw, "modelUsage", _field(raw, "model_usage"))
        if isinstance(model_usage, Mapping):
            parsed: Dict[str, ModelUsage] = {}
            for model_name, data in model_usage.items():
                if not isinstance(data, Mapping):
                    continue
                try:
                    parsed[str(model_name)] = ModelUsage.model_validate(dict(data))
                except ValueError:
                    continue
            snapshot.modelUsage = parsed or None
        return snapshot


def _field(raw: Any, name: str, default: Any = None) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _number(value: Any, kind: type) -> Any:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return kind(value)
    except (TypeError, ValueError, OverflowError):
        return None


class TextEvent(BaseModel):
    type: Literal["text"] = "text"
    content: str


class ToolUseEvent(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    tool: str
    id: str
    detail: Optional[str] = None


class TurnEvent(BaseModel):
    type: Literal["turn"] = "turn"
    turn: int


class UsageEvent(BaseModel):
    type: Literal["usage"] = "usage"
    data: UsageSnapshot = Field(default_factory=UsageSnapshot)


class ResultEvent(BaseModel):
    type: Literal["result"] = "result"
    content: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    content: str


WireEvent = Union[TextEvent, ToolUseEvent, TurnEvent, UsageEvent, ResultEvent, ErrorEvent]


def encode_event(event: WireEvent) -> bytes:
    return (event.model_dump_json(exclude_none=True) + "\n").encode("utf-8")


def error_line(message: str) -> bytes:
    return encode_event(ErrorEvent(content=message))


def decode_event(line: str) -> Optional[Dict[str, Any]]:
    """Parse one wire line. Anything that is not a JSON object with a string ``type`` yields None."""
    try:
        payload = json.loads(line)
    except ValueError:
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        return None
    return payload


def streaming_headers() -> Dict[str, str]:
    """Headers that keep proxies from buffering or caching the line stream."""
    return {
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }
