import json

from relay.chat.wire import (
    ErrorEvent,
    TextEvent,
    ToolUseEvent,
    UsageEvent,
    UsageSnapshot,
    decode_event,
    encode_event,
    error_line,
    streaming_headers,
)


def test_encode_event_is_one_json_object_per_line():
    line = encode_event(TextEvent(content="hello\nworld"))
    assert line.endswith(b"\n")
    assert line.count(b"\n") == 1
    assert json.loads(line) == {"type": "text", "content": "hello\nworld"}


def test_optional_fields_are_omitted():
    line = encode_event(ToolUseEvent(tool="Read", id="toolu_1"))
    assert json.loads(line) == {"type": "tool_use", "tool": "Read", "id": "toolu_1"}


def test_error_line():
    assert json.loads(error_line("nope")) == {"type": "error", "content": "nope"}
    assert encode_event(ErrorEvent(content="x")).startswith(b'{"type":"error"')


def test_usage_snapshot_from_result_picks_known_fields():
    raw = {
        "type": "result",
        "total_cost_usd": 0.0123,
        "duration_ms": 4200,
        "duration_api_ms": 3900,
        "num_turns": 3,
        "usage": {"input_tokens": 10, "output_tokens": 20},
        "modelUsage": {
            "claude-sonnet": {
                "inputTokens": 10,
                "outputTokens": 20,
                "cacheReadInputTokens": 5,
                "cacheCreationInputTokens": 1,
                "costUSD": 0.0123,
            }
        },
        "session_id": "ignored",
    }
    snapshot = UsageSnapshot.from_result(raw)
    assert snapshot.total_cost_usd == 0.0123
    assert snapshot.duration_ms == 4200
    assert snapshot.num_turns == 3
    assert snapshot.usage == {"input_tokens": 10, "output_tokens": 20}
    assert snapshot.modelUsage["claude-sonnet"].cacheReadInputTokens == 5

    payload = json.loads(encode_event(UsageEvent(data=snapshot)))
    assert payload["type"] == "usage"
    assert payload["data"]["modelUsage"]["claude-sonnet"]["costUSD"] == 0.0123
    assert "num_tools" not in payload["data"]


def test_usage_snapshot_tolerates_malformed_fields():
    raw = {
        "total_cost_usd": "not-a-number",
        "duration_ms": None,
        "num_turns": True,
        "usage": ["wrong"],
        "modelUsage": {"m1": "wrong", "m2": {"inputTokens": "many"}},
    }
    snapshot = UsageSnapshot.from_result(raw)
    assert snapshot.total_cost_usd is None
    assert snapshot.duration_ms is None
    assert snapshot.num_turns is None
    assert snapshot.usage is None
    assert snapshot.modelUsage is None


def test_usage_snapshot_from_object():
    class ResultMessage:
        total_cost_usd = 0.5
        duration_ms = 10
        num_turns = 1
        usage = None
        model_usage = None

    snapshot = UsageSnapshot.from_result(ResultMessage())
    assert snapshot.total_cost_usd == 0.5
    assert snapshot.num_turns == 1


def test_decode_event_rejects_non_events():
    assert decode_event('{"type":"text","content":"a"}') == {"type": "text", "content": "a"}
    assert decode_event("{broken") is None
    assert decode_event("[1, 2]") is None
    assert decode_event('{"content": "no type"}') is None
    assert decode_event('"just a string"') is None


def test_streaming_headers_disable_buffering():
    headers = streaming_headers()
    assert headers["X-Accel-Buffering"] == "no"
    assert "no-cache" in headers["Cache-Control"]
