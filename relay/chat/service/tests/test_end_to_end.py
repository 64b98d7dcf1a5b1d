"""Browser-side client -> bridge -> agent endpoint, all in-process."""
import asyncio

import httpx
import pytest

from relay.chat import runtime
from relay.chat.client import AuthenticationRequired, Conversation, RelayClient
from relay.chat.runtime import ScriptedRuntime
from relay.chat.service import bridge
from relay.chat.service.server import create_app

BASE_URL = "http://relay.test"


@pytest.fixture
def relay_app(monkeypatch):
    monkeypatch.setenv("RELAY_UPSTREAM_URL", f"{BASE_URL}/agent")
    app = create_app()
    bridge.set_upstream_client(httpx.AsyncClient(transport=httpx.ASGITransport(app=app)))
    return app


def _run(app, scenario):
    async def _main():
        relay = RelayClient(BASE_URL, client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app)))
        try:
            return await scenario(relay)
        finally:
            await relay.aclose()

    return asyncio.run(_main())


def test_question_is_answered_through_the_bridge(relay_app):
    scripted = ScriptedRuntime(
        [
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "It is"}]}},
            {"type": "assistant", "message": {"content": [{"type": "text", "text": " a relay."}]}},
            {"type": "result", "subtype": "success", "result": "It is a relay.", "total_cost_usd": 0.003, "num_turns": 1},
        ]
    )
    runtime.set_agent_runtime(scripted)

    message = _run(relay_app, lambda relay: relay.ask("What does this repo do?"))

    assert message.content == "It is a relay."
    assert message.usage is not None
    assert message.usage.num_tools == 0
    assert message.usage.total_cost_usd == 0.003
    assert scripted.calls[0]["prompt"] == "What does this repo do?"


def test_follow_up_carries_history(relay_app):
    async def scenario(relay):
        conversation = Conversation()
        await conversation.send(relay, "What does this repo do?")
        await conversation.send(relay, "Which files?")
        return conversation

    conversation = _run(relay_app, scenario)

    assert [message.role for message in conversation.messages] == ["user", "assistant", "user", "assistant"]
    assert conversation.messages[1].content.endswith("You asked: What does this repo do?")
    assert conversation.messages[3].content.endswith("You asked: Which files?")


def test_password_gate_round_trip(relay_app, monkeypatch):
    monkeypatch.setenv("AUTH_PASSWORD", "hunter2")
    monkeypatch.setenv("AUTH_JWT_SIGNING", "signing-secret")

    async def scenario(relay):
        assert await relay.authenticate("wrong") is None
        token = await relay.authenticate("hunter2")
        assert token
        return await relay.ask("hello", token=token)

    message = _run(relay_app, scenario)
    assert message.content.endswith("You asked: hello")

    with pytest.raises(AuthenticationRequired):
        _run(relay_app, lambda relay: relay.ask("hello"))


def test_rate_limit_surfaces_as_inline_error(relay_app, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "1")

    async def scenario(relay):
        first = await relay.ask("one")
        second = await relay.ask("two")
        return first, second

    first, second = _run(relay_app, scenario)
    assert first.content.endswith("You asked: one")
    assert second.content.startswith("Error: Rate limit exceeded. Please wait")
    assert second.usage is None
