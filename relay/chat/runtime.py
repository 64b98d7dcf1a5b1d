"""Agent runtime adapters.

The relay treats the agent runtime as an external collaborator: it submits a
prompt plus options and receives an ordered async sequence of raw events in
the runtime's own (unversioned) format. Adapters are resolved by name from
``AGENT_RUNTIME``; callers may swap the active one with ``set_agent_runtime``.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol, Sequence

from relay.chat.contracts import ChatMessage
from relay.config import runtime_config

logger = logging.getLogger(__name__)


@dataclass
class AgentOptions:
    repo_url: str
    allowed_tools: List[str] = field(default_factory=list)
    max_turns: Optional[int] = None
    max_budget_usd: Optional[float] = None
    history: List[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_config(cls, repo_url: Optional[str] = None, history: Sequence[ChatMessage] = ()) -> "AgentOptions":
        return cls(
            repo_url=repo_url or runtime_config.get_default_repo_url(),
            allowed_tools=runtime_config.get_agent_allowed_tools(),
            max_turns=runtime_config.get_agent_max_turns(),
            max_budget_usd=runtime_config.get_agent_max_budget_usd(),
            history=list(history),
        )


class AgentRuntime(Protocol):
    def invoke(self, prompt: str, options: AgentOptions) -> AsyncIterator[Any]:
        ...


def build_prompt(prompt: str, history: Sequence[ChatMessage]) -> str:
    """Prefix prior exchanges as a transcript so the agent can answer follow-ups."""
    if not history:
        return prompt
    lines = ["Previous conversation:"]
    for message in history:
        speaker = "User" if message.role == "user" else "Assistant"
        lines.append(f"{speaker}: {message.content}")
    lines.append("")
    lines.append(f"Current question: {prompt}")
    return "\n".join(lines)


class EchoRuntime:
    """Development stand-in that emits agent-SDK-shaped events without calling a model."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay

    async def invoke(self, prompt: str, options: AgentOptions) -> AsyncIterator[Dict[str, Any]]:
        tool_id = f"toolu_{uuid.uuid4().hex[:12]}"
        answer = f"You asked: {prompt.rsplit('Current question: ', 1)[-1]}"
        events: List[Dict[str, Any]] = [
            {"type": "system", "subtype": "init", "cwd": options.repo_url, "tools": options.allowed_tools},
            {
                "type": "assistant",
                "message": {
                    "content": [
                        {"type": "text", "text": "Let me look at the repository."},
                        {"type": "tool_use", "id": tool_id, "name": "Glob", "input": {"pattern": "**/*"}},
                    ]
                },
            },
            {
                "type": "user",
                "message": {"content": [{"type": "tool_result", "tool_use_id": tool_id, "content": "README.md"}]},
            },
            {"type": "assistant", "message": {"content": [{"type": "text", "text": answer}]}},
            {
                "type": "result",
                "subtype": "success",
                "is_error": False,
                "result": answer,
                "total_cost_usd": 0.0,
                "duration_ms": 0,
                "num_turns": 2,
                "usage": {"input_tokens": 0, "output_tokens": 0},
            },
        ]
        for event in events:
            await asyncio.sleep(self.delay)
            yield event


class ScriptedRuntime:
    """Replays a fixed list of raw events, optionally failing once they run out."""

    def __init__(self, events: Sequence[Any], error: Optional[BaseException] = None) -> None:
        self.events = list(events)
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def invoke(self, prompt: str, options: AgentOptions) -> AsyncIterator[Any]:
        self.calls.append({"prompt": prompt, "options": options})
        for event in self.events:
            await asyncio.sleep(0)
            yield event
        if self.error is not None:
            raise self.error


RuntimeFactory = Callable[[], AgentRuntime]

_RUNTIME_FACTORIES: Dict[str, RuntimeFactory] = {
    "echo": EchoRuntime,
}
_active_runtime: Optional[AgentRuntime] = None


def register_runtime(name: str, factory: RuntimeFactory) -> None:
    _RUNTIME_FACTORIES[name.lower()] = factory


def get_runtime(name: Optional[str] = None) -> AgentRuntime:
    if _active_runtime is not None and name is None:
        return _active_runtime
    runtime_name = (name or runtime_config.get_agent_runtime_name()).lower()
    factory = _RUNTIME_FACTORIES.get(runtime_name)
    if factory is None:
        raise LookupError(f"Agent runtime '{runtime_name}' is not registered")
    logger.debug("Resolved agent runtime %s", runtime_name)
    return factory()


def set_agent_runtime(runtime: Optional[AgentRuntime]) -> None:
    global _active_runtime
    _active_runtime = runtime
