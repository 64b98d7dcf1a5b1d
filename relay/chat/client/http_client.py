"""Async HTTP client for the relay's chat and auth endpoints."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from relay.chat.client.consumer import ChatStreamConsumer, FinishedMessage
from relay.chat.contracts import ChatMessage, trim_history
from relay.config import runtime_config

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[ChatStreamConsumer, Dict[str, Any]], None]


class AuthenticationRequired(Exception):
    """The relay rejected the bearer token; the caller should re-authenticate."""


class RelayClient:
    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(None, connect=10.0))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def authenticate(self, password: str) -> Optional[str]:
        """Return a bearer token, or None when the password is rejected."""
        response = await self._client.post(f"{self.base_url}/api/auth", json={"password": password})
        try:
            data = response.json()
        except ValueError:
            logger.warning("Auth endpoint returned a non-JSON body (status=%s)", response.status_code)
            return None
        if isinstance(data, dict) and data.get("success") and data.get("token"):
            return str(data["token"])
        return None

    async def ask(
        self,
        prompt: str,
        history: Sequence[ChatMessage] = (),
        repo_url: Optional[str] = None,
        token: Optional[str] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> Optional[FinishedMessage]:
        payload: Dict[str, Any] = {
            "prompt": prompt,
            "history": [message.model_dump() for message in history],
        }
        if repo_url:
            payload["repoUrl"] = repo_url
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        consumer = ChatStreamConsumer(on_update=on_update)
        async with self._client.stream(
            "POST", f"{self.base_url}/api/chat", json=payload, headers=headers
        ) as response:
            if response.status_code == 401:
                raise AuthenticationRequired("relay rejected the bearer token")
            async for chunk in response.aiter_bytes():
                consumer.feed(chunk)
        return consumer.close()


class Conversation:
    """Client-held message list; only the trailing window is sent upstream."""

    def __init__(self, history_questions: Optional[int] = None) -> None:
        self.history_questions = (
            history_questions if history_questions is not None else runtime_config.get_history_questions()
        )
        self.messages: List[ChatMessage] = []

    def history_window(self) -> List[ChatMessage]:
        return trim_history(self.messages, self.history_questions)

    async def send(
        self,
        client: RelayClient,
        prompt: str,
        repo_url: Optional[str] = None,
        token: Optional[str] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> Optional[FinishedMessage]:
        history = self.history_window()
        finished = await client.ask(prompt, history=history, repo_url=repo_url, token=token, on_update=on_update)
        # Messages are appended only as user/assistant pairs.
        if finished is not None:
            self.messages.append(ChatMessage(role="user", content=prompt))
            self.messages.append(ChatMessage(role="assistant", content=finished.content))
        return finished

    def reset(self) -> None:
        self.messages.clear()
