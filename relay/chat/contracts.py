"""Request contracts for the chat relay."""
from __future__ import annotations

from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    repoUrl: Optional[str] = None
    history: Optional[List[ChatMessage]] = None

    def forward_payload(self, history_questions: int) -> dict:
        """Body sent upstream: optional fields only when they carry something."""
        payload: dict = {"prompt": self.prompt}
        if self.repoUrl:
            payload["repoUrl"] = self.repoUrl
        history = trim_history(self.history or [], history_questions)
        if history:
            payload["history"] = [message.model_dump() for message in history]
        return payload


class AuthRequest(BaseModel):
    password: str = Field(..., min_length=1)


def trim_history(history: Sequence[ChatMessage], questions: int) -> List[ChatMessage]:
    """Keep the most recent ``questions`` question/answer pairs (2 messages each)."""
    if questions <= 0:
        return []
    return list(history[-(questions * 2):])
