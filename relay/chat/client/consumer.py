"""Incremental decoder from the relay's line stream to UI state."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from relay.chat.client.splitter import LineSplitter
from relay.chat.wire import UsageSnapshot, decode_event

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = "\n\n"


@dataclass
class ToolActivity:
    tool: str
    id: Optional[str] = None
    detail: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class FinishedMessage:
    content: str
    usage: Optional[UsageSnapshot] = None
    role: str = "assistant"


class ChatStreamConsumer:
    """Folds wire events for one exchange into running state.

    ``tool_count`` is counted locally and is the canonical tool-invocation
    count; upstream never reports one. Lines that are not valid events are
    skipped.
    """

    def __init__(
        self,
        on_update: Optional[Callable[["ChatStreamConsumer", Dict[str, Any]], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.on_update = on_update
        self._clock = clock
        self._started_at = clock()
        self._splitter = LineSplitter()
        self._saw_text = False
        self._turn_since_text = False
        self.content = ""
        self.tool_history: List[ToolActivity] = []
        self.tool_count = 0
        self.turn = 0
        self.usage: Optional[UsageSnapshot] = None
        self.errors: List[str] = []
        self.closed = False

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Consume one network read; returns the events applied from it."""
        return self._apply_lines(self._splitter.feed(chunk))

    def _apply_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        applied = []
        for line in lines:
            event = decode_event(line)
            if event is None:
                logger.debug("Skipping unparseable stream line (%d bytes)", len(line))
                continue
            if self.apply(event):
                applied.append(event)
        return applied

    def apply(self, event: Dict[str, Any]) -> bool:
        kind = event.get("type")
        if kind == "text":
            self._on_text(event.get("content"))
        elif kind == "tool_use":
            self.tool_count += 1
            self.tool_history.append(
                ToolActivity(tool=str(event.get("tool") or "unknown"), id=event.get("id"), detail=event.get("detail"))
            )
        elif kind == "turn":
            turn = event.get("turn")
            if isinstance(turn, int) and not isinstance(turn, bool):
                self.turn = turn
                self._turn_since_text = True
        elif kind == "usage":
            data = event.get("data")
            if isinstance(data, dict):
                try:
                    self.usage = UsageSnapshot.model_validate(data)
                except ValueError:
                    logger.debug("Ignoring malformed usage payload")
        elif kind == "result":
            content = event.get("content")
            if not self._saw_text and isinstance(content, str) and content:
                self.content = content
        elif kind == "error":
            message = str(event.get("content") or "Unknown error")
            self.errors.append(message)
            self.content += (PARAGRAPH_BREAK if self.content else "") + f"Error: {message}"
        else:
            return False

        if self.on_update is not None:
            self.on_update(self, event)
        return True

    def _on_text(self, content: Any) -> None:
        if not isinstance(content, str):
            return
        # New turn after earlier text: start a new paragraph.
        if self.content and self._turn_since_text and not self.content.endswith("\n"):
            self.content += PARAGRAPH_BREAK
        self.content += content
        self._saw_text = True
        self._turn_since_text = False

    @property
    def elapsed_ms(self) -> int:
        return int((self._clock() - self._started_at) * 1000)

    def close(self) -> Optional[FinishedMessage]:
        """Finish the exchange. Returns None when nothing was accumulated."""
        if not self.closed:
            self._apply_lines(self._splitter.flush())
            self.closed = True
        if not self.content:
            return None
        usage = None
        if self.usage is not None:
            usage = self.usage.model_copy(
                update={"num_tools": self.tool_count, "total_duration_ms": self.elapsed_ms}
            )
        return FinishedMessage(content=self.content, usage=usage)
