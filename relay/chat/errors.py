"""Maps upstream failure signals to user-facing messages."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple


class ErrorCategory(str, Enum):
    budget = "budget"
    max_turns = "max_turns"
    authentication = "authentication"
    rate_limit = "rate_limit"
    timeout = "timeout"
    network = "network"
    http_rate_limit = "http_rate_limit"
    unavailable = "unavailable"
    unknown = "unknown"


@dataclass(frozen=True)
class UpstreamFailure:
    """Any of an HTTP status, a terminal-result subtype or free text."""
    status: Optional[int] = None
    subtype: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "UpstreamFailure":
        name = exc.__class__.__name__
        text = str(exc)
        return cls(detail=f"{name}: {text}" if text else name)

    def haystack(self) -> str:
        return " ".join(part for part in (self.subtype, self.detail) if part).lower()


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    message: str


Rule = Tuple[ErrorCategory, Callable[[UpstreamFailure, str], bool], str]


def _contains(*needles: str) -> Callable[[UpstreamFailure, str], bool]:
    def _match(failure: UpstreamFailure, text: str) -> bool:
        return any(needle in text for needle in needles)

    return _match


def _status(predicate: Callable[[int], bool]) -> Callable[[UpstreamFailure, str], bool]:
    def _match(failure: UpstreamFailure, text: str) -> bool:
        return failure.status is not None and predicate(failure.status)

    return _match


# First match wins.
RULES: Sequence[Rule] = (
    (
        ErrorCategory.budget,
        _contains("budget"),
        "Budget limit reached for this question. Try a narrower question or start a new chat.",
    ),
    (
        ErrorCategory.max_turns,
        _contains("max_turns", "max turns", "maximum number of turns", "turn limit"),
        "The agent took too many steps to answer. Try breaking the question into smaller parts.",
    ),
    (
        ErrorCategory.authentication,
        _contains("authentication", "api key", "api_key", "apikey", "x-api-key", "unauthorized"),
        "Authentication error with the AI service. Check the API key configuration.",
    ),
    (
        ErrorCategory.rate_limit,
        _contains("rate limit", "rate_limit", "ratelimit", "too many requests"),
        "Too many requests. Please wait a moment and try again.",
    ),
    (
        ErrorCategory.timeout,
        _contains("timeout", "timed out"),
        "The request timed out. Please try a simpler question.",
    ),
    (
        ErrorCategory.network,
        _contains("fetch", "network", "connection", "connect", "dns", "name resolution", "unreachable"),
        "Unable to reach the AI service. Please check your connection and try again.",
    ),
    (
        ErrorCategory.http_rate_limit,
        _status(lambda code: code == 429),
        "Too many requests. Please wait a moment and try again.",
    ),
    (
        ErrorCategory.unavailable,
        _status(lambda code: 500 <= code <= 599),
        "The AI service is temporarily unavailable. Please try again.",
    ),
)


def _fallback_message(failure: UpstreamFailure) -> str:
    if failure.detail:
        return f"Something went wrong: {failure.detail}"
    if failure.subtype:
        return f"Something went wrong: {failure.subtype}"
    if failure.status is not None:
        return f"Request failed with status {failure.status}"
    return "Something went wrong. Please try again."


def classify_failure(failure: UpstreamFailure) -> ClassifiedError:
    text = failure.haystack()
    for category, matches, message in RULES:
        if matches(failure, text):
            return ClassifiedError(category=category, message=message)
    return ClassifiedError(category=ErrorCategory.unknown, message=_fallback_message(failure))


def user_message(failure: UpstreamFailure) -> str:
    return classify_failure(failure).message
