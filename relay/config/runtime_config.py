"""Runtime configuration helpers for the relay."""
from __future__ import annotations

import os
from typing import List, Optional

DEFAULT_UPSTREAM_URL = "http://127.0.0.1:8000/agent"
DEFAULT_REPO_URL = "https://github.com/amh22/hello-agent-web"
DEFAULT_ALLOWED_TOOLS = ("Read", "Glob", "Grep")


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")


def _get_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}")


def get_upstream_url() -> str:
    return (_get_env("RELAY_UPSTREAM_URL") or DEFAULT_UPSTREAM_URL).rstrip("/")


def get_upstream_auth_url() -> str:
    return get_upstream_url() + "/auth"


def get_upstream_connect_timeout() -> Optional[float]:
    return _get_float("RELAY_UPSTREAM_TIMEOUT_SECONDS", None)


def get_rate_limit_window() -> float:
    window = _get_float("RATE_LIMIT_WINDOW_SECONDS", 60.0)
    if window is None or window <= 0:
        raise ValueError("RATE_LIMIT_WINDOW_SECONDS must be positive")
    return window


def get_rate_limit_max_requests() -> int:
    cap = _get_int("RATE_LIMIT_MAX_REQUESTS", 5)
    if cap < 1:
        raise ValueError("RATE_LIMIT_MAX_REQUESTS must be at least 1")
    return cap


def get_history_questions() -> int:
    return max(0, _get_int("HISTORY_QUESTIONS", 8))


def get_agent_max_turns() -> int:
    return _get_int("AGENT_MAX_TURNS", 20)


def get_agent_max_budget_usd() -> float:
    return _get_float("AGENT_MAX_BUDGET_USD", 0.50) or 0.0


def get_agent_allowed_tools() -> List[str]:
    raw = _get_env("AGENT_ALLOWED_TOOLS")
    if raw is None:
        return list(DEFAULT_ALLOWED_TOOLS)
    return [tool.strip() for tool in raw.split(",") if tool.strip()]


def get_agent_runtime_name() -> str:
    return (_get_env("AGENT_RUNTIME") or "echo").lower()


def get_default_repo_url() -> str:
    return _get_env("DEFAULT_REPO_URL") or DEFAULT_REPO_URL


def get_auth_password() -> Optional[str]:
    return _get_env("AUTH_PASSWORD")


def get_auth_signing_secret() -> Optional[str]:
    return _get_env("AUTH_JWT_SIGNING")


def get_auth_token_ttl() -> int:
    return _get_int("AUTH_TOKEN_TTL_SECONDS", 7 * 24 * 3600)


def auth_enabled() -> bool:
    return get_auth_password() is not None


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or "INFO").upper()
