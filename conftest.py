import sys
from pathlib import Path

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from relay.chat import runtime  # noqa: E402
from relay.chat.service import bridge  # noqa: E402
from relay.hardening.rate_limit import RateLimitService, set_rate_limiter  # noqa: E402

RELAY_ENV_VARS = (
    "RELAY_UPSTREAM_URL",
    "RELAY_UPSTREAM_TIMEOUT_SECONDS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "RATE_LIMIT_MAX_REQUESTS",
    "HISTORY_QUESTIONS",
    "AGENT_MAX_TURNS",
    "AGENT_MAX_BUDGET_USD",
    "AGENT_ALLOWED_TOOLS",
    "AGENT_RUNTIME",
    "DEFAULT_REPO_URL",
    "AUTH_PASSWORD",
    "AUTH_JWT_SIGNING",
    "AUTH_TOKEN_TTL_SECONDS",
)


@pytest.fixture(autouse=True)
def isolated_relay_state(monkeypatch):
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    set_rate_limiter(RateLimitService())
    runtime.set_agent_runtime(None)
    bridge.set_upstream_client(None)
    yield
    runtime.set_agent_runtime(None)
    bridge.set_upstream_client(None)
