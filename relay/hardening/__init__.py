"""Request hardening for the relay."""
from relay.hardening.rate_limit import (
    InMemoryRateLimitStorage,
    RateLimitDecision,
    RateLimitService,
    get_rate_limiter,
    set_rate_limiter,
)

__all__ = [
    "InMemoryRateLimitStorage",
    "RateLimitDecision",
    "RateLimitService",
    "get_rate_limiter",
    "set_rate_limiter",
]
