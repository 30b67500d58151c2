"""Fixed-window rate limit policies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    """At most ``max_requests`` per identifier in each ``window_seconds`` window."""
    name: str
    max_requests: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Result of a rate limit check or increment."""
    allowed: bool
    current: int
    limit: int
    retry_after: int


DEFAULT_POLICY = "default"

RATE_LIMITS: Mapping[str, RateLimitPolicy] = {
    "login": RateLimitPolicy("login", 10, 60),
    "create_note": RateLimitPolicy("create_note", 60, 60),
    "read": RateLimitPolicy("read", 200, 60),
    "presign": RateLimitPolicy("presign", 30, 60),
    DEFAULT_POLICY: RateLimitPolicy(DEFAULT_POLICY, 100, 60),
}


def get_policy(name: str) -> RateLimitPolicy:
    """Look up a policy by name; unknown names fall back to ``default``."""
    return RATE_LIMITS.get(name, RATE_LIMITS[DEFAULT_POLICY])
