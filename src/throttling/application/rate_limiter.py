"""
Fixed-window rate limiter over the key-value store.

Each (policy, identifier) pair gets one counter item per window, bumped with
the store's atomic increment. No state is kept in process, so any number of
workers share the same limits. A store failure never blocks a request: the
limiter logs a warning and allows it.
"""
from __future__ import annotations

import math
import time
from typing import Optional

from shared.exceptions import RateLimitExceededError
from shared.infrastructure.kvstore import IKeyValueStore
from shared.infrastructure.observability import get_logger

from throttling.domain.policy import RateLimitPolicy, RateLimitResult, get_policy
from throttling.infrastructure.keys import build_rate_limit_pk, build_window_sk, window_expires_at

logger = get_logger(__name__)


def window_start(now: float, window_seconds: int) -> int:
    """Start (epoch seconds) of the fixed window containing ``now``."""
    return int(math.floor(now / window_seconds) * window_seconds)


def _retry_after(now: float, start: int, rule: RateLimitPolicy) -> int:
    return max(1, int(math.ceil(start + rule.window_seconds - now)))


def _fail_open(rule: RateLimitPolicy, identifier: str, error: Exception) -> RateLimitResult:
    logger.warning(
        "Rate limit store unavailable, allowing request",
        policy=rule.name,
        identifier=identifier,
        error=str(error),
        error_type=error.__class__.__name__,
    )
    return RateLimitResult(allowed=True, current=0, limit=rule.max_requests, retry_after=rule.window_seconds)


async def increment_rate_limit(
    store: IKeyValueStore,
    identifier: str,
    policy: str,
    now: Optional[float] = None,
) -> RateLimitResult:
    """Count one request against the current window and report whether it is allowed."""
    rule = get_policy(policy)
    now = time.time() if now is None else now
    start = window_start(now, rule.window_seconds)

    try:
        item = await store.update_item(
            build_rate_limit_pk(rule.name, identifier),
            build_window_sk(start),
            increment={"count": 1},
            expires_at=window_expires_at(start, rule.window_seconds),
        )
        current = int(item["count"])
    except Exception as e:
        return _fail_open(rule, identifier, e)

    return RateLimitResult(
        allowed=current <= rule.max_requests,
        current=current,
        limit=rule.max_requests,
        retry_after=_retry_after(now, start, rule),
    )


async def check_rate_limit(
    store: IKeyValueStore,
    identifier: str,
    policy: str,
    now: Optional[float] = None,
) -> RateLimitResult:
    """Report whether one more request would be allowed, without counting it."""
    rule = get_policy(policy)
    now = time.time() if now is None else now
    start = window_start(now, rule.window_seconds)

    try:
        item = await store.get_item(build_rate_limit_pk(rule.name, identifier), build_window_sk(start))
        current = int(item["count"]) if item is not None else 0
    except Exception as e:
        return _fail_open(rule, identifier, e)

    return RateLimitResult(
        allowed=current < rule.max_requests,
        current=current,
        limit=rule.max_requests,
        retry_after=_retry_after(now, start, rule),
    )


async def enforce_rate_limit(
    store: IKeyValueStore,
    identifier: str,
    policy: str,
    now: Optional[float] = None,
) -> RateLimitResult:
    """
    Count one request and reject it when over the limit.

    Raises:
        RateLimitExceededError: If the window's limit is exhausted
    """
    result = await increment_rate_limit(store, identifier, policy, now)
    if not result.allowed:
        logger.warning(
            "Rate limit exceeded",
            policy=policy,
            identifier=identifier,
            current=result.current,
            limit=result.limit,
        )
        raise RateLimitExceededError(retry_after=result.retry_after)
    return result


async def enforce_rate_limit_by_ip(
    store: IKeyValueStore,
    source_ip: Optional[str],
    policy: str,
    now: Optional[float] = None,
) -> RateLimitResult:
    return await enforce_rate_limit(store, f"IP#{source_ip or 'unknown'}", policy, now)
