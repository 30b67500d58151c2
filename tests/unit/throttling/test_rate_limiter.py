import pytest

from shared.exceptions import RateLimitExceededError
from throttling.api.dependencies import rate_limit
from throttling.application.rate_limiter import (
    check_rate_limit,
    enforce_rate_limit,
    enforce_rate_limit_by_ip,
    increment_rate_limit,
    window_start,
)
from throttling.domain.policy import RATE_LIMITS, get_policy
from throttling.infrastructure.keys import build_rate_limit_pk, build_window_sk

from support import BrokenStore

NOW = 1_699_999_995.0  # 15s into the window starting at 1_699_999_980


def test_window_start():
    assert window_start(NOW, 60) == 1_699_999_980
    assert window_start(120.0, 60) == 120
    assert window_start(179.9, 60) == 120


def test_policies():
    assert {name: (p.max_requests, p.window_seconds) for name, p in RATE_LIMITS.items()} == {
        "login": (10, 60),
        "create_note": (60, 60),
        "read": (200, 60),
        "presign": (30, 60),
        "default": (100, 60),
    }
    assert get_policy("unknown").name == "default"


async def test_eleventh_login_is_denied(store):
    results = [await increment_rate_limit(store, "u1", "login", now=NOW) for _ in range(11)]

    assert all(r.allowed for r in results[:10])
    assert results[10].allowed is False
    assert results[10].current == 11
    assert results[10].retry_after == 45


async def test_next_window_starts_fresh(store):
    for _ in range(11):
        await increment_rate_limit(store, "u1", "login", now=NOW)
    result = await increment_rate_limit(store, "u1", "login", now=NOW + 60)
    assert result.allowed and result.current == 1


async def test_identifiers_and_policies_are_independent(store):
    for _ in range(10):
        await increment_rate_limit(store, "u1", "login", now=NOW)
    assert (await increment_rate_limit(store, "u2", "login", now=NOW)).current == 1
    assert (await increment_rate_limit(store, "u1", "read", now=NOW)).current == 1


async def test_check_does_not_count(store):
    for _ in range(9):
        await increment_rate_limit(store, "u1", "login", now=NOW)
    peek = await check_rate_limit(store, "u1", "login", now=NOW)
    assert peek.allowed and peek.current == 9
    assert (await check_rate_limit(store, "u1", "login", now=NOW)).current == 9

    await increment_rate_limit(store, "u1", "login", now=NOW)
    assert (await check_rate_limit(store, "u1", "login", now=NOW)).allowed is False


async def test_window_item_expires_after_grace(store, clock):
    start = window_start(NOW, 60)
    await increment_rate_limit(store, "u1", "login", now=NOW)
    key = (build_rate_limit_pk("login", "u1"), build_window_sk(start))

    clock.now = start + 60 + 59
    assert (await store.get_item(*key))["count"] == 1
    clock.now = start + 60 + 60
    assert await store.get_item(*key) is None


async def test_enforce_raises_with_retry_after(store):
    for _ in range(10):
        await enforce_rate_limit(store, "u1", "login", now=NOW)
    with pytest.raises(RateLimitExceededError) as exc:
        await enforce_rate_limit(store, "u1", "login", now=NOW)
    assert exc.value.retry_after == 45


async def test_enforce_by_ip_uses_ip_identifier(store):
    await enforce_rate_limit_by_ip(store, "10.0.0.1", "login", now=NOW)
    await enforce_rate_limit_by_ip(store, None, "login", now=NOW)

    start = window_start(NOW, 60)
    assert await store.get_item(build_rate_limit_pk("login", "IP#10.0.0.1"), build_window_sk(start))
    assert await store.get_item(build_rate_limit_pk("login", "IP#unknown"), build_window_sk(start))


async def test_store_failure_fails_open():
    broken = BrokenStore(RuntimeError("connection reset"))

    for fn in (increment_rate_limit, check_rate_limit, enforce_rate_limit):
        result = await fn(broken, "u1", "login", now=NOW)
        assert result.allowed is True
        assert result.current == 0
        assert result.retry_after == 60


def test_rate_limit_dependency_keys():
    assert rate_limit("create_note", key="clinic").__name__ == "rate_limit_create_note_by_clinic"
    assert rate_limit("read").__name__ == "rate_limit_read_by_user"
    with pytest.raises(ValueError):
        rate_limit("read", key="tenant")
