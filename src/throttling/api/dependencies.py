"""
Rate limit dependencies for FastAPI routes.

Usage:
    @router.get("/things", dependencies=[Depends(rate_limit("read"))])
    @router.post("/things", dependencies=[Depends(rate_limit("create_note", key="clinic"))])
"""
from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Request

from shared.config import Settings
from shared.dependencies import get_app_settings, get_client_ip, get_store
from shared.infrastructure.kvstore import IKeyValueStore

from throttling.application.rate_limiter import enforce_rate_limit, enforce_rate_limit_by_ip

USER_ID_HEADER = "X-User-Id"
CLINIC_ID_HEADER = "X-Clinic-Id"

_KEY_HEADERS = {"user": USER_ID_HEADER, "clinic": CLINIC_ID_HEADER}


def rate_limit(policy: str, key: str = "user") -> Callable[..., Awaitable[None]]:
    """
    Build a dependency enforcing ``policy`` per caller.

    ``key="user"`` buckets by ``X-User-Id``; ``key="clinic"`` shares one
    bucket across every user of the ``X-Clinic-Id`` clinic. Without the
    header the client IP is used. Disabled entirely when
    ``RATE_LIMIT_ENABLED`` is false.
    """
    if key not in _KEY_HEADERS:
        raise ValueError(f"Unknown rate limit key: {key}")
    header = _KEY_HEADERS[key]

    async def dependency(
        request: Request,
        store: IKeyValueStore = Depends(get_store),
        settings: Settings = Depends(get_app_settings),
    ) -> None:
        if not settings.rate_limit_enabled:
            return
        identifier = request.headers.get(header)
        if identifier:
            await enforce_rate_limit(store, identifier, policy)
        else:
            await enforce_rate_limit_by_ip(store, get_client_ip(request), policy)

    dependency.__name__ = f"rate_limit_{policy}_by_{key}"
    return dependency
