"""FastAPI dependencies resolving process-wide collaborators from app state."""

from fastapi import Request

from shared.config import Settings
from shared.infrastructure.kvstore import IKeyValueStore


def get_store(request: Request) -> IKeyValueStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None
