"""
Centralized configuration for the clinical notes backend.

- Pure Python (dataclasses + stdlib), no Pydantic.
- Loads from OS env; optionally parses a .env file via python-dotenv.
- Strong typing & validation in __post_init__.
- Immutable singleton via functools.lru_cache.
- Secrets never logged (masked).
"""

from __future__ import annotations

import functools
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, cast

from dotenv import load_dotenv

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _load_dotenv(env_path: Path) -> None:
    if env_path.exists():
        load_dotenv(dotenv_path=str(env_path), override=False)


def _mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    if len(value) <= 8:
        return "***"
    return value[:2] + "…" + value[-2:]


def _get_env_str(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    v = os.getenv(key, default)
    if required and (v is None or str(v).strip() == ""):
        raise ValueError(f"Missing required env var: {key}")
    return v


def _get_env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip().lower()
    return v in {"1", "true", "t", "yes", "y", "on"}


def _get_env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"Env var {key} must be an integer")


def _validate_choice(value: str, *, choices: tuple[str, ...], key: str) -> str:
    if value not in choices:
        raise ValueError(f"{key} must be one of {choices}, got {value!r}")
    return value


def _validate_database_url(value: str, *, key: str) -> str:
    allowed = ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
    if not value.startswith(allowed):
        raise ValueError(f"{key} must start with one of {allowed}")
    if value.startswith("postgresql://"):
        # async engine needs the asyncpg driver
        value = "postgresql+asyncpg://" + value[len("postgresql://"):]
    return value


# ------------------------------------------------------------------------------
# Settings dataclass (immutable)
# ------------------------------------------------------------------------------
EnvName = Literal["local", "dev", "staging", "prod"]
LogFormat = Literal["json", "console"]

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./clinical_notes.db"
_DEV_CURSOR_SECRET = "local-dev-cursor-secret"


@dataclass(frozen=True)
class Settings:
    # Environment
    environment: EnvName = "local"
    debug: bool = False

    # Database pooling (ignored for SQLite)
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Store
    database_url: str = DEFAULT_DATABASE_URL
    cursor_secret: str = _DEV_CURSOR_SECRET

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Rate limiting
    rate_limit_enabled: bool = True

    # Observability
    log_level: str = "INFO"
    log_format: Optional[LogFormat] = None

    # Paths
    base_dir: Path = field(default_factory=lambda: Path(__file__).resolve().parent.parent)

    # Derived/computed flags (filled in __post_init__)
    is_prod: bool = field(init=False)
    is_staging: bool = field(init=False)
    is_dev: bool = field(init=False)
    is_local: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "environment",
            _validate_choice(self.environment, choices=("local", "dev", "staging", "prod"), key="ENVIRONMENT"),
        )
        object.__setattr__(self, "database_url", _validate_database_url(self.database_url, key="DATABASE_URL"))

        # The development cursor secret is only acceptable outside staging/prod
        if not self.cursor_secret or not self.cursor_secret.strip():
            raise ValueError("CURSOR_SECRET must be non-empty")
        if self.environment in ("staging", "prod") and self.cursor_secret == _DEV_CURSOR_SECRET:
            raise ValueError("CURSOR_SECRET must be set explicitly in staging/prod")

        if self.default_page_size <= 0:
            raise ValueError("DEFAULT_PAGE_SIZE must be > 0")
        if self.max_page_size < self.default_page_size:
            raise ValueError("MAX_PAGE_SIZE must be >= DEFAULT_PAGE_SIZE")

        if self.log_format is not None:
            _validate_choice(self.log_format, choices=("json", "console"), key="LOG_FORMAT")
        if not re.fullmatch(r"(?i)DEBUG|INFO|WARNING|ERROR|CRITICAL", self.log_level.strip()):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

        env = self.environment
        object.__setattr__(self, "is_prod", env == "prod")
        object.__setattr__(self, "is_staging", env == "staging")
        object.__setattr__(self, "is_dev", env == "dev")
        object.__setattr__(self, "is_local", env == "local")

    @property
    def json_logs(self) -> bool:
        if self.log_format is not None:
            return self.log_format == "json"
        return not (self.is_local or self.is_dev)

    # Safe dict (for debug prints without secrets)
    def safe_dict(self) -> dict:
        return {
            "environment": self.environment,
            "debug": self.debug,
            "database_url": "<masked>" if self.database_url else "<unset>",
            "cursor_secret": _mask_secret(self.cursor_secret),
            "default_page_size": self.default_page_size,
            "max_page_size": self.max_page_size,
            "rate_limit_enabled": self.rate_limit_enabled,
            "log_level": self.log_level,
            "log_format": self.log_format or ("json" if self.json_logs else "console"),
            "database_pool_size": self.database_pool_size,
            "database_max_overflow": self.database_max_overflow,
            "base_dir": str(self.base_dir),
        }


# ------------------------------------------------------------------------------
# Loader (singleton)
# ------------------------------------------------------------------------------
_logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Attempt to load .env from repo root (../../.env relative to src/shared/)
    env_file = Path(__file__).resolve().parent.parent.parent / ".env"
    _load_dotenv(env_file)

    settings = Settings(
        environment=cast(EnvName, _get_env_str("ENVIRONMENT", "local") or "local"),
        debug=_get_env_bool("DEBUG", False),
        database_url=_get_env_str("DATABASE_URL", DEFAULT_DATABASE_URL) or DEFAULT_DATABASE_URL,
        cursor_secret=_get_env_str("CURSOR_SECRET", _DEV_CURSOR_SECRET) or "",
        default_page_size=_get_env_int("DEFAULT_PAGE_SIZE", 20),
        max_page_size=_get_env_int("MAX_PAGE_SIZE", 100),
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        log_level=_get_env_str("LOG_LEVEL", "INFO") or "INFO",
        log_format=cast(Optional[LogFormat], _get_env_str("LOG_FORMAT", None)),
        database_pool_size=_get_env_int("DATABASE_POOL_SIZE", 5),
        database_max_overflow=_get_env_int("DATABASE_MAX_OVERFLOW", 10),
    )

    _logger.info("Settings loaded", extra={"settings": settings.safe_dict()})
    return settings
