"""
Structured Logging Configuration
Centralized logger with correlation_id, clinic_id, user_id context
"""
from __future__ import annotations

import logging
import logging.config
import re
import sys
from typing import Any

import structlog
from pythonjsonlogger.json import JsonFormatter


class PHIRedactionProcessor:
    """
    Structlog processor to redact patient identifiers from strings inside event_dict (recursively).
    - Email: keep domain, redact local-part.
    - Phone: keep the last 4 digits.
    - SSN: full redact.
    """
    P_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
    P_SSN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
    P_PHONE = re.compile(r"(?<![\w-])(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]\d{3}[-.\s]\d{4}\b")

    def __call__(self, logger: Any, method_name: str, event_dict: dict) -> dict:
        return self._redact(event_dict)

    def _redact(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._redact(v) for v in value]
        if isinstance(value, str):
            return self._redact_str(value)
        return value

    def _redact_str(self, s: str) -> str:
        s = self.P_EMAIL.sub(lambda m: f"***@{m.group(2)}", s)
        # SSN before phone: the phone pattern would otherwise eat its tail
        s = self.P_SSN.sub("***REDACTED***", s)
        s = self.P_PHONE.sub(lambda m: f"***{m.group(0)[-4:]}", s)
        return s


def configure_logging(log_level: str = "INFO", json_logs: bool = True, redact_phi: bool = True) -> None:
    """
    Configure structured logging for the application.

    Sets up structlog with processors for:
    - Adding timestamps
    - Adding log levels
    - Adding context (correlation_id, clinic_id, user_id)
    - PHI redaction (staging/prod)
    - JSON formatting (production) or console (development)

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output JSON format (True for prod, False for dev)
        redact_phi: Whether to scrub emails/phones/SSNs from log events
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                    "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                },
                "plain": {"format": "%(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "plain",
                    "stream": sys.stdout,
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # Quiet noisy libs, but keep errors
                "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
                "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            },
        }
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if redact_phi:
        processors.append(PHIRedactionProcessor())

    if json_logs:
        # hand the event dict to python-json-logger as record attributes
        processors.append(structlog.stdlib.render_to_log_kwargs)
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured structlog logger

    Usage:
        logger = get_logger(__name__)
        logger.info("Note created", clinic_id=clinic_id, note_id=note_id)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all subsequent log entries.

    Useful for setting request-scoped context like correlation_id, clinic_id, user_id.

    Usage:
        bind_context(correlation_id=request_id, clinic_id=clinic_id, user_id=user_id)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
