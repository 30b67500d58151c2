"""
Standard API Response Models
Error body shape shared by every endpoint
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    Error body rendered by ``register_exception_handlers``.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        details: Additional error context (optional)
        correlation_id: Request ID of the failed request
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional error context")
    correlation_id: str | None = Field(None, description="X-Request-ID of the request")


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    403: {"model": ErrorResponse, "description": "Forbidden"},
    429: {"model": ErrorResponse, "description": "Rate limited"},
    503: {"model": ErrorResponse, "description": "Store unavailable"},
}
