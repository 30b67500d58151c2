"""
Shared API Layer
Response models and middleware
"""
from shared.api.middleware import CorrelationIdMiddleware
from shared.api.response_models import ERROR_RESPONSES, ErrorResponse

__all__ = [
    "ERROR_RESPONSES",
    "ErrorResponse",
    "CorrelationIdMiddleware",
]
