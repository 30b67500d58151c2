from throttling.application.rate_limiter import (
    check_rate_limit,
    enforce_rate_limit,
    enforce_rate_limit_by_ip,
    increment_rate_limit,
    window_start,
)

__all__ = [
    "check_rate_limit",
    "enforce_rate_limit",
    "enforce_rate_limit_by_ip",
    "increment_rate_limit",
    "window_start",
]
