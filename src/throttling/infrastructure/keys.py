"""Store keys of rate limit windows."""

RATELIMIT_PREFIX = "RATELIMIT#"
WINDOW_PREFIX = "WINDOW#"

# kept past the window end so late readers still see the final count
EXPIRY_GRACE_SECONDS = 60


def build_rate_limit_pk(policy: str, identifier: str) -> str:
    return f"{RATELIMIT_PREFIX}{policy}#{identifier}"


def build_window_sk(window_start: int) -> str:
    return f"{WINDOW_PREFIX}{window_start}"


def window_expires_at(window_start: int, window_seconds: int) -> int:
    return window_start + window_seconds + EXPIRY_GRACE_SECONDS
