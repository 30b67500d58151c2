from throttling.domain.policy import DEFAULT_POLICY, RATE_LIMITS, RateLimitPolicy, RateLimitResult, get_policy

__all__ = ["DEFAULT_POLICY", "RATE_LIMITS", "RateLimitPolicy", "RateLimitResult", "get_policy"]
