"""Fixed-window rate limiting over the key-value store."""
