"""Clinical notes HTTP surface."""
