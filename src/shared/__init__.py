"""
Shared Layer - Cross-Cutting Concerns
Configuration, errors, key-value store infrastructure and API utilities
"""
