"""
Shared Database Infrastructure
Declarative base, the key-value table model and session management
"""
from shared.infrastructure.database.base_model import Base, KVItemModel
from shared.infrastructure.database.session import DatabaseSessionFactory

__all__ = [
    "Base",
    "KVItemModel",
    "DatabaseSessionFactory",
]
