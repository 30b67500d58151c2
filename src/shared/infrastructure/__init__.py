"""
Shared Infrastructure Layer
Database, key-value store and observability
"""
from shared.infrastructure.database import Base, DatabaseSessionFactory, KVItemModel
from shared.infrastructure.kvstore import (
    IKeyValueStore,
    InMemoryKeyValueStore,
    SQLAlchemyKeyValueStore,
)
from shared.infrastructure.observability import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    # Database
    "Base",
    "DatabaseSessionFactory",
    "KVItemModel",
    # Key-value store
    "IKeyValueStore",
    "InMemoryKeyValueStore",
    "SQLAlchemyKeyValueStore",
    # Observability
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
