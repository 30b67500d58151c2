"""
Shared Key-Value Store Infrastructure
Ordered (partition key, sort key) store contract and implementations
"""
from shared.infrastructure.kvstore.conditions import Attr, Condition, ItemExists, SortKeyRange
from shared.infrastructure.kvstore.memory_store import InMemoryKeyValueStore
from shared.infrastructure.kvstore.sqlalchemy_store import SQLAlchemyKeyValueStore
from shared.infrastructure.kvstore.store_protocol import IKeyValueStore, Item, Key, QueryPage

__all__ = [
    "Attr",
    "Condition",
    "ItemExists",
    "SortKeyRange",
    "IKeyValueStore",
    "Item",
    "Key",
    "QueryPage",
    "InMemoryKeyValueStore",
    "SQLAlchemyKeyValueStore",
]
