"""
Ordered Key-Value Store Protocol (Abstract Interface)
Contract for all store implementations
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

from shared.infrastructure.kvstore.conditions import Condition, SortKeyRange

Item = dict[str, Any]
Key = tuple[str, str]

PK = "pk"
SK = "sk"


@dataclass(frozen=True, slots=True)
class QueryPage:
    """One page of a range query or scan."""
    items: list[Item] = field(default_factory=list)
    last_evaluated_key: Optional[Key] = None


class IKeyValueStore(Protocol):
    """
    Sorted key-value store over a composite (partition key, sort key) space.

    Items are plain JSON-compatible dicts that always carry ``pk`` and ``sk``.
    Every mutating call is linearizable per key: the condition is evaluated
    against the current item and the write applied atomically, or
    ``ConditionalCheckFailedError`` is raised and nothing changes.
    Infrastructure failures surface as ``StoreError``.
    """

    async def get_item(self, pk: str, sk: str) -> Item | None:
        """
        Point read.

        Returns:
            The item, or None if absent or expired
        """
        ...

    async def put_item(
        self,
        item: Mapping[str, Any],
        *,
        condition: Condition | None = None,
        expires_at: int | None = None,
    ) -> None:
        """
        Create or replace an item.

        Args:
            item: Full item including ``pk`` and ``sk``
            condition: Guard evaluated against the current item
            expires_at: Epoch seconds after which the item reads as absent

        Raises:
            ConditionalCheckFailedError: If the condition does not hold
        """
        ...

    async def update_item(
        self,
        pk: str,
        sk: str,
        *,
        set_fields: Mapping[str, Any] | None = None,
        increment: Mapping[str, int] | None = None,
        remove: Sequence[str] = (),
        condition: Condition | None = None,
        expires_at: int | None = None,
    ) -> Item:
        """
        Partially update an item, creating it if absent (unless the condition forbids it).

        Args:
            set_fields: Attributes to overwrite
            increment: Attributes to add to, treating an absent attribute as 0
            remove: Attributes to drop
            condition: Guard evaluated against the current item
            expires_at: New expiry (epoch seconds), None keeps the current one

        Returns:
            The item as stored after the update

        Raises:
            ConditionalCheckFailedError: If the condition does not hold
        """
        ...

    async def delete_item(self, pk: str, sk: str, *, condition: Condition | None = None) -> None:
        """Physically remove an item. Deleting an absent item is a no-op."""
        ...

    async def query(
        self,
        pk: str,
        *,
        sort_key: SortKeyRange | None = None,
        filter: Condition | None = None,
        limit: int | None = None,
        exclusive_start_sk: str | None = None,
        scan_forward: bool = True,
    ) -> QueryPage:
        """
        Range query inside one partition, ordered by sort key.

        ``filter`` is applied to every scanned item before ``limit`` counts
        results, so a limited query never misses a match that sorts later.
        """
        ...

    async def scan(
        self,
        *,
        pk_prefix: str = "",
        filter: Condition | None = None,
        limit: int | None = None,
        exclusive_start_key: Key | None = None,
    ) -> QueryPage:
        """Ordered scan across partitions whose key starts with ``pk_prefix``."""
        ...


def apply_update(
    current: Optional[Mapping[str, Any]],
    pk: str,
    sk: str,
    *,
    set_fields: Mapping[str, Any] | None = None,
    increment: Mapping[str, int] | None = None,
    remove: Sequence[str] = (),
) -> Item:
    """Compute the post-update item shared by every store implementation."""
    item: Item = copy.deepcopy(dict(current)) if current is not None else {}
    item[PK] = pk
    item[SK] = sk
    for name, value in (set_fields or {}).items():
        item[name] = copy.deepcopy(value)
    for name, amount in (increment or {}).items():
        existing = item.get(name) or 0
        item[name] = existing + amount
    for name in remove:
        item.pop(name, None)
    return item
