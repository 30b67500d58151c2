"""
In-memory ordered key-value store
Process-local implementation for tests and local development
"""
from __future__ import annotations

import copy
import time
from typing import Any, Callable, Mapping, Optional, Sequence

from shared.exceptions import ConditionalCheckFailedError
from shared.infrastructure.kvstore.conditions import Condition, SortKeyRange
from shared.infrastructure.kvstore.store_protocol import PK, SK, Item, Key, QueryPage, apply_update


class InMemoryKeyValueStore:
    """
    Dict-backed implementation of IKeyValueStore.

    Mutations never await between reading and writing, so each call is
    atomic with respect to other coroutines on the same event loop.
    Expired items read as absent and are dropped lazily.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        # pk -> sk -> (item, expires_at)
        self._partitions: dict[str, dict[str, tuple[Item, Optional[int]]]] = {}

    # ---------- internals ----------

    def _live(self, pk: str, sk: str) -> Optional[Item]:
        entry = self._partitions.get(pk, {}).get(sk)
        if entry is None:
            return None
        item, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._partitions[pk][sk]
            return None
        return item

    def _expiry_of(self, pk: str, sk: str) -> Optional[int]:
        entry = self._partitions.get(pk, {}).get(sk)
        return entry[1] if entry else None

    def _store(self, item: Item, expires_at: Optional[int]) -> None:
        self._partitions.setdefault(item[PK], {})[item[SK]] = (item, expires_at)

    @staticmethod
    def _check(condition: Optional[Condition], current: Optional[Item], pk: str, sk: str) -> None:
        if condition is not None and not condition.evaluate(current):
            raise ConditionalCheckFailedError(
                "The conditional request failed", details={"pk": pk, "sk": sk}
            )

    # ---------- IKeyValueStore ----------

    async def get_item(self, pk: str, sk: str) -> Item | None:
        item = self._live(pk, sk)
        return copy.deepcopy(item) if item is not None else None

    async def put_item(
        self,
        item: Mapping[str, Any],
        *,
        condition: Condition | None = None,
        expires_at: int | None = None,
    ) -> None:
        pk, sk = item[PK], item[SK]
        self._check(condition, self._live(pk, sk), pk, sk)
        self._store(copy.deepcopy(dict(item)), expires_at)

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
        current = self._live(pk, sk)
        self._check(condition, current, pk, sk)
        updated = apply_update(
            current, pk, sk, set_fields=set_fields, increment=increment, remove=remove
        )
        expiry = expires_at if expires_at is not None else self._expiry_of(pk, sk)
        self._store(updated, expiry)
        return copy.deepcopy(updated)

    async def delete_item(self, pk: str, sk: str, *, condition: Condition | None = None) -> None:
        self._check(condition, self._live(pk, sk), pk, sk)
        self._partitions.get(pk, {}).pop(sk, None)

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
        sks = sorted(self._partitions.get(pk, {}), reverse=not scan_forward)
        matched: list[Item] = []
        for sk in sks:
            if exclusive_start_sk is not None:
                if scan_forward and sk <= exclusive_start_sk:
                    continue
                if not scan_forward and sk >= exclusive_start_sk:
                    continue
            if sort_key is not None and not sort_key.matches(sk):
                continue
            item = self._live(pk, sk)
            if item is None or (filter is not None and not filter.evaluate(item)):
                continue
            matched.append(copy.deepcopy(item))
            if limit is not None and len(matched) >= limit:
                return QueryPage(items=matched, last_evaluated_key=(pk, sk))
        return QueryPage(items=matched)

    async def scan(
        self,
        *,
        pk_prefix: str = "",
        filter: Condition | None = None,
        limit: int | None = None,
        exclusive_start_key: Key | None = None,
    ) -> QueryPage:
        keys = sorted(
            (pk, sk)
            for pk, partition in self._partitions.items()
            if pk.startswith(pk_prefix)
            for sk in partition
        )
        matched: list[Item] = []
        for pk, sk in keys:
            if exclusive_start_key is not None and (pk, sk) <= exclusive_start_key:
                continue
            item = self._live(pk, sk)
            if item is None or (filter is not None and not filter.evaluate(item)):
                continue
            matched.append(copy.deepcopy(item))
            if limit is not None and len(matched) >= limit:
                return QueryPage(items=matched, last_evaluated_key=(pk, sk))
        return QueryPage(items=matched)

    async def purge_expired(self) -> int:
        """Drop every expired item; returns how many were removed."""
        removed = 0
        for pk in list(self._partitions):
            for sk in list(self._partitions[pk]):
                if self._live(pk, sk) is None:
                    removed += 1
        return removed
