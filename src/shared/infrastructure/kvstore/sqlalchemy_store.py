"""
SQLAlchemy Implementation of the Ordered Key-Value Store
One ``kv_items`` table; per-key compare-and-swap on a ``revision`` column
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, Optional, Sequence, cast

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.exceptions import ConditionalCheckFailedError, StoreError
from shared.infrastructure.database.base_model import KVItemModel
from shared.infrastructure.kvstore.conditions import Condition, SortKeyRange
from shared.infrastructure.kvstore.store_protocol import PK, SK, Item, Key, QueryPage, apply_update
from shared.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)


class _LostRace(Exception):
    """Another writer changed the row between our read and our write."""


class SQLAlchemyKeyValueStore:
    """
    Async SQLAlchemy implementation of IKeyValueStore.

    Every mutation reads the row, evaluates the condition in Python, then
    writes with ``WHERE revision = :seen`` (or an INSERT guarded by the primary
    key). Losing that race re-runs the read-evaluate-write cycle, so the
    condition is always judged against the state the write lands on.

    Attributes:
        session_factory: Async session maker bound to the engine
        max_cas_attempts: Retries on write contention before giving up
        batch_size: Rows fetched per round trip while filtering queries
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Callable[[], float] = time.time,
        max_cas_attempts: int = 8,
        batch_size: int = 100,
    ) -> None:
        self.session_factory = session_factory
        self.max_cas_attempts = max_cas_attempts
        self.batch_size = batch_size
        self._clock = clock

    # ---------- internals ----------

    @asynccontextmanager
    async def _read_session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Store read failed", error=str(e))
            raise StoreError("Store read failed", details={"type": e.__class__.__name__}) from e

    def _is_live(self, expires_at: Optional[int]) -> bool:
        return expires_at is None or expires_at > self._clock()

    async def _mutate(
        self,
        pk: str,
        sk: str,
        condition: Optional[Condition],
        compute: Callable[[Optional[Item], Optional[int]], tuple[Optional[Item], Optional[int]]],
    ) -> Optional[Item]:
        """
        Run one linearizable read-check-write on (pk, sk).

        ``compute`` maps (current item, current expiry) to (new item, new expiry);
        a None item deletes the row.
        """
        for _ in range(self.max_cas_attempts):
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        return await self._mutate_once(session, pk, sk, condition, compute)
            except (_LostRace, IntegrityError):
                continue
            except SQLAlchemyError as e:
                logger.error("Store write failed", pk=pk, sk=sk, error=str(e))
                raise StoreError("Store write failed", details={"type": e.__class__.__name__}) from e

        logger.error("Store write contention exhausted retries", pk=pk, sk=sk)
        raise StoreError("Store write contention", details={"pk": pk, "sk": sk})

    async def _mutate_once(
        self,
        session: AsyncSession,
        pk: str,
        sk: str,
        condition: Optional[Condition],
        compute: Callable[[Optional[Item], Optional[int]], tuple[Optional[Item], Optional[int]]],
    ) -> Optional[Item]:
        row = (
            await session.execute(
                select(KVItemModel.data, KVItemModel.revision, KVItemModel.expires_at).where(
                    KVItemModel.pk == pk, KVItemModel.sk == sk
                )
            )
        ).first()

        live = row is not None and self._is_live(row.expires_at)
        current: Optional[Item] = dict(row.data) if live else None
        current_expiry = row.expires_at if live else None

        if condition is not None and not condition.evaluate(current):
            raise ConditionalCheckFailedError(
                "The conditional request failed", details={"pk": pk, "sk": sk}
            )

        new_item, new_expiry = compute(current, current_expiry)

        if row is None:
            if new_item is not None:
                await session.execute(
                    insert(KVItemModel).values(
                        pk=pk, sk=sk, data=new_item, revision=1, expires_at=new_expiry
                    )
                )
            return new_item

        guard = and_(KVItemModel.pk == pk, KVItemModel.sk == sk, KVItemModel.revision == row.revision)
        if new_item is None:
            result = await session.execute(delete(KVItemModel).where(guard))
        else:
            result = await session.execute(
                update(KVItemModel)
                .where(guard)
                .values(data=new_item, revision=row.revision + 1, expires_at=new_expiry)
            )
        if result.rowcount != 1:
            raise _LostRace()
        return new_item

    # ---------- IKeyValueStore ----------

    async def get_item(self, pk: str, sk: str) -> Item | None:
        async with self._read_session() as session:
            row = (
                await session.execute(
                    select(KVItemModel.data, KVItemModel.expires_at).where(
                        KVItemModel.pk == pk, KVItemModel.sk == sk
                    )
                )
            ).first()
        if row is None or not self._is_live(row.expires_at):
            return None
        return dict(row.data)

    async def put_item(
        self,
        item: Mapping[str, Any],
        *,
        condition: Condition | None = None,
        expires_at: int | None = None,
    ) -> None:
        replacement = dict(item)
        await self._mutate(
            replacement[PK], replacement[SK], condition, lambda _cur, _exp: (replacement, expires_at)
        )

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
        def compute(current: Optional[Item], current_expiry: Optional[int]) -> tuple[Item, Optional[int]]:
            updated = apply_update(
                current, pk, sk, set_fields=set_fields, increment=increment, remove=remove
            )
            return updated, expires_at if expires_at is not None else current_expiry

        # compute never deletes, so the mutation always yields an item
        return cast(Item, await self._mutate(pk, sk, condition, compute))

    async def delete_item(self, pk: str, sk: str, *, condition: Condition | None = None) -> None:
        if condition is not None:
            await self._mutate(pk, sk, condition, lambda _cur, _exp: (None, None))
            return
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(KVItemModel).where(KVItemModel.pk == pk, KVItemModel.sk == sk)
                    )
        except SQLAlchemyError as e:
            logger.error("Store delete failed", pk=pk, sk=sk, error=str(e))
            raise StoreError("Store delete failed", details={"type": e.__class__.__name__}) from e

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
        base = select(KVItemModel.sk, KVItemModel.data, KVItemModel.expires_at).where(KVItemModel.pk == pk)
        if sort_key is not None:
            if sort_key.prefix is not None:
                base = base.where(
                    func.substr(KVItemModel.sk, 1, len(sort_key.prefix)) == sort_key.prefix
                )
            if sort_key.lower is not None:
                base = base.where(KVItemModel.sk >= sort_key.lower)
            if sort_key.upper is not None:
                base = base.where(KVItemModel.sk <= sort_key.upper)
        base = base.order_by(KVItemModel.sk.asc() if scan_forward else KVItemModel.sk.desc())

        matched: list[Item] = []
        cursor_sk = exclusive_start_sk
        async with self._read_session() as session:
            while True:
                stmt = base
                if cursor_sk is not None:
                    stmt = stmt.where(KVItemModel.sk > cursor_sk if scan_forward else KVItemModel.sk < cursor_sk)
                rows = (await session.execute(stmt.limit(self.batch_size))).all()
                for row in rows:
                    cursor_sk = row.sk
                    if not self._is_live(row.expires_at):
                        continue
                    item = dict(row.data)
                    if filter is not None and not filter.evaluate(item):
                        continue
                    matched.append(item)
                    if limit is not None and len(matched) >= limit:
                        return QueryPage(items=matched, last_evaluated_key=(pk, row.sk))
                if len(rows) < self.batch_size:
                    return QueryPage(items=matched)

    async def scan(
        self,
        *,
        pk_prefix: str = "",
        filter: Condition | None = None,
        limit: int | None = None,
        exclusive_start_key: Key | None = None,
    ) -> QueryPage:
        base = select(KVItemModel.pk, KVItemModel.sk, KVItemModel.data, KVItemModel.expires_at)
        if pk_prefix:
            base = base.where(func.substr(KVItemModel.pk, 1, len(pk_prefix)) == pk_prefix)
        base = base.order_by(KVItemModel.pk.asc(), KVItemModel.sk.asc())

        matched: list[Item] = []
        position = exclusive_start_key
        async with self._read_session() as session:
            while True:
                stmt = base
                if position is not None:
                    last_pk, last_sk = position
                    stmt = stmt.where(
                        or_(
                            KVItemModel.pk > last_pk,
                            and_(KVItemModel.pk == last_pk, KVItemModel.sk > last_sk),
                        )
                    )
                rows = (await session.execute(stmt.limit(self.batch_size))).all()
                for row in rows:
                    position = (row.pk, row.sk)
                    if not self._is_live(row.expires_at):
                        continue
                    item = dict(row.data)
                    if filter is not None and not filter.evaluate(item):
                        continue
                    matched.append(item)
                    if limit is not None and len(matched) >= limit:
                        return QueryPage(items=matched, last_evaluated_key=position)
                if len(rows) < self.batch_size:
                    return QueryPage(items=matched)

    async def purge_expired(self) -> int:
        """Physically remove expired rows; returns how many were deleted."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(KVItemModel).where(
                            KVItemModel.expires_at.is_not(None),
                            KVItemModel.expires_at <= int(self._clock()),
                        )
                    )
        except SQLAlchemyError as e:
            logger.error("Store purge failed", error=str(e))
            raise StoreError("Store purge failed", details={"type": e.__class__.__name__}) from e
        removed = result.rowcount or 0
        logger.info("Expired store items purged", removed=removed)
        return removed
