"""
Database Session Factory
Owns the async engine behind the SQL-backed key-value store
"""
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.infrastructure.database.base_model import Base
from shared.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseSessionFactory:
    """
    Async engine plus the session maker handed to ``SQLAlchemyKeyValueStore``.

    Pool tuning only applies to PostgreSQL; SQLite (aiosqlite) uses the
    driver's default pool.
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 5, max_overflow: int = 10) -> None:
        """
        Args:
            database_url: ``postgresql+asyncpg://`` or ``sqlite+aiosqlite://`` URL
            echo: Log SQL statements
            pool_size: Connection pool size (PostgreSQL only)
            max_overflow: Connections allowed beyond pool_size (PostgreSQL only)
        """
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if database_url.startswith("postgresql"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        logger.info("Database engine created", dialect=self.engine.dialect.name, echo=echo)

    async def create_tables(self) -> None:
        """Create the ``kv_items`` table and its index if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Store schema ready", tables=sorted(Base.metadata.tables))

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")
