"""
SQLAlchemy Declarative Base
All ORM models inherit from this
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Byte-order collation so sort-key ranges ("NOTE#2024-01-01" < "NOTE#2024-01-01~") compare
# the same way on PostgreSQL as on SQLite.
KeyString = String(512).with_variant(String(512, collation="C"), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    type_annotation_map = {
        dict[str, Any]: JSON().with_variant(JSONB(), "postgresql"),
    }


class KVItemModel(Base):
    """
    ORM model for the single sorted key-value namespace.

    ``revision`` is bumped on every write and drives per-key compare-and-swap.
    ``expires_at`` is epoch seconds; expired rows read as absent.
    """
    __tablename__ = "kv_items"

    pk: Mapped[str] = mapped_column(KeyString, primary_key=True)
    sk: Mapped[str] = mapped_column(KeyString, primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(pk={self.pk!r}, sk={self.sk!r}, revision={self.revision})>"
