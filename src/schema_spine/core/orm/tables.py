from __future__ import annotations

import datetime

from sqlalchemy import DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from schema_spine.core.orm.base import SchemaSpineBase

MIGRATIONS_TABLE = "migrations"


class MigrationTable(SchemaSpineBase):
    """One row per applied migration; ``body`` is what was executed."""

    __tablename__ = MIGRATIONS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"MigrationTable(id={self.id!r}, name={self.name!r})"
