"""
db/models/sector_group.py

Named classification buckets ("Non KLM", "Green", or a specific-sector name).
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import AuditMixin, Base, TimestampMixin


class SectorGroup(Base, TimestampMixin, AuditMixin):
    __tablename__ = "sector_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        unique=True,
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Hide a group from selection lists without deleting it",
    )

    __table_args__ = (Index("ix_sector_groups_is_active", "is_active"),)

    def __repr__(self) -> str:
        return f"<SectorGroup id={self.id} name={self.name!r}>"
