"""
db/models/sector_group_mapping.py

One stored row linking an economic sector to a sector group for a date range.

Rows created together share (group_id, group_name, effective_start); that
triple is the logical identity callers address. There is no stored status:
it is derived from is_active, approved_by and effective_end.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import AuditMixin, Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.economic_sector import EconomicSector
    from db.models.sector_group import SectorGroup


class SectorGroupMapping(Base, TimestampMixin, AuditMixin):
    __tablename__ = "sector_group_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sector_groups.id", ondelete="RESTRICT"),
        nullable=False,
    )
    economic_sector_code: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("economic_sectors.code", ondelete="RESTRICT"),
        nullable=False,
    )
    group_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="NON_KLM, SPECIFIC_SECTOR, GREEN",
    )
    group_name: Mapped[str] = mapped_column(String(120), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    effective_start: Mapped[date] = mapped_column(Date, nullable=False)
    effective_end: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="NULL means open-ended",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    sector_group: Mapped["SectorGroup"] = relationship("SectorGroup", lazy="joined")
    economic_sector: Mapped["EconomicSector"] = relationship("EconomicSector", lazy="joined")

    __table_args__ = (
        Index(
            "ix_sector_group_mappings_logical_id",
            "group_id",
            "group_name",
            "effective_start",
        ),
        Index("ix_sector_group_mappings_sector_active", "economic_sector_code", "is_active"),
        Index("ix_sector_group_mappings_effective_start", "effective_start"),
        Index("ix_sector_group_mappings_effective_end", "effective_end"),
        Index("ix_sector_group_mappings_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<SectorGroupMapping id={self.id} sector={self.economic_sector_code!r} "
            f"group={self.group_name!r} active={self.is_active}>"
        )
