"""
db/models/economic_sector.py

Economic sector catalog: the classified entities assigned to sector groups.
"""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class EconomicSector(Base, TimestampMixin):
    __tablename__ = "economic_sectors"

    code: Mapped[str] = mapped_column(
        String(20),
        primary_key=True,
        comment="Economic sector code referenced by mappings",
    )
    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Human-readable sector description",
    )

    def __repr__(self) -> str:
        return f"<EconomicSector code={self.code!r}>"
