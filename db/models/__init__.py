"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.economic_sector import EconomicSector
from db.models.sector_group import SectorGroup
from db.models.sector_group_mapping import SectorGroupMapping

__all__ = [
    "EconomicSector",
    "SectorGroup",
    "SectorGroupMapping",
]
