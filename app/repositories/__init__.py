"""
app/repositories package marker.
"""

from app.repositories.mapping_store import MappingStore, SectorCatalog, validate_patch
from app.repositories.memory_mapping_store import InMemoryMappingStore, InMemorySectorCatalog
from app.repositories.sqlalchemy_mapping_store import (
    SessionScope,
    SQLAlchemyMappingStore,
    SQLAlchemySectorCatalog,
    build_sqlalchemy_repositories,
)

__all__ = [
    "InMemoryMappingStore",
    "InMemorySectorCatalog",
    "MappingStore",
    "SectorCatalog",
    "SessionScope",
    "SQLAlchemyMappingStore",
    "SQLAlchemySectorCatalog",
    "build_sqlalchemy_repositories",
    "validate_patch",
]
