"""
Shared fixtures: an in-memory catalog and store seeded with a few sectors
and groups, plus services wired to them with a fixed clock.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from app.domain.sector_mapping import GroupType, MappingRecord
from app.repositories.memory_mapping_store import InMemoryMappingStore, InMemorySectorCatalog
from app.services.sector_mapping_service import SectorMappingService
from app.services.sector_transition_service import SectorTransitionService

FIXED_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_record(
    *,
    sector: str = "A01",
    group_id: int = 3,
    group_type: GroupType = GroupType.SPECIFIC_SECTOR,
    group_name: str = "Agriculture",
    effective_start: date | None = date(2024, 1, 1),
    effective_end: date | None = None,
    is_active: bool = False,
    approved_by: str | None = None,
    created_by: str = "alice",
    priority: int = 0,
) -> MappingRecord:
    return MappingRecord(
        group_id=group_id,
        economic_sector_code=sector,
        group_type=group_type,
        group_name=group_name,
        effective_start=effective_start,
        effective_end=effective_end,
        is_active=is_active,
        approved_by=approved_by,
        created_by=created_by,
        priority=priority,
    )


@pytest.fixture()
def catalog() -> InMemorySectorCatalog:
    catalog = InMemorySectorCatalog()
    catalog.add_sector("A01", "Crop and animal production")
    catalog.add_sector("B02", "Mining of coal")
    catalog.add_sector("C03", "Manufacture of food products")
    catalog.add_group("Non KLM")
    catalog.add_group("Green")
    catalog.add_group("Agriculture")
    return catalog


@pytest.fixture()
def store(catalog: InMemorySectorCatalog) -> InMemoryMappingStore:
    return InMemoryMappingStore(catalog, clock=fixed_clock)


@pytest.fixture()
def mapping_service(
    store: InMemoryMappingStore,
    catalog: InMemorySectorCatalog,
) -> SectorMappingService:
    return SectorMappingService(store, catalog, clock=fixed_clock)


@pytest.fixture()
def transition_service(store: InMemoryMappingStore) -> SectorTransitionService:
    return SectorTransitionService(store, clock=fixed_clock)
