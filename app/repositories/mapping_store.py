"""
app/repositories/mapping_store.py

Persistence contracts for mapping records and the sector catalog.

Every operation is atomic on its own. ``MappingStore.transaction()`` opens a
caller-owned scope: calls made inside it join that scope and are committed or
rolled back together when the outermost scope exits.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol

from app.domain.sector_mapping import (
    PATCHABLE_FIELDS,
    EconomicSector,
    MappingKey,
    MappingRecord,
    Pagination,
    RecordFilter,
    SectorGroup,
)


class MappingStore(Protocol):
    def transaction(self) -> AbstractContextManager[None]:
        ...

    def create(self, record: MappingRecord) -> MappingRecord:
        ...

    def find_many(
        self,
        record_filter: RecordFilter,
        pagination: Pagination | None = None,
    ) -> tuple[list[MappingRecord], int]:
        ...

    def update_many(self, key: MappingKey, patch: Mapping[str, Any]) -> int:
        ...

    def delete_many(self, key: MappingKey) -> int:
        ...

    def count(self, record_filter: RecordFilter) -> int:
        ...


class SectorCatalog(Protocol):
    def find_sector(self, code: str) -> EconomicSector | None:
        ...

    def find_group_by_name(self, name: str) -> SectorGroup | None:
        ...

    def create_group(
        self,
        *,
        name: str,
        actor: str,
        description: str | None = None,
    ) -> SectorGroup:
        ...

    def list_groups(self, *, active_only: bool = True) -> Sequence[SectorGroup]:
        ...

    def list_sectors(self) -> Sequence[EconomicSector]:
        ...


def validate_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """
    Reject patch keys that are not mutable record fields.
    """

    unknown = set(patch) - PATCHABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported patch fields: {sorted(unknown)}.")
    return dict(patch)
