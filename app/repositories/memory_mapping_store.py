"""
app/repositories/memory_mapping_store.py

In-process mapping store and sector catalog.

Used by tests and local tooling in place of a database. A transaction
snapshots records and catalog groups at the outermost scope and restores
them if the scope exits with an error.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

from app.domain.sector_mapping import (
    EconomicSector,
    GroupType,
    MappingKey,
    MappingRecord,
    Pagination,
    RecordFilter,
    RecordOrder,
    SectorGroup,
)
from app.repositories.mapping_store import validate_patch


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle.lower() in haystack.lower()


class InMemorySectorCatalog:
    def __init__(
        self,
        sectors: Iterable[EconomicSector] = (),
        groups: Iterable[SectorGroup] = (),
    ) -> None:
        self._sectors: dict[str, EconomicSector] = {sector.code: sector for sector in sectors}
        self._groups: dict[int, SectorGroup] = {group.id: group for group in groups}

    def add_sector(self, code: str, description: str | None = None) -> EconomicSector:
        sector = EconomicSector(code=code, description=description)
        self._sectors[code] = sector
        return sector

    def add_group(self, name: str, *, actor: str = "seed", description: str | None = None) -> SectorGroup:
        return self.create_group(name=name, actor=actor, description=description)

    def get_group(self, group_id: int) -> SectorGroup | None:
        return self._groups.get(group_id)

    def find_sector(self, code: str) -> EconomicSector | None:
        return self._sectors.get(code)

    def find_group_by_name(self, name: str) -> SectorGroup | None:
        for group in self._groups.values():
            if group.name == name:
                return group
        return None

    def create_group(
        self,
        *,
        name: str,
        actor: str,
        description: str | None = None,
    ) -> SectorGroup:
        group = SectorGroup(
            id=max(self._groups, default=0) + 1,
            name=name,
            description=description,
            is_active=True,
            created_by=actor,
        )
        self._groups[group.id] = group
        return group

    def list_groups(self, *, active_only: bool = True) -> Sequence[SectorGroup]:
        groups = [g for g in self._groups.values() if g.is_active or not active_only]
        return sorted(groups, key=lambda group: group.name)

    def list_sectors(self) -> Sequence[EconomicSector]:
        return sorted(self._sectors.values(), key=lambda sector: sector.code)

    def snapshot(self) -> tuple[dict[str, EconomicSector], dict[int, SectorGroup]]:
        return dict(self._sectors), dict(self._groups)

    def restore(self, state: tuple[dict[str, EconomicSector], dict[int, SectorGroup]]) -> None:
        self._sectors, self._groups = dict(state[0]), dict(state[1])


class InMemoryMappingStore:
    """
    Mapping store keeping records in a dict keyed by record id.
    """

    def __init__(
        self,
        catalog: InMemorySectorCatalog | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.catalog = catalog or InMemorySectorCatalog()
        self._clock = clock or _utcnow
        self._records: dict[int, MappingRecord] = {}
        self._next_id = 1
        self._depth = 0
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            saved = (dict(self._records), self._next_id, self.catalog.snapshot())
            self._depth = 1
            try:
                yield
            except Exception:
                self._records, self._next_id = saved[0], saved[1]
                self.catalog.restore(saved[2])
                raise
            finally:
                self._depth = 0

    def create(self, record: MappingRecord) -> MappingRecord:
        with self.transaction():
            now = self._clock()
            stored = replace(
                record,
                id=self._next_id,
                group_type=GroupType(record.group_type),
                created_at=now,
                updated_at=now,
                sector_group_name=None,
                sector_description=None,
            )
            self._records[stored.id] = stored
            self._next_id += 1
            return self._hydrate(stored)

    def find_many(
        self,
        record_filter: RecordFilter,
        pagination: Pagination | None = None,
    ) -> tuple[list[MappingRecord], int]:
        with self._lock:
            matched = [
                record
                for record in (self._hydrate(r) for r in self._records.values())
                if self._matches(record, record_filter)
            ]
        matched = self._sorted(matched, record_filter.order_by)
        total = len(matched)
        if pagination is not None:
            matched = matched[pagination.offset : pagination.offset + pagination.limit]
        return matched, total

    def update_many(self, key: MappingKey, patch: Mapping[str, Any]) -> int:
        values = validate_patch(patch)
        if "group_type" in values:
            values["group_type"] = GroupType(values["group_type"])
        with self.transaction():
            targets = [record for record in self._records.values() if key.matches(record)]
            now = self._clock()
            for record in targets:
                self._records[record.id] = replace(record, updated_at=now, **values)
            return len(targets)

    def delete_many(self, key: MappingKey) -> int:
        with self.transaction():
            targets = [record.id for record in self._records.values() if key.matches(record)]
            for record_id in targets:
                del self._records[record_id]
            return len(targets)

    def count(self, record_filter: RecordFilter) -> int:
        return self.find_many(record_filter)[1]

    def all_records(self) -> list[MappingRecord]:
        with self._lock:
            return [self._hydrate(record) for record in self._records.values()]

    def _hydrate(self, record: MappingRecord) -> MappingRecord:
        group = self.catalog.get_group(record.group_id)
        sector = self.catalog.find_sector(record.economic_sector_code)
        return replace(
            record,
            sector_group_name=group.name if group is not None else None,
            sector_description=sector.description if sector is not None else None,
        )

    @staticmethod
    def _matches(record: MappingRecord, f: RecordFilter) -> bool:
        if f.logical_id is not None and record.logical_id != f.logical_id:
            return False
        if f.record_ids is not None and record.id not in f.record_ids:
            return False
        if f.is_active is not None and record.is_active is not f.is_active:
            return False
        if f.approved is not None and (record.approved_by is not None) is not f.approved:
            return False
        if f.ended is not None and (record.effective_end is not None) is not f.ended:
            return False
        if f.economic_sector_code is not None and record.economic_sector_code != f.economic_sector_code:
            return False
        if not _in_range(record.effective_start, f.effective_start_from, f.effective_start_before):
            return False
        if not _in_range(record.effective_end, f.effective_end_from, f.effective_end_before):
            return False
        if f.open_after is not None and record.effective_end is not None:
            if record.effective_end <= f.open_after:
                return False
        if f.created_since is not None:
            if record.created_at is None or record.created_at < f.created_since:
                return False
        if f.search and not (
            _contains(record.sector_group_name, f.search)
            or _contains(record.sector_description, f.search)
        ):
            return False
        if f.created_by and not _contains(record.created_by, f.created_by):
            return False
        return True

    @staticmethod
    def _sorted(records: list[MappingRecord], order: RecordOrder) -> list[MappingRecord]:
        if order is RecordOrder.EFFECTIVE_START_ASC:
            return sorted(
                records,
                key=lambda r: (r.effective_start is None, r.effective_start or date.min, r.id),
            )
        if order is RecordOrder.EFFECTIVE_END_ASC:
            return sorted(
                records,
                key=lambda r: (r.effective_end is None, r.effective_end or date.min, r.id),
            )
        return sorted(
            records,
            key=lambda r: (r.created_at or datetime.min.replace(tzinfo=timezone.utc), r.id),
            reverse=True,
        )


def _in_range(value: date | None, lower: date | None, upper: date | None) -> bool:
    if lower is None and upper is None:
        return True
    if value is None:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value >= upper:
        return False
    return True
