"""
app/services/mapping_grouping.py

Collapse stored mapping rows into logical mappings.

Rows sharing (group_id, group_name, effective_start) form one logical
mapping. A missing effective_start is its own partition, distinct from every
real date. Output keeps the order in which partitions are first seen.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.domain.sector_mapping import (
    LogicalMapping,
    LogicalMappingId,
    MappingRecord,
    MappingStatus,
)


def derive_status(record: MappingRecord) -> MappingStatus:
    if not record.is_active:
        if record.approved_by is None:
            return MappingStatus.DRAFT
        return MappingStatus.PENDING_APPROVAL
    if record.effective_end is None:
        return MappingStatus.ACTIVE
    return MappingStatus.APPROVED


def group_to_logical(records: Iterable[MappingRecord]) -> list[LogicalMapping]:
    partitions: dict[LogicalMappingId, list[MappingRecord]] = {}
    for record in records:
        partitions.setdefault(record.logical_id, []).append(record)

    return [_build_logical(key, members) for key, members in partitions.items()]


def _build_logical(key: LogicalMappingId, members: list[MappingRecord]) -> LogicalMapping:
    first = members[0]
    sector_groups = sorted(
        {member.sector_group_name for member in members if member.sector_group_name}
    )
    return LogicalMapping(
        id=key,
        group_type=first.group_type,
        sector_codes=tuple(sorted({member.economic_sector_code for member in members})),
        sector_groups=tuple(sector_groups),
        status=derive_status(first),
        priority=first.priority,
        effective_start=first.effective_start,
        effective_end=first.effective_end,
        created_by=first.created_by,
        updated_by=first.updated_by,
        approved_by=first.approved_by,
        created_at=first.created_at,
        updated_at=first.updated_at,
    )
