"""
app/services/sector_mapping_service.py

CRUD, approval, deletion and batch import of sector group mappings.

Callers address a mapping by its logical id; every operation fans out to the
stored rows sharing that id. Approve and delete treat each id independently:
a later id failing does not undo earlier ones. Batch import is all-or-nothing.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from app.domain.sector_mapping import (
    DATE_RANGE_DAYS,
    UNSET,
    ApprovalResult,
    BatchImportResult,
    BatchImportRow,
    CreateMappingRequest,
    DateRange,
    DeletionResult,
    EconomicSector,
    LogicalMapping,
    LogicalMappingId,
    MappingKey,
    MappingListFilter,
    MappingPage,
    MappingRecord,
    MappingStats,
    MappingUpdate,
    Pagination,
    RecordFilter,
    SectorGroup,
    StatusFilter,
)
from app.errors import MappingNotFoundError, MappingValidationError, SectorReferenceError
from app.logging_utils import audit
from app.repositories.mapping_store import MappingStore, SectorCatalog
from app.services.mapping_grouping import group_to_logical
from app.validators.group_name_validator import (
    parse_group_type,
    resolve_group_name,
    validate_import_group_name,
)

logger = logging.getLogger(__name__)

_STATUS_PREDICATES: dict[StatusFilter, dict[str, bool]] = {
    StatusFilter.DRAFT: {"is_active": False, "approved": False},
    StatusFilter.PENDING_APPROVAL: {"is_active": False, "approved": True},
    StatusFilter.ACTIVE: {"is_active": True, "ended": False},
    StatusFilter.APPROVED: {"is_active": True, "ended": True},
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _check_window(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end < start:
        raise MappingValidationError(
            "effective_end cannot be before effective_start.",
            context={"effective_start": start.isoformat(), "effective_end": end.isoformat()},
        )


def parse_logical_ids(ids: Iterable[Any]) -> list[LogicalMappingId]:
    """
    Parse every id up front so a malformed one rejects the request before
    anything is mutated.
    """

    return [
        value if isinstance(value, LogicalMappingId) else LogicalMappingId.parse(value)
        for value in ids
    ]


@dataclass
class _ImportLookups:
    sectors: dict[str, EconomicSector | None]
    groups: dict[str, SectorGroup]


class SectorMappingService:
    """
    Orchestrates the mapping lifecycle over an injected store and catalog.
    """

    def __init__(
        self,
        store: MappingStore,
        catalog: SectorCatalog,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_mappings(
        self,
        mapping_filter: MappingListFilter | None = None,
        pagination: Pagination | None = None,
    ) -> MappingPage:
        mapping_filter = mapping_filter or MappingListFilter()
        pagination = pagination or Pagination()

        records, total = self._store.find_many(self._to_record_filter(mapping_filter), pagination)
        return MappingPage(
            items=group_to_logical(records),
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=math.ceil(total / pagination.limit),
        )

    def _to_record_filter(self, mapping_filter: MappingListFilter) -> RecordFilter:
        try:
            status = StatusFilter(mapping_filter.status)
            date_range = DateRange(mapping_filter.date_range)
        except ValueError as exc:
            raise MappingValidationError(str(exc)) from exc

        return RecordFilter(
            **_STATUS_PREDICATES.get(status, {}),
            created_since=self._created_since(date_range),
            search=_clean(mapping_filter.sector_code),
            created_by=_clean(mapping_filter.created_by),
        )

    def _created_since(self, date_range: DateRange) -> datetime | None:
        if date_range is DateRange.ALL:
            return None
        now = self._clock()
        if date_range is DateRange.TODAY:
            return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        return now - timedelta(days=DATE_RANGE_DAYS[date_range])

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def create_mapping(self, request: CreateMappingRequest, actor: str) -> LogicalMapping:
        group_type = parse_group_type(request.group_type)
        group_name = resolve_group_name(group_type, request.group_name)
        _check_window(request.effective_start, request.effective_end)

        sector_codes = list(dict.fromkeys(code.strip() for code in request.sector_codes if code.strip()))
        if not sector_codes:
            raise MappingValidationError("At least one economic sector code is required.")

        with self._store.transaction():
            created = [
                self._store.create(
                    MappingRecord(
                        group_id=request.group_id,
                        economic_sector_code=code,
                        group_type=group_type,
                        group_name=group_name,
                        priority=request.priority,
                        effective_start=request.effective_start,
                        effective_end=request.effective_end,
                        is_active=False,
                        created_by=actor,
                    )
                )
                for code in sector_codes
            ]

        mapping = group_to_logical(created)[0]
        audit(
            "mapping_created",
            mapping_id=mapping.id.format(),
            sector_codes=list(mapping.sector_codes),
            actor=actor,
        )
        return mapping

    def update_mapping(
        self,
        logical_id: str | LogicalMappingId,
        changes: MappingUpdate,
        actor: str,
    ) -> LogicalMapping:
        key = parse_logical_ids([logical_id])[0]

        with self._store.transaction():
            existing, _ = self._store.find_many(RecordFilter(logical_id=key))
            if not existing:
                raise MappingNotFoundError(
                    f"Sector mapping not found: {key.format()}",
                    context={"id": key.format()},
                )
            first = existing[0]

            patch: dict[str, Any] = {"updated_by": actor}
            if changes.group_type is not None:
                group_type = parse_group_type(changes.group_type)
                supplied = changes.group_name if changes.group_name is not None else first.group_name
                patch["group_type"] = group_type
                patch["group_name"] = resolve_group_name(group_type, supplied)
            elif changes.group_name is not None:
                patch["group_name"] = resolve_group_name(first.group_type, changes.group_name)
            if changes.priority is not None:
                patch["priority"] = changes.priority
            if changes.effective_start is not None:
                patch["effective_start"] = changes.effective_start
            if changes.effective_end is not UNSET:
                patch["effective_end"] = changes.effective_end

            _check_window(
                patch.get("effective_start", first.effective_start),
                patch.get("effective_end", first.effective_end),
            )

            self._store.update_many(MappingKey.for_logical(key), patch)
            updated, _ = self._store.find_many(
                RecordFilter(record_ids=tuple(record.id for record in existing))
            )

        mapping = group_to_logical(updated)[0]
        audit(
            "mapping_updated",
            mapping_id=key.format(),
            new_mapping_id=mapping.id.format(),
            fields=sorted(patch),
            actor=actor,
        )
        return mapping

    # ------------------------------------------------------------------
    # Approve / delete
    # ------------------------------------------------------------------

    def approve_mappings(self, ids: Sequence[str | LogicalMappingId], actor: str) -> ApprovalResult:
        approved_count = 0
        for key in parse_logical_ids(ids):
            count = self._store.update_many(
                MappingKey.for_logical(key),
                {"is_active": True, "approved_by": actor, "updated_by": actor},
            )
            if count == 0:
                logger.warning("Approve matched no records id=%s", key.format())
                continue
            approved_count += count
            audit("mapping_approved", mapping_id=key.format(), records=count, actor=actor)
        return ApprovalResult(approved_count=approved_count)

    def delete_mappings(self, ids: Sequence[str | LogicalMappingId]) -> DeletionResult:
        deleted_count = 0
        for key in parse_logical_ids(ids):
            count = self._store.delete_many(MappingKey.for_logical(key))
            if count == 0:
                logger.warning("Delete matched no records id=%s", key.format())
                continue
            deleted_count += count
            audit("mapping_deleted", mapping_id=key.format(), records=count)
        return DeletionResult(deleted_count=deleted_count)

    # ------------------------------------------------------------------
    # Batch import
    # ------------------------------------------------------------------

    def batch_import(self, rows: Sequence[BatchImportRow], actor: str) -> BatchImportResult:
        """
        Import parsed rows in one transaction.

        For each row the sector must exist, the group-name rule must hold,
        the target group is found or created by name, the sector's current
        active records are closed at the row's start date, and a new draft is
        created. Any failing row rolls back the whole batch.
        """

        if not rows:
            return BatchImportResult(uploaded_count=0, mappings=[])

        lookups = _ImportLookups(sectors={}, groups={})
        created: list[MappingRecord] = []
        superseded_total = 0

        with self._store.transaction():
            for row_number, row in enumerate(rows, start=1):
                record, superseded = self._import_row(row_number, row, actor, lookups)
                created.append(record)
                superseded_total += superseded

        mappings = group_to_logical(created)
        logger.info(
            "Batch import committed rows=%d superseded=%d actor=%s",
            len(created),
            superseded_total,
            actor,
        )
        audit(
            "mapping_batch_imported",
            rows=len(created),
            superseded=superseded_total,
            mapping_ids=[mapping.id.format() for mapping in mappings],
            actor=actor,
        )
        return BatchImportResult(uploaded_count=len(created), mappings=mappings)

    def _import_row(
        self,
        row_number: int,
        row: BatchImportRow,
        actor: str,
        lookups: _ImportLookups,
    ) -> tuple[MappingRecord, int]:
        sector_code = row.sector_code.strip()
        if sector_code not in lookups.sectors:
            lookups.sectors[sector_code] = self._catalog.find_sector(sector_code)
        if lookups.sectors[sector_code] is None:
            raise SectorReferenceError(
                f"Economic sector {sector_code!r} not found (row {row_number}).",
                context={"row": row_number, "sector_code": sector_code},
            )

        group_type = parse_group_type(row.group_type)
        group_name = validate_import_group_name(group_type, row.group_name)

        group = lookups.groups.get(group_name) or self._catalog.find_group_by_name(group_name)
        if group is None:
            group = self._catalog.create_group(
                name=group_name,
                actor=actor,
                description=f"Auto-created for {group_type.label}",
            )
        lookups.groups[group_name] = group

        active, _ = self._store.find_many(
            RecordFilter(is_active=True, economic_sector_code=sector_code)
        )
        superseded = 0
        if active:
            superseded = self._store.update_many(
                MappingKey.for_ids(record.id for record in active),
                {"is_active": False, "effective_end": row.effective_start, "updated_by": actor},
            )
            audit(
                "mapping_superseded",
                sector_code=sector_code,
                record_ids=[record.id for record in active],
                effective_end=row.effective_start,
                actor=actor,
            )

        record = self._store.create(
            MappingRecord(
                group_id=group.id,
                economic_sector_code=sector_code,
                group_type=group_type,
                group_name=group_name,
                effective_start=row.effective_start,
                is_active=False,
                created_by=actor,
            )
        )
        return record, superseded

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def get_stats(self, today: date | None = None) -> MappingStats:
        today = today or self._clock().date()
        return MappingStats(
            total=self._store.count(RecordFilter()),
            active=self._store.count(RecordFilter(is_active=True, ended=False)),
            pending=self._store.count(RecordFilter(is_active=False, approved=True)),
            draft=self._store.count(RecordFilter(is_active=False, approved=False)),
            upcoming_effective=self._store.count(
                RecordFilter(is_active=True, effective_start_from=today + timedelta(days=1))
            ),
        )

    def get_active_mappings_for_template(self) -> list[MappingRecord]:
        """
        Latest active record per economic sector, ordered by sector code.
        """

        records, _ = self._store.find_many(RecordFilter(is_active=True))
        latest: dict[str, MappingRecord] = {}
        for record in records:
            current = latest.get(record.economic_sector_code)
            if current is None or _recency(record) > _recency(current):
                latest[record.economic_sector_code] = record
        return [latest[code] for code in sorted(latest)]

    def list_sector_groups(self) -> list[SectorGroup]:
        return list(self._catalog.list_groups(active_only=True))

    def list_economic_sectors(self) -> list[EconomicSector]:
        return list(self._catalog.list_sectors())


def _recency(record: MappingRecord) -> tuple[date, float, int]:
    created = record.created_at.timestamp() if record.created_at is not None else 0.0
    return (record.effective_start or date.min, created, record.id or 0)

