"""
app/repositories/sqlalchemy_mapping_store.py

SQLAlchemy-backed mapping store and sector catalog.

Both repositories bound to one session share a ``SessionScope`` so catalog
writes made inside ``store.transaction()`` commit or roll back with the
mapping rows.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.orm import Session

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
from db.base import utcnow
from db.models.economic_sector import EconomicSector as EconomicSectorRow
from db.models.sector_group import SectorGroup as SectorGroupRow
from db.models.sector_group_mapping import SectorGroupMapping

logger = logging.getLogger(__name__)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SessionScope:
    """
    Commit/rollback bookkeeping for one session.

    Only the outermost ``transaction()`` commits or rolls back; nested scopes
    join it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._depth = 0


def _to_record(row: SectorGroupMapping) -> MappingRecord:
    return MappingRecord(
        id=row.id,
        group_id=row.group_id,
        economic_sector_code=row.economic_sector_code,
        group_type=GroupType(row.group_type),
        group_name=row.group_name,
        priority=row.priority,
        effective_start=row.effective_start,
        effective_end=row.effective_end,
        is_active=row.is_active,
        created_by=row.created_by,
        updated_by=row.updated_by,
        approved_by=row.approved_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        sector_group_name=row.sector_group.name if row.sector_group is not None else None,
        sector_description=(
            row.economic_sector.description if row.economic_sector is not None else None
        ),
    )


def _filter_conditions(record_filter: RecordFilter) -> list[ColumnElement[bool]]:
    model = SectorGroupMapping
    conditions: list[ColumnElement[bool]] = []

    if record_filter.logical_id is not None:
        conditions.extend(_key_conditions(MappingKey.for_logical(record_filter.logical_id)))
    if record_filter.record_ids is not None:
        conditions.append(model.id.in_(record_filter.record_ids))
    if record_filter.is_active is not None:
        conditions.append(model.is_active.is_(record_filter.is_active))
    if record_filter.approved is True:
        conditions.append(model.approved_by.isnot(None))
    elif record_filter.approved is False:
        conditions.append(model.approved_by.is_(None))
    if record_filter.ended is True:
        conditions.append(model.effective_end.isnot(None))
    elif record_filter.ended is False:
        conditions.append(model.effective_end.is_(None))
    if record_filter.economic_sector_code is not None:
        conditions.append(model.economic_sector_code == record_filter.economic_sector_code)
    if record_filter.effective_start_from is not None:
        conditions.append(model.effective_start >= record_filter.effective_start_from)
    if record_filter.effective_start_before is not None:
        conditions.append(model.effective_start < record_filter.effective_start_before)
    if record_filter.effective_end_from is not None:
        conditions.append(model.effective_end >= record_filter.effective_end_from)
    if record_filter.effective_end_before is not None:
        conditions.append(model.effective_end < record_filter.effective_end_before)
    if record_filter.open_after is not None:
        conditions.append(
            or_(model.effective_end.is_(None), model.effective_end > record_filter.open_after)
        )
    if record_filter.created_since is not None:
        conditions.append(model.created_at >= record_filter.created_since)
    if record_filter.search:
        pattern = _like_pattern(record_filter.search)
        conditions.append(
            or_(
                model.sector_group.has(SectorGroupRow.name.ilike(pattern, escape="\\")),
                model.economic_sector.has(
                    EconomicSectorRow.description.ilike(pattern, escape="\\")
                ),
            )
        )
    if record_filter.created_by:
        conditions.append(
            model.created_by.ilike(_like_pattern(record_filter.created_by), escape="\\")
        )

    return conditions


def _order_clauses(order: RecordOrder) -> tuple[Any, ...]:
    model = SectorGroupMapping
    if order is RecordOrder.EFFECTIVE_START_ASC:
        return (model.effective_start.asc(), model.id.asc())
    if order is RecordOrder.EFFECTIVE_END_ASC:
        return (model.effective_end.asc(), model.id.asc())
    return (model.created_at.desc(), model.id.desc())


def _key_conditions(key: MappingKey) -> list[ColumnElement[bool]]:
    model = SectorGroupMapping
    if key.logical_id is None:
        return [model.id.in_(key.ids or ())]

    logical_id = key.logical_id
    start_condition = (
        model.effective_start.is_(None)
        if logical_id.effective_start is None
        else model.effective_start == logical_id.effective_start
    )
    return [
        model.group_id == logical_id.group_id,
        model.group_name == logical_id.group_name,
        start_condition,
    ]


class SQLAlchemyMappingStore:
    """
    Mapping store over the ``sector_group_mappings`` table.
    """

    def __init__(self, session: Session, *, scope: SessionScope | None = None) -> None:
        self._session = session
        self._scope = scope or SessionScope(session)

    @property
    def scope(self) -> SessionScope:
        return self._scope

    def transaction(self) -> AbstractContextManager[None]:
        return self._scope.transaction()

    def create(self, record: MappingRecord) -> MappingRecord:
        row = SectorGroupMapping(
            group_id=record.group_id,
            economic_sector_code=record.economic_sector_code,
            group_type=GroupType(record.group_type).value,
            group_name=record.group_name,
            priority=record.priority,
            effective_start=record.effective_start,
            effective_end=record.effective_end,
            is_active=record.is_active,
            created_by=record.created_by,
            updated_by=record.updated_by,
            approved_by=record.approved_by,
        )
        with self._scope.transaction():
            self._session.add(row)
            self._session.flush()
            self._session.refresh(row)
            return _to_record(row)

    def find_many(
        self,
        record_filter: RecordFilter,
        pagination: Pagination | None = None,
    ) -> tuple[list[MappingRecord], int]:
        conditions = _filter_conditions(record_filter)

        stmt = (
            select(SectorGroupMapping)
            .where(*conditions)
            .order_by(*_order_clauses(record_filter.order_by))
            .execution_options(populate_existing=True)
        )
        if pagination is not None:
            stmt = stmt.offset(pagination.offset).limit(pagination.limit)

        rows = self._session.scalars(stmt).all()
        records = [_to_record(row) for row in rows]

        if pagination is None:
            total = len(records)
        else:
            total = self.count(record_filter)
        return records, total

    def update_many(self, key: MappingKey, patch: Mapping[str, Any]) -> int:
        values = validate_patch(patch)
        if key.ids is not None and not key.ids:
            return 0
        if "group_type" in values:
            values["group_type"] = GroupType(values["group_type"]).value
        values["updated_at"] = utcnow()

        stmt = (
            update(SectorGroupMapping)
            .where(*_key_conditions(key))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._scope.transaction():
            result = self._session.execute(stmt)
            return int(result.rowcount or 0)

    def delete_many(self, key: MappingKey) -> int:
        if key.ids is not None and not key.ids:
            return 0
        stmt = (
            delete(SectorGroupMapping)
            .where(*_key_conditions(key))
            .execution_options(synchronize_session=False)
        )
        with self._scope.transaction():
            result = self._session.execute(stmt)
            return int(result.rowcount or 0)

    def count(self, record_filter: RecordFilter) -> int:
        stmt = (
            select(func.count(SectorGroupMapping.id))
            .select_from(SectorGroupMapping)
            .where(*_filter_conditions(record_filter))
        )
        return int(self._session.scalar(stmt) or 0)


def _to_group(row: SectorGroupRow) -> SectorGroup:
    return SectorGroup(
        id=row.id,
        name=row.name,
        description=row.description,
        is_active=row.is_active,
        created_by=row.created_by,
    )


def _to_sector(row: EconomicSectorRow) -> EconomicSector:
    return EconomicSector(code=row.code, description=row.description)


class SQLAlchemySectorCatalog:
    """
    Economic sector and sector group lookups.
    """

    def __init__(self, session: Session, *, scope: SessionScope | None = None) -> None:
        self._session = session
        self._scope = scope or SessionScope(session)

    def find_sector(self, code: str) -> EconomicSector | None:
        row = self._session.get(EconomicSectorRow, code)
        return _to_sector(row) if row is not None else None

    def find_group_by_name(self, name: str) -> SectorGroup | None:
        stmt = select(SectorGroupRow).where(SectorGroupRow.name == name).limit(1)
        row = self._session.scalars(stmt).first()
        return _to_group(row) if row is not None else None

    def create_group(
        self,
        *,
        name: str,
        actor: str,
        description: str | None = None,
    ) -> SectorGroup:
        row = SectorGroupRow(
            name=name,
            description=description,
            is_active=True,
            created_by=actor,
        )
        with self._scope.transaction():
            self._session.add(row)
            self._session.flush()
            logger.info("Created sector group id=%s name=%r", row.id, name)
            return _to_group(row)

    def list_groups(self, *, active_only: bool = True) -> Sequence[SectorGroup]:
        stmt = select(SectorGroupRow)
        if active_only:
            stmt = stmt.where(SectorGroupRow.is_active.is_(True))
        stmt = stmt.order_by(SectorGroupRow.name.asc())
        return [_to_group(row) for row in self._session.scalars(stmt).all()]

    def list_sectors(self) -> Sequence[EconomicSector]:
        stmt = select(EconomicSectorRow).order_by(EconomicSectorRow.code.asc())
        return [_to_sector(row) for row in self._session.scalars(stmt).all()]


def build_sqlalchemy_repositories(
    session: Session,
) -> tuple[SQLAlchemyMappingStore, SQLAlchemySectorCatalog]:
    """
    Build a store and catalog that share one transaction scope.
    """

    scope = SessionScope(session)
    return (
        SQLAlchemyMappingStore(session, scope=scope),
        SQLAlchemySectorCatalog(session, scope=scope),
    )
