"""
tests/test_sqlalchemy_mapping_store.py

SQLAlchemy store and catalog against an in-memory SQLite database.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers all ORM models on Base.metadata
from app.domain.sector_mapping import (
    BatchImportRow,
    GroupType,
    MappingKey,
    Pagination,
    RecordFilter,
    RecordOrder,
)
from app.errors import SectorReferenceError
from app.repositories.sqlalchemy_mapping_store import (
    SQLAlchemyMappingStore,
    SQLAlchemySectorCatalog,
    build_sqlalchemy_repositories,
)
from app.services.sector_mapping_service import SectorMappingService
from app.services.sector_transition_service import SectorTransitionService
from db.base import Base
from db.models import EconomicSector, SectorGroup
from tests.conftest import fixed_clock, make_record


@pytest.fixture()
def session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    db = Session(engine, expire_on_commit=False, autoflush=False)
    db.add_all(
        [
            EconomicSector(code="A01", description="Crop and animal production"),
            EconomicSector(code="B02", description="Mining of coal"),
            SectorGroup(id=1, name="Non KLM", created_by="seed"),
            SectorGroup(id=2, name="Green", created_by="seed"),
            SectorGroup(id=3, name="Agriculture", created_by="seed"),
            SectorGroup(id=4, name="Retired", is_active=False, created_by="seed"),
        ]
    )
    db.commit()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def sql_store(session: Session) -> SQLAlchemyMappingStore:
    store, _ = build_sqlalchemy_repositories(session)
    return store


@pytest.fixture()
def sql_catalog(session: Session) -> SQLAlchemySectorCatalog:
    _, catalog = build_sqlalchemy_repositories(session)
    return catalog


class TestStore:
    def test_create_assigns_id_timestamps_and_joined_names(self, sql_store) -> None:
        record = sql_store.create(make_record(sector="A01"))

        assert record.id is not None
        assert record.created_at is not None
        assert record.group_type is GroupType.SPECIFIC_SECTOR
        assert record.sector_group_name == "Agriculture"
        assert record.sector_description == "Crop and animal production"

    def test_find_by_logical_id_and_paginate(self, sql_store) -> None:
        first = sql_store.create(make_record(sector="A01"))
        sql_store.create(make_record(sector="B02"))
        sql_store.create(make_record(sector="A01", group_name="Other"))

        records, total = sql_store.find_many(RecordFilter(logical_id=first.logical_id))
        page, page_total = sql_store.find_many(RecordFilter(), Pagination(page=2, limit=2))

        assert sorted(r.economic_sector_code for r in records) == ["A01", "B02"]
        assert total == 2
        assert page_total == 3
        assert [r.id for r in page] == [first.id]

    def test_update_many_by_logical_key(self, sql_store) -> None:
        first = sql_store.create(make_record(sector="A01"))
        sql_store.create(make_record(sector="B02"))
        other = sql_store.create(make_record(sector="A01", group_name="Other"))

        count = sql_store.update_many(
            MappingKey.for_logical(first.logical_id),
            {"is_active": True, "approved_by": "carol", "updated_by": "carol"},
        )

        assert count == 2
        active, _ = sql_store.find_many(RecordFilter(is_active=True))
        assert {r.logical_id for r in active} == {first.logical_id}
        assert all(r.approved_by == "carol" for r in active)
        (untouched,) = sql_store.find_many(RecordFilter(record_ids=(other.id,)))[0]
        assert untouched.is_active is False

    def test_update_many_rejects_unknown_fields(self, sql_store) -> None:
        with pytest.raises(ValueError):
            sql_store.update_many(MappingKey.for_ids([1]), {"economic_sector_code": "B02"})

    def test_empty_id_key_touches_nothing(self, sql_store) -> None:
        sql_store.create(make_record())

        assert sql_store.update_many(MappingKey.for_ids([]), {"priority": 3}) == 0
        assert sql_store.delete_many(MappingKey.for_ids([])) == 0
        assert sql_store.count(RecordFilter()) == 1

    def test_delete_many(self, sql_store) -> None:
        keep = sql_store.create(make_record(sector="A01", group_name="Keep"))
        drop = sql_store.create(make_record(sector="A01"))
        sql_store.create(make_record(sector="B02"))

        assert sql_store.delete_many(MappingKey.for_logical(drop.logical_id)) == 2
        remaining, _ = sql_store.find_many(RecordFilter())
        assert [r.id for r in remaining] == [keep.id]

    def test_status_and_window_filters(self, sql_store) -> None:
        sql_store.create(make_record(sector="A01", group_name="Draft"))
        sql_store.create(make_record(sector="A01", group_name="Pending", approved_by="bob"))
        sql_store.create(make_record(sector="B02", group_name="Live", is_active=True))
        sql_store.create(
            make_record(sector="B02", group_name="Closing", is_active=True, effective_end=date(2024, 3, 1))
        )

        def names(record_filter: RecordFilter) -> list[str]:
            return sorted(r.group_name for r in sql_store.find_many(record_filter)[0])

        assert names(RecordFilter(is_active=False, approved=False)) == ["Draft"]
        assert names(RecordFilter(is_active=False, approved=True)) == ["Pending"]
        assert names(RecordFilter(is_active=True, ended=False)) == ["Live"]
        assert names(RecordFilter(ended=True)) == ["Closing"]
        assert names(
            RecordFilter(effective_end_from=date(2024, 3, 1), effective_end_before=date(2024, 3, 2))
        ) == ["Closing"]
        assert names(RecordFilter(open_after=date(2024, 3, 1))) == ["Draft", "Live", "Pending"]
        assert names(RecordFilter(economic_sector_code="B02")) == ["Closing", "Live"]

    def test_search_and_created_by_are_case_insensitive(self, sql_store) -> None:
        sql_store.create(make_record(sector="A01", group_id=1, group_name="Non KLM", created_by="Alice"))
        sql_store.create(make_record(sector="B02", group_id=2, group_name="Green", created_by="bob"))

        by_description = sql_store.find_many(RecordFilter(search="COAL"))[0]
        by_group = sql_store.find_many(RecordFilter(search="klm"))[0]
        by_creator = sql_store.find_many(RecordFilter(created_by="ALI"))[0]
        literal_percent = sql_store.find_many(RecordFilter(search="%"))[0]

        assert [r.economic_sector_code for r in by_description] == ["B02"]
        assert [r.economic_sector_code for r in by_group] == ["A01"]
        assert [r.created_by for r in by_creator] == ["Alice"]
        assert literal_percent == []

    def test_order_by_effective_dates(self, sql_store) -> None:
        late = sql_store.create(make_record(sector="A01", effective_start=date(2024, 5, 1)))
        early = sql_store.create(make_record(sector="B02", effective_start=date(2024, 2, 1)))

        records, _ = sql_store.find_many(RecordFilter(order_by=RecordOrder.EFFECTIVE_START_ASC))

        assert [r.id for r in records] == [early.id, late.id]

    def test_transaction_rolls_back_on_error(self, sql_store) -> None:
        with pytest.raises(RuntimeError):
            with sql_store.transaction():
                sql_store.create(make_record(sector="A01"))
                with sql_store.transaction():
                    sql_store.create(make_record(sector="B02"))
                raise RuntimeError("abort")

        assert sql_store.count(RecordFilter()) == 0

    def test_nested_scope_commits_with_outer(self, sql_store, session) -> None:
        with sql_store.transaction():
            with sql_store.transaction():
                sql_store.create(make_record(sector="A01"))
            assert session.in_transaction()

        assert sql_store.count(RecordFilter()) == 1


class TestCatalog:
    def test_lookups(self, sql_catalog) -> None:
        assert sql_catalog.find_sector("A01").description == "Crop and animal production"
        assert sql_catalog.find_sector("Z99") is None
        assert sql_catalog.find_group_by_name("Green").id == 2
        assert sql_catalog.find_group_by_name("Nope") is None

    def test_list_groups_hides_inactive(self, sql_catalog) -> None:
        assert [g.name for g in sql_catalog.list_groups()] == ["Agriculture", "Green", "Non KLM"]
        assert "Retired" in [g.name for g in sql_catalog.list_groups(active_only=False)]

    def test_create_group(self, sql_catalog) -> None:
        group = sql_catalog.create_group(name="Mining", actor="importer", description="Auto")

        assert group.id is not None
        assert sql_catalog.find_group_by_name("Mining") == group


class TestServicesOverSQL:
    def test_batch_import_and_transition_end_to_end(self, session) -> None:
        store, catalog = build_sqlalchemy_repositories(session)
        mappings = SectorMappingService(store, catalog, clock=fixed_clock)
        transitions = SectorTransitionService(store, clock=fixed_clock)
        current = store.create(make_record(sector="A01", is_active=True, approved_by="bob"))

        result = mappings.batch_import(
            [BatchImportRow("A01", GroupType.SPECIFIC_SECTOR, "Forestry", date(2024, 3, 1))],
            actor="importer",
        )
        mappings.approve_mappings([result.mappings[0].id], actor="carol")
        report = transitions.run_transitions(date(2024, 3, 1))

        active, _ = store.find_many(RecordFilter(is_active=True))
        superseded = store.find_many(RecordFilter(record_ids=(current.id,)))[0][0]
        assert [r.group_name for r in active] == ["Forestry"]
        assert superseded.effective_end == date(2024, 3, 1)
        assert report.transitions == []

    def test_batch_import_rolls_back_created_group(self, session) -> None:
        store, catalog = build_sqlalchemy_repositories(session)
        service = SectorMappingService(store, catalog, clock=fixed_clock)

        with pytest.raises(SectorReferenceError):
            service.batch_import(
                [
                    BatchImportRow("A01", GroupType.SPECIFIC_SECTOR, "Forestry", date(2024, 3, 1)),
                    BatchImportRow("Z99", GroupType.GREEN, "Green", date(2024, 3, 1)),
                ],
                actor="importer",
            )

        assert catalog.find_group_by_name("Forestry") is None
        assert store.count(RecordFilter()) == 0
