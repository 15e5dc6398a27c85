"""
tests/test_sector_transition_service.py

Pytest tests for the date-driven transition engine over the in-memory store.
"""

from __future__ import annotations

import json
import logging
from datetime import date

import pytest

from app.domain.sector_mapping import SYSTEM_TRANSITION_ACTOR
from app.domain.transitions import TransitionAction
from app.errors import MappingValidationError, TransitionFailure
from app.logging_utils import AUDIT_LOGGER_NAME
from app.repositories.memory_mapping_store import InMemoryMappingStore
from app.services.sector_transition_service import SectorTransitionService
from tests.conftest import fixed_clock, make_record

AS_OF = date(2024, 3, 1)


def _by_id(store: InMemoryMappingStore) -> dict:
    return {record.id: record for record in store.all_records()}


class TestRunTransitions:
    def test_deactivates_record_ending_today(self, store, transition_service) -> None:
        record = store.create(make_record(sector="A01", is_active=True, approved_by="bob", effective_end=AS_OF))

        report = transition_service.run_transitions(AS_OF)

        assert report.deactivated_count == 1
        assert report.activated_count == 0
        (entry,) = report.transitions
        assert entry.economic_sector_code == "A01"
        assert entry.action is TransitionAction.DEACTIVATED
        assert entry.mapping.id == record.id
        updated = _by_id(store)[record.id]
        assert updated.is_active is False
        assert updated.updated_by == SYSTEM_TRANSITION_ACTOR

    def test_activates_approved_record_starting_today(self, store, transition_service) -> None:
        record = store.create(make_record(sector="B02", effective_start=AS_OF, approved_by="alice"))

        report = transition_service.run_transitions(AS_OF)

        assert report.activated_count == 1
        (entry,) = report.transitions
        assert entry.action is TransitionAction.ACTIVATED
        assert entry.economic_sector_code == "B02"
        assert entry.mapping.effective_start == AS_OF
        assert _by_id(store)[record.id].is_active is True

    def test_second_run_same_day_is_a_no_op(self, store, transition_service) -> None:
        store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))
        store.create(make_record(sector="A01", group_name="Successor", effective_start=AS_OF, approved_by="alice"))

        first = transition_service.run_transitions(AS_OF)
        second = transition_service.run_transitions(AS_OF)

        assert (first.deactivated_count, first.activated_count) == (1, 1)
        assert (second.deactivated_count, second.activated_count) == (0, 0)
        assert second.transitions == []

    def test_deactivation_entries_precede_activations(self, store, transition_service) -> None:
        store.create(make_record(sector="A01", group_name="Successor", effective_start=AS_OF, approved_by="alice"))
        store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))

        report = transition_service.run_transitions(AS_OF)

        assert [e.action for e in report.transitions] == [
            TransitionAction.DEACTIVATED,
            TransitionAction.ACTIVATED,
        ]
        active = [r for r in store.all_records() if r.is_active]
        assert [r.group_name for r in active] == ["Successor"]

    def test_ignores_drafts_and_other_days(self, store, transition_service) -> None:
        store.create(make_record(sector="A01", effective_start=AS_OF))
        store.create(make_record(sector="B02", effective_start=date(2024, 3, 2), approved_by="alice"))
        store.create(make_record(sector="C03", is_active=True, effective_end=date(2024, 2, 29)))

        report = transition_service.run_transitions(AS_OF)

        assert report.transitions == []

    def test_window_opening_and_closing_same_day_is_not_flipped_back(self, store, transition_service) -> None:
        live = store.create(
            make_record(sector="A01", is_active=True, approved_by="bob", effective_start=AS_OF, effective_end=AS_OF)
        )
        pending = store.create(
            make_record(sector="B02", approved_by="bob", effective_start=AS_OF, effective_end=AS_OF)
        )

        report = transition_service.run_transitions(AS_OF)
        again = transition_service.run_transitions(AS_OF)

        assert [(e.mapping.id, e.action) for e in report.transitions] == [
            (live.id, TransitionAction.DEACTIVATED)
        ]
        assert again.transitions == []
        records = _by_id(store)
        assert records[live.id].is_active is False
        assert records[pending.id].is_active is False

    def test_defaults_to_clock_date(self, store, transition_service) -> None:
        store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))

        report = transition_service.run_transitions()

        assert report.as_of == AS_OF
        assert report.deactivated_count == 1

    def test_emits_one_audit_event_per_entry(self, store, transition_service, caplog) -> None:
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
        store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))
        store.create(make_record(sector="B02", effective_start=AS_OF, approved_by="alice"))

        transition_service.run_transitions(AS_OF)

        events = [
            json.loads(r.getMessage())
            for r in caplog.records
            if r.name == AUDIT_LOGGER_NAME
        ]
        assert [(e["event"], e["sector_code"], e["action"]) for e in events] == [
            ("sector_transition", "A01", "deactivated"),
            ("sector_transition", "B02", "activated"),
        ]
        assert all(e["actor"] == SYSTEM_TRANSITION_ACTOR for e in events)


class _FailOnActivationStore(InMemoryMappingStore):
    def update_many(self, key, patch):
        if patch.get("is_active") is True:
            raise RuntimeError("connection reset")
        return super().update_many(key, patch)


def test_failure_rolls_back_whole_run(catalog) -> None:
    store = _FailOnActivationStore(catalog, clock=fixed_clock)
    ending = store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))
    store.create(make_record(sector="B02", effective_start=AS_OF, approved_by="alice"))
    service = SectorTransitionService(store, clock=fixed_clock)

    with pytest.raises(TransitionFailure) as excinfo:
        service.run_transitions(AS_OF)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert _by_id(store)[ending.id].is_active is True
    assert _by_id(store)[ending.id].updated_by is None


class TestTriggerTransition:
    def test_closes_active_and_opens_records_starting_on_date(self, store, transition_service) -> None:
        current = store.create(make_record(sector="A01", is_active=True, approved_by="bob"))
        successor = store.create(make_record(sector="A01", group_name="Next", effective_start=date(2024, 4, 1)))
        other = store.create(make_record(sector="B02", is_active=True))

        report = transition_service.trigger_transition("A01", date(2024, 4, 1), actor="ops")

        records = _by_id(store)
        assert records[current.id].is_active is False
        assert records[current.id].effective_end == date(2024, 4, 1)
        assert records[current.id].updated_by == "ops"
        assert records[successor.id].is_active is True
        assert records[successor.id].updated_by == "ops"
        assert records[other.id].is_active is True
        assert (report.deactivated_count, report.activated_count) == (1, 1)
        assert report.as_of == date(2024, 4, 1)

    def test_blank_sector_code_is_rejected(self, transition_service) -> None:
        with pytest.raises(MappingValidationError):
            transition_service.trigger_transition("  ", date(2024, 4, 1), actor="ops")

    def test_unknown_sector_yields_empty_report(self, store, transition_service) -> None:
        store.create(make_record(sector="A01", is_active=True))

        report = transition_service.trigger_transition("Z99", date(2024, 4, 1), actor="ops")

        assert report.transitions == []


class TestUpcomingTransitions:
    def test_lists_window_in_date_order(self, store, transition_service) -> None:
        late_end = store.create(make_record(sector="A01", is_active=True, effective_end=date(2024, 3, 8)))
        early_end = store.create(make_record(sector="B02", is_active=True, effective_end=date(2024, 3, 2)))
        store.create(make_record(sector="C03", is_active=True, effective_end=date(2024, 3, 9)))
        late_start = store.create(make_record(sector="A01", group_name="Later", effective_start=date(2024, 3, 6)))
        early_start = store.create(make_record(sector="B02", group_name="Sooner", effective_start=date(2024, 3, 1)))
        store.create(make_record(sector="C03", group_name="Too late", effective_start=date(2024, 3, 20)))

        upcoming = transition_service.get_upcoming_transitions(7)

        assert [r.id for r in upcoming.upcoming_deactivations] == [early_end.id, late_end.id]
        assert [r.id for r in upcoming.upcoming_activations] == [early_start.id, late_start.id]

    def test_zero_days_covers_today_only(self, store, transition_service) -> None:
        today = store.create(make_record(sector="A01", is_active=True, effective_end=AS_OF))
        store.create(make_record(sector="B02", is_active=True, effective_end=date(2024, 3, 2)))

        upcoming = transition_service.get_upcoming_transitions(0)

        assert [r.id for r in upcoming.upcoming_deactivations] == [today.id]

    def test_negative_days_rejected(self, transition_service) -> None:
        with pytest.raises(MappingValidationError):
            transition_service.get_upcoming_transitions(-1)
