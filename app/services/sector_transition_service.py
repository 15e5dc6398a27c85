"""
app/services/sector_transition_service.py

Date-driven activation and deactivation of mapping records.

A run for day D, inside one transaction:
  1. deactivates active records whose effective_end falls on D;
  2. activates approved, inactive records whose effective_start falls on D
     and whose window has not already closed.

Deactivation runs first. Re-running the same day selects nothing because
every flipped record no longer matches its predicate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from app.domain.sector_mapping import (
    SYSTEM_TRANSITION_ACTOR,
    MappingKey,
    MappingRecord,
    RecordFilter,
    RecordOrder,
)
from app.domain.transitions import (
    RecordSnapshot,
    TransitionAction,
    TransitionEntry,
    TransitionReport,
    UpcomingTransitions,
)
from app.errors import MappingValidationError, TransitionFailure
from app.logging_utils import audit
from app.repositories.mapping_store import MappingStore

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SectorTransitionService:
    def __init__(
        self,
        store: MappingStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or _utcnow

    def run_transitions(self, as_of: date | None = None) -> TransitionReport:
        """
        Apply the transitions due on ``as_of`` (default: today).

        Raises TransitionFailure after rolling back if anything goes wrong;
        no partial run is ever persisted.
        """

        as_of = as_of or self._clock().date()
        window_end = as_of + _ONE_DAY

        try:
            with self._store.transaction():
                to_deactivate, _ = self._store.find_many(
                    RecordFilter(
                        is_active=True,
                        effective_end_from=as_of,
                        effective_end_before=window_end,
                    )
                )
                self._flip(to_deactivate, active=False, actor=SYSTEM_TRANSITION_ACTOR)

                deactivated_ids = {record.id for record in to_deactivate}
                candidates, _ = self._store.find_many(
                    RecordFilter(
                        is_active=False,
                        approved=True,
                        effective_start_from=as_of,
                        effective_start_before=window_end,
                        open_after=as_of,
                    )
                )
                to_activate = [r for r in candidates if r.id not in deactivated_ids]
                self._flip(to_activate, active=True, actor=SYSTEM_TRANSITION_ACTOR)
        except Exception as exc:
            logger.exception("Transition run failed as_of=%s", as_of.isoformat())
            raise TransitionFailure(
                f"Failed to process transitions for {as_of.isoformat()}: {exc}",
                context={"as_of": as_of.isoformat()},
            ) from exc

        report = TransitionReport(
            as_of=as_of,
            transitions=_entries(to_deactivate, TransitionAction.DEACTIVATED)
            + _entries(to_activate, TransitionAction.ACTIVATED),
        )
        self._emit(report, actor=SYSTEM_TRANSITION_ACTOR)
        logger.info(
            "Transition run completed as_of=%s deactivated=%d activated=%d",
            as_of.isoformat(),
            report.deactivated_count,
            report.activated_count,
        )
        return report

    def trigger_transition(
        self,
        sector_code: str,
        effective_date: date,
        actor: str,
    ) -> TransitionReport:
        """
        Operator override for one sector: close its active records at
        ``effective_date`` and activate its inactive records starting then.
        """

        sector_code = sector_code.strip()
        if not sector_code:
            raise MappingValidationError("sector_code is required.")

        try:
            with self._store.transaction():
                to_deactivate, _ = self._store.find_many(
                    RecordFilter(is_active=True, economic_sector_code=sector_code)
                )
                if to_deactivate:
                    self._store.update_many(
                        MappingKey.for_ids(record.id for record in to_deactivate),
                        {"is_active": False, "effective_end": effective_date, "updated_by": actor},
                    )

                deactivated_ids = {record.id for record in to_deactivate}
                candidates, _ = self._store.find_many(
                    RecordFilter(
                        is_active=False,
                        economic_sector_code=sector_code,
                        effective_start_from=effective_date,
                        effective_start_before=effective_date + _ONE_DAY,
                    )
                )
                to_activate = [r for r in candidates if r.id not in deactivated_ids]
                self._flip(to_activate, active=True, actor=actor)
        except Exception as exc:
            logger.exception(
                "Manual transition failed sector=%s effective_date=%s",
                sector_code,
                effective_date.isoformat(),
            )
            raise TransitionFailure(
                f"Failed to trigger transition for sector {sector_code}: {exc}",
                context={"sector_code": sector_code, "effective_date": effective_date.isoformat()},
            ) from exc

        report = TransitionReport(
            as_of=effective_date,
            transitions=_entries(to_deactivate, TransitionAction.DEACTIVATED)
            + _entries(to_activate, TransitionAction.ACTIVATED),
        )
        self._emit(report, actor=actor)
        logger.info(
            "Manual transition completed sector=%s effective_date=%s deactivated=%d activated=%d",
            sector_code,
            effective_date.isoformat(),
            report.deactivated_count,
            report.activated_count,
        )
        return report

    def get_upcoming_transitions(
        self,
        days_ahead: int = 7,
        as_of: date | None = None,
    ) -> UpcomingTransitions:
        if days_ahead < 0:
            raise MappingValidationError(
                "days_ahead must be >= 0.",
                context={"days_ahead": days_ahead},
            )

        start = as_of or self._clock().date()
        horizon = start + timedelta(days=days_ahead) + _ONE_DAY

        deactivations, _ = self._store.find_many(
            RecordFilter(
                is_active=True,
                effective_end_from=start,
                effective_end_before=horizon,
                order_by=RecordOrder.EFFECTIVE_END_ASC,
            )
        )
        activations, _ = self._store.find_many(
            RecordFilter(
                is_active=False,
                effective_start_from=start,
                effective_start_before=horizon,
                order_by=RecordOrder.EFFECTIVE_START_ASC,
            )
        )
        return UpcomingTransitions(
            upcoming_deactivations=deactivations,
            upcoming_activations=activations,
        )

    def _flip(self, records: list[MappingRecord], *, active: bool, actor: str) -> None:
        if not records:
            return
        self._store.update_many(
            MappingKey.for_ids(record.id for record in records),
            {"is_active": active, "updated_by": actor},
        )

    @staticmethod
    def _emit(report: TransitionReport, *, actor: str) -> None:
        for entry in report.transitions:
            audit(
                "sector_transition",
                as_of=report.as_of,
                sector_code=entry.economic_sector_code,
                action=entry.action.value,
                record_id=entry.mapping.id,
                group_name=entry.mapping.group_name,
                actor=actor,
            )


def _entries(records: list[MappingRecord], action: TransitionAction) -> list[TransitionEntry]:
    return [
        TransitionEntry(
            economic_sector_code=record.economic_sector_code,
            action=action,
            mapping=RecordSnapshot.of(record),
        )
        for record in records
    ]
