"""
app/scheduler/jobs.py

APScheduler-based daily trigger for sector mapping transitions.

Schedule
--------
  daily_sector_transitions: TRANSITION_HOUR:TRANSITION_MINUTE every day,
  in TRANSITION_TIMEZONE (default 00:00 UTC).

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``TransitionScheduler``.
``start()`` installs the cron job and ``stop()`` removes it and pauses the
underlying scheduler, so the pair can be repeated. ``close()`` shuts the
scheduler down for good at process exit. ``run_now()`` fires the engine
immediately and is what the HTTP run endpoint uses. Every run, scheduled or
manual, holds the same lock, so two runs never overlap. A run without an
explicit date processes the current day in TRANSITION_TIMEZONE.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import date, datetime, timezone as dt_timezone
from enum import Enum
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import STATE_PAUSED, BaseScheduler
from sqlalchemy.orm import Session

from app.config import TransitionSchedulerSettings, get_transition_scheduler_settings
from app.domain.transitions import TransitionReport
from app.errors import TransitionFailure
from app.repositories.sqlalchemy_mapping_store import SQLAlchemyMappingStore
from app.services.sector_transition_service import SectorTransitionService
from db.session import SessionLocal

logger = logging.getLogger(__name__)

JOB_ID = "daily_sector_transitions"

ServiceScope = Callable[[], AbstractContextManager[SectorTransitionService]]


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    SCHEDULED = "scheduled"


class TransitionScheduler:
    """
    Stopped -> Scheduled -> Stopped wrapper around one cron job.

    Holds no business state; ``service_scope`` yields a fresh engine per run.
    """

    def __init__(
        self,
        service_scope: ServiceScope,
        *,
        hour: int = 0,
        minute: int = 0,
        timezone: str = "UTC",
        misfire_grace_seconds: int = 3600,
        scheduler: BaseScheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._service_scope = service_scope
        self._hour = hour
        self._minute = minute
        self._timezone = timezone
        self._misfire_grace_seconds = misfire_grace_seconds
        self._zone = ZoneInfo(timezone)
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)
        self._clock = clock or _utcnow
        self._closed = False
        self._state = SchedulerState.STOPPED
        self._state_lock = threading.Lock()
        self._run_lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    def start(self) -> None:
        with self._state_lock:
            if self._state is SchedulerState.SCHEDULED:
                return
            if self._closed:
                raise RuntimeError("Transition scheduler is closed; build a new one.")

            self._scheduler.add_job(
                self._run_scheduled,
                trigger="cron",
                hour=self._hour,
                minute=self._minute,
                timezone=self._timezone,
                id=JOB_ID,
                name="Daily sector mapping transitions",
                replace_existing=True,
                misfire_grace_time=self._misfire_grace_seconds,
                coalesce=True,
                max_instances=1,
            )
            if self._scheduler.state == STATE_PAUSED:
                self._scheduler.resume()
            elif not self._scheduler.running:
                self._scheduler.start()
            self._state = SchedulerState.SCHEDULED

        logger.info(
            "Transition scheduler started at %02d:%02d %s",
            self._hour,
            self._minute,
            self._timezone,
        )

    def stop(self) -> None:
        """Remove the daily job and pause the scheduler; ``start()`` may follow."""
        with self._state_lock:
            if self._state is SchedulerState.STOPPED:
                return

            if self._scheduler.get_job(JOB_ID) is not None:
                self._scheduler.remove_job(JOB_ID)
            if self._scheduler.running:
                self._scheduler.pause()
            self._state = SchedulerState.STOPPED

        logger.info("Transition scheduler stopped")

    def close(self, *, wait: bool = True) -> None:
        """Stop and shut the underlying scheduler down. Not restartable."""
        with self._state_lock:
            if self._scheduler.get_job(JOB_ID) is not None:
                self._scheduler.remove_job(JOB_ID)
            if self._scheduler.running:
                self._scheduler.shutdown(wait=wait)
            self._state = SchedulerState.STOPPED
            self._closed = True

    def local_today(self) -> date:
        return self._clock().astimezone(self._zone).date()

    def run_now(self, as_of: date | None = None) -> TransitionReport:
        """
        Run the engine immediately, for ``as_of`` or else today in the
        configured timezone. TransitionFailure propagates to the caller.
        """

        as_of = as_of or self.local_today()
        with self._run_lock:
            with self._service_scope() as service:
                return service.run_transitions(as_of)

    def _run_scheduled(self) -> None:
        logger.info("Scheduler: %s starting", JOB_ID)
        try:
            report = self.run_now()
        except TransitionFailure as exc:
            logger.error("Scheduler: %s failed, state left unchanged: %s", JOB_ID, exc.message)
            return
        logger.info(
            "Scheduler: %s complete as_of=%s deactivated=%d activated=%d",
            JOB_ID,
            report.as_of.isoformat(),
            report.deactivated_count,
            report.activated_count,
        )


@contextmanager
def _session_scope() -> Iterator[SectorTransitionService]:
    """Yield an engine bound to a fresh session and close the session on exit."""
    session: Session = SessionLocal()
    try:
        yield SectorTransitionService(SQLAlchemyMappingStore(session))
    finally:
        session.close()


def build_scheduler(
    settings: TransitionSchedulerSettings | None = None,
) -> TransitionScheduler:
    """
    Build a configured but *not yet started* ``TransitionScheduler``.
    """

    settings = settings or get_transition_scheduler_settings()
    return TransitionScheduler(
        _session_scope,
        hour=settings.hour,
        minute=settings.minute,
        timezone=settings.timezone,
        misfire_grace_seconds=settings.misfire_grace_seconds,
    )
