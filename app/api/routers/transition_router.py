"""
app/api/routers/transition_router.py

Operator endpoints for date-driven mapping transitions.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_actor, get_transition_scheduler, get_transition_service
from app.scheduler.jobs import TransitionScheduler
from app.schemas.sector_mapping import (
    TransitionReportResponse,
    TransitionRunBody,
    TransitionTriggerBody,
    UpcomingTransitionsResponse,
)
from app.services.sector_transition_service import SectorTransitionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sector-transitions", tags=["sector-transitions"])


@router.post("/run", response_model=TransitionReportResponse)
def run_transitions(
    body: TransitionRunBody | None = None,
    actor: str = Depends(get_actor),
    scheduler: TransitionScheduler = Depends(get_transition_scheduler),
) -> TransitionReportResponse:
    """
    Run the day's transitions now, serialized with the scheduled job.

    Raises HTTP 500 if the run fails; it is rolled back in full.
    """
    as_of = body.as_of if body is not None else None
    logger.info("Manual transition run requested actor=%s as_of=%s", actor, as_of)
    return TransitionReportResponse.from_domain(scheduler.run_now(as_of))


@router.post("/trigger", response_model=TransitionReportResponse)
def trigger_transition(
    body: TransitionTriggerBody,
    actor: str = Depends(get_actor),
    service: SectorTransitionService = Depends(get_transition_service),
) -> TransitionReportResponse:
    report = service.trigger_transition(body.sector_code, body.effective_date, actor)
    return TransitionReportResponse.from_domain(report)


@router.get("/upcoming", response_model=UpcomingTransitionsResponse)
def get_upcoming_transitions(
    days: int = Query(default=7),
    service: SectorTransitionService = Depends(get_transition_service),
) -> UpcomingTransitionsResponse:
    return UpcomingTransitionsResponse.from_domain(service.get_upcoming_transitions(days))
