"""
app/api/dependencies.py

Shared FastAPI dependencies: acting identity, pagination, and service wiring.
"""

from __future__ import annotations

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from app.config import get_mapping_list_settings
from app.domain.sector_mapping import Pagination
from app.repositories.sqlalchemy_mapping_store import build_sqlalchemy_repositories
from app.scheduler.jobs import TransitionScheduler, build_scheduler
from app.services.sector_mapping_service import SectorMappingService
from app.services.sector_transition_service import SectorTransitionService
from db.session import get_db

DEFAULT_ACTOR = "system"


def get_actor(x_actor: str | None = Header(default=None, alias="X-Actor")) -> str:
    """
    Return the acting identity from the ``X-Actor`` header.
    """

    actor = (x_actor or "").strip()
    return actor or DEFAULT_ACTOR


def get_pagination(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
) -> Pagination:
    """
    Resolve page/limit, applying the configured default and upper bound.
    """

    settings = get_mapping_list_settings()
    resolved_limit = min(limit or settings.default_limit, settings.max_limit)
    return Pagination(page=page, limit=resolved_limit)


def get_sector_mapping_service(db: Session = Depends(get_db)) -> SectorMappingService:
    store, catalog = build_sqlalchemy_repositories(db)
    return SectorMappingService(store, catalog)


def get_transition_service(db: Session = Depends(get_db)) -> SectorTransitionService:
    store, _ = build_sqlalchemy_repositories(db)
    return SectorTransitionService(store)


def get_transition_scheduler(request: Request) -> TransitionScheduler:
    """
    Return the app-wide scheduler so manual runs share its single-flight lock.
    """

    scheduler = getattr(request.app.state, "transition_scheduler", None)
    if scheduler is None:
        scheduler = build_scheduler()
        request.app.state.transition_scheduler = scheduler
    return scheduler
