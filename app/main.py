"""
app/main.py

FastAPI entrypoint for the sector mapping service.

Run with ``uvicorn app.main:app``. Startup refuses to serve until the
database answers and every mapping table exists; apply migrations with
``alembic upgrade head`` first.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import inspect, text

from app.api.error_handlers import install_error_handlers
from app.config import get_transition_scheduler_settings
from app.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def _verify_database() -> None:
    """
    Ping the database and compare its tables with the ORM metadata.

    Raises RuntimeError when the database is unreachable or a mapping table
    is missing. Nothing is created or migrated here.
    """
    import db.models  # noqa: F401  registers the mapping tables
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            present = set(inspect(connection).get_table_names())
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc
    logger.info("Database connectivity confirmed")

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.critical(
            "Missing mapping tables: %s. Run 'alembic upgrade head' and restart.",
            ", ".join(missing),
        )
        raise RuntimeError(f"Schema mismatch: missing tables {', '.join(missing)}.")
    logger.info("Database schema validated")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()

    from app.scheduler.jobs import build_scheduler

    settings = get_transition_scheduler_settings()
    scheduler = build_scheduler(settings)
    application.state.transition_scheduler = scheduler
    if settings.enabled:
        scheduler.start()
    else:
        logger.info("Transition scheduler disabled by TRANSITION_SCHEDULER_ENABLED")
    try:
        yield
    finally:
        scheduler.close(wait=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    configure_logging()

    application = FastAPI(
        title="Sector Mapping API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    install_error_handlers(application)

    from app.api.routers import sector_mapping_router, transition_router

    application.include_router(sector_mapping_router)
    application.include_router(transition_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        scheduler = getattr(application.state, "transition_scheduler", None)
        return {
            "status": "ok",
            "scheduler": scheduler.state.value if scheduler is not None else "stopped",
        }

    return application


app = create_app()
