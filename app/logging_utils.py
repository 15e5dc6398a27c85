"""
Logging setup and structured audit events for mapping changes and transitions.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.config import get_logging_settings

AUDIT_LOGGER_NAME = "sector_mapping.audit"

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def configure_logging() -> None:
    """
    Configure root logging once for the process.
    """

    settings = get_logging_settings()
    logging.basicConfig(
        level=getattr(logging, settings.level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    audit_logger.setLevel(getattr(logging, settings.audit_level, logging.INFO))


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def audit(event: str, **fields: Any) -> None:
    log_event(audit_logger, logging.INFO, event, **fields)
