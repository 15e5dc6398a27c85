"""
app/api/error_handlers.py

Translate sector mapping errors into HTTP responses.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.errors import (
    MappingNotFoundError,
    MappingValidationError,
    SectorMappingError,
    SectorReferenceError,
    TransitionFailure,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[SectorMappingError], int], ...] = (
    (MappingValidationError, status.HTTP_400_BAD_REQUEST),
    (MappingNotFoundError, status.HTTP_404_NOT_FOUND),
    (SectorReferenceError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (TransitionFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: SectorMappingError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_sector_mapping_error(request: Request, exc: SectorMappingError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def install_error_handlers(application: FastAPI) -> None:
    application.add_exception_handler(SectorMappingError, _handle_sector_mapping_error)
