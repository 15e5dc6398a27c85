"""
app/errors.py

Error hierarchy raised by the sector mapping core.
"""

from __future__ import annotations

from typing import Any


class SectorMappingError(Exception):
    """Base exception for sector mapping failures."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.message}
        if self.context:
            payload["context"] = self.context
        return payload


class MappingValidationError(SectorMappingError, ValueError):
    """Raised for group-name rule violations and malformed ids or filters. Nothing is mutated."""


class MappingNotFoundError(SectorMappingError):
    """Raised when a logical mapping id matches no stored records."""


class SectorReferenceError(SectorMappingError):
    """Raised when a batch row references an unknown economic sector. Aborts the batch."""


class TransitionFailure(SectorMappingError):
    """Raised when a transition run fails; the run has been rolled back."""
