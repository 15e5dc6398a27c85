"""
app/domain/transitions.py

Result types produced by the transition engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from app.domain.sector_mapping import GroupType, MappingRecord


class TransitionAction(str, Enum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class RecordSnapshot:
    """
    Identity fields of a record at the moment it was transitioned.
    """

    id: int | None
    group_id: int
    group_type: GroupType
    group_name: str
    effective_start: date | None
    effective_end: date | None

    @classmethod
    def of(cls, record: MappingRecord) -> RecordSnapshot:
        return cls(
            id=record.id,
            group_id=record.group_id,
            group_type=record.group_type,
            group_name=record.group_name,
            effective_start=record.effective_start,
            effective_end=record.effective_end,
        )


@dataclass(frozen=True)
class TransitionEntry:
    economic_sector_code: str
    action: TransitionAction
    mapping: RecordSnapshot


@dataclass(frozen=True)
class TransitionReport:
    as_of: date
    transitions: list[TransitionEntry] = field(default_factory=list)

    @property
    def deactivated_count(self) -> int:
        return sum(1 for entry in self.transitions if entry.action is TransitionAction.DEACTIVATED)

    @property
    def activated_count(self) -> int:
        return sum(1 for entry in self.transitions if entry.action is TransitionAction.ACTIVATED)


@dataclass(frozen=True)
class UpcomingTransitions:
    upcoming_deactivations: list[MappingRecord] = field(default_factory=list)
    upcoming_activations: list[MappingRecord] = field(default_factory=list)
