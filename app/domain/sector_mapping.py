"""
app/domain/sector_mapping.py

Domain types for sector group mappings: stored records, the derived logical
view, its structured identity, and the typed filters used against the store.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from app.errors import MappingValidationError

NON_KLM_GROUP_NAME = "Non KLM"
GREEN_GROUP_NAME = "Green"
RESERVED_GROUP_NAMES = frozenset({NON_KLM_GROUP_NAME, GREEN_GROUP_NAME})

SYSTEM_TRANSITION_ACTOR = "system_transition"


class GroupType(str, Enum):
    NON_KLM = "NON_KLM"
    SPECIFIC_SECTOR = "SPECIFIC_SECTOR"
    GREEN = "GREEN"

    @property
    def label(self) -> str:
        return _GROUP_TYPE_LABELS[self]


_GROUP_TYPE_LABELS = {
    GroupType.NON_KLM: NON_KLM_GROUP_NAME,
    GroupType.SPECIFIC_SECTOR: "Specific Sector",
    GroupType.GREEN: GREEN_GROUP_NAME,
}


class MappingStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    APPROVED = "approved"


class StatusFilter(str, Enum):
    ALL = "all"
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    APPROVED = "approved"


class DateRange(str, Enum):
    """Look-back window applied to created_at."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


DATE_RANGE_DAYS = {
    DateRange.WEEK: 7,
    DateRange.MONTH: 30,
    DateRange.QUARTER: 90,
}


@dataclass(frozen=True)
class EconomicSector:
    code: str
    description: str | None = None


@dataclass(frozen=True)
class SectorGroup:
    id: int
    name: str
    description: str | None = None
    is_active: bool = True
    created_by: str | None = None


@dataclass(frozen=True)
class MappingRecord:
    """
    One stored mapping row.

    ``sector_group_name`` and ``sector_description`` are read-only values
    joined in by the store; they are never written back.
    """

    group_id: int
    economic_sector_code: str
    group_type: GroupType
    group_name: str
    effective_start: date | None
    created_by: str
    priority: int = 0
    effective_end: date | None = None
    is_active: bool = False
    updated_by: str | None = None
    approved_by: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    sector_group_name: str | None = None
    sector_description: str | None = None

    @property
    def logical_id(self) -> LogicalMappingId:
        return LogicalMappingId(
            group_id=self.group_id,
            group_name=self.group_name,
            effective_start=self.effective_start,
        )


# Fields a store accepts in an update patch.
PATCHABLE_FIELDS = frozenset(
    {
        "group_type",
        "group_name",
        "priority",
        "effective_start",
        "effective_end",
        "is_active",
        "updated_by",
        "approved_by",
    }
)

_GROUP_ID_PATTERN = re.compile(r"\d+")
_MILLIS_PATTERN = re.compile(r"-?\d+")
_NULL_START = "null"


def date_to_epoch_millis(value: date) -> int:
    midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return int(midnight.timestamp()) * 1000


def epoch_millis_to_date(millis: int) -> date:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).date()


@dataclass(frozen=True)
class LogicalMappingId:
    """
    Identity shared by every record of one logical mapping.

    Wire form: ``<groupId>_<groupName>_<epochMillisOrNull>``. The group name
    may itself contain underscores; the id is split on the first and last one.
    """

    group_id: int
    group_name: str
    effective_start: date | None

    def format(self) -> str:
        if self.effective_start is None:
            start = _NULL_START
        else:
            start = str(date_to_epoch_millis(self.effective_start))
        return f"{self.group_id}_{self.group_name}_{start}"

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def parse(cls, value: Any) -> LogicalMappingId:
        if not isinstance(value, str):
            raise MappingValidationError(
                "Logical mapping id must be a string.",
                context={"id": repr(value)},
            )

        head, sep, rest = value.partition("_")
        group_name, sep_tail, tail = rest.rpartition("_")
        if not sep or not sep_tail or not group_name:
            raise MappingValidationError(
                f"Malformed logical mapping id {value!r}; expected '<groupId>_<groupName>_<epochMillis>'.",
                context={"id": value},
            )
        if not _GROUP_ID_PATTERN.fullmatch(head):
            raise MappingValidationError(
                f"Malformed logical mapping id {value!r}: group id must be an integer.",
                context={"id": value},
            )

        if tail == _NULL_START:
            effective_start = None
        elif _MILLIS_PATTERN.fullmatch(tail):
            try:
                effective_start = epoch_millis_to_date(int(tail))
            except (OverflowError, OSError, ValueError) as exc:
                raise MappingValidationError(
                    f"Malformed logical mapping id {value!r}: timestamp out of range.",
                    context={"id": value},
                ) from exc
        else:
            raise MappingValidationError(
                f"Malformed logical mapping id {value!r}: timestamp must be epoch millis or 'null'.",
                context={"id": value},
            )

        return cls(group_id=int(head), group_name=group_name, effective_start=effective_start)


@dataclass(frozen=True)
class LogicalMapping:
    """
    Caller-visible grouping of records sharing one LogicalMappingId.
    """

    id: LogicalMappingId
    group_type: GroupType
    sector_codes: tuple[str, ...]
    sector_groups: tuple[str, ...]
    status: MappingStatus
    priority: int
    effective_start: date | None
    effective_end: date | None
    created_by: str
    updated_by: str | None
    approved_by: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @property
    def group_id(self) -> int:
        return self.id.group_id

    @property
    def group_name(self) -> str:
        return self.id.group_name


class RecordOrder(str, Enum):
    CREATED_DESC = "created_desc"
    EFFECTIVE_START_ASC = "effective_start_asc"
    EFFECTIVE_END_ASC = "effective_end_asc"


@dataclass(frozen=True)
class RecordFilter:
    """
    Typed predicate over stored records. Unset fields do not constrain.

    Date ranges are half-open: ``from`` inclusive, ``before`` exclusive.
    """

    logical_id: LogicalMappingId | None = None
    record_ids: tuple[int, ...] | None = None
    is_active: bool | None = None
    approved: bool | None = None
    ended: bool | None = None
    economic_sector_code: str | None = None
    effective_start_from: date | None = None
    effective_start_before: date | None = None
    effective_end_from: date | None = None
    effective_end_before: date | None = None
    open_after: date | None = None
    created_since: datetime | None = None
    search: str | None = None
    created_by: str | None = None
    order_by: RecordOrder = RecordOrder.CREATED_DESC


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 50

    def __post_init__(self) -> None:
        if self.page < 1:
            raise MappingValidationError("page must be >= 1.", context={"page": self.page})
        if self.limit < 1:
            raise MappingValidationError("limit must be >= 1.", context={"limit": self.limit})

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class MappingKey:
    """
    Addresses records either by logical identity or by explicit record ids.
    """

    logical_id: LogicalMappingId | None = None
    ids: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        if (self.logical_id is None) == (self.ids is None):
            raise ValueError("MappingKey needs exactly one of logical_id or ids.")

    @classmethod
    def for_logical(cls, logical_id: LogicalMappingId) -> MappingKey:
        return cls(logical_id=logical_id)

    @classmethod
    def for_ids(cls, ids: Any) -> MappingKey:
        return cls(ids=tuple(ids))

    def matches(self, record: MappingRecord) -> bool:
        if self.logical_id is not None:
            return record.logical_id == self.logical_id
        return record.id in (self.ids or ())


@dataclass(frozen=True)
class MappingListFilter:
    status: StatusFilter = StatusFilter.ALL
    date_range: DateRange = DateRange.ALL
    sector_code: str | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class MappingPage:
    items: list[LogicalMapping]
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class CreateMappingRequest:
    sector_codes: tuple[str, ...]
    group_id: int
    group_type: GroupType
    effective_start: date
    group_name: str | None = None
    priority: int = 0
    effective_end: date | None = None


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class MappingUpdate:
    """
    Partial update of a logical mapping. ``UNSET`` leaves a field untouched;
    ``effective_end=None`` clears the end date.
    """

    group_type: GroupType | None = None
    group_name: str | None = None
    priority: int | None = None
    effective_start: date | None = None
    effective_end: Any = UNSET


@dataclass(frozen=True)
class BatchImportRow:
    sector_code: str
    group_type: GroupType
    group_name: str
    effective_start: date


@dataclass(frozen=True)
class BatchImportResult:
    uploaded_count: int
    mappings: list[LogicalMapping] = field(default_factory=list)


@dataclass(frozen=True)
class ApprovalResult:
    approved_count: int


@dataclass(frozen=True)
class DeletionResult:
    deleted_count: int


@dataclass(frozen=True)
class MappingStats:
    total: int
    active: int
    pending: int
    draft: int
    upcoming_effective: int
