"""
app/domain package marker.
"""

from app.domain.sector_mapping import (
    ApprovalResult,
    BatchImportResult,
    BatchImportRow,
    CreateMappingRequest,
    DateRange,
    DeletionResult,
    EconomicSector,
    GroupType,
    LogicalMapping,
    LogicalMappingId,
    MappingKey,
    MappingListFilter,
    MappingPage,
    MappingRecord,
    MappingStats,
    MappingStatus,
    MappingUpdate,
    Pagination,
    RecordFilter,
    RecordOrder,
    SectorGroup,
    StatusFilter,
)
from app.domain.transitions import (
    RecordSnapshot,
    TransitionAction,
    TransitionEntry,
    TransitionReport,
    UpcomingTransitions,
)

__all__ = [
    "ApprovalResult",
    "BatchImportResult",
    "BatchImportRow",
    "CreateMappingRequest",
    "DateRange",
    "DeletionResult",
    "EconomicSector",
    "GroupType",
    "LogicalMapping",
    "LogicalMappingId",
    "MappingKey",
    "MappingListFilter",
    "MappingPage",
    "MappingRecord",
    "MappingStats",
    "MappingStatus",
    "MappingUpdate",
    "Pagination",
    "RecordFilter",
    "RecordOrder",
    "RecordSnapshot",
    "SectorGroup",
    "StatusFilter",
    "TransitionAction",
    "TransitionEntry",
    "TransitionReport",
    "UpcomingTransitions",
]
