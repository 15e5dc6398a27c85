"""
app/schemas package marker.
"""

from app.schemas.sector_mapping import (
    ApprovalResponse,
    BatchUploadBody,
    BatchUploadResponse,
    CreateMappingBody,
    DeletionResponse,
    EconomicSectorResponse,
    LogicalMappingResponse,
    MappingIdsBody,
    MappingPageResponse,
    MappingRecordResponse,
    MappingStatsResponse,
    SectorGroupResponse,
    TransitionReportResponse,
    TransitionRunBody,
    TransitionTriggerBody,
    UpcomingTransitionsResponse,
    UpdateMappingBody,
)

__all__ = [
    "ApprovalResponse",
    "BatchUploadBody",
    "BatchUploadResponse",
    "CreateMappingBody",
    "DeletionResponse",
    "EconomicSectorResponse",
    "LogicalMappingResponse",
    "MappingIdsBody",
    "MappingPageResponse",
    "MappingRecordResponse",
    "MappingStatsResponse",
    "SectorGroupResponse",
    "TransitionReportResponse",
    "TransitionRunBody",
    "TransitionTriggerBody",
    "UpcomingTransitionsResponse",
    "UpdateMappingBody",
]
