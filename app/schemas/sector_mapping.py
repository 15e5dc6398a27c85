"""
Request and response schemas for sector mapping and transition endpoints.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.domain.sector_mapping import (
    UNSET,
    ApprovalResult,
    BatchImportResult,
    BatchImportRow,
    CreateMappingRequest,
    DeletionResult,
    EconomicSector,
    GroupType,
    LogicalMapping,
    MappingPage,
    MappingRecord,
    MappingStats,
    MappingStatus,
    MappingUpdate,
    SectorGroup,
)
from app.domain.transitions import TransitionAction, TransitionReport, UpcomingTransitions
from app.validators.group_name_validator import parse_group_type

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMappingBody(BaseModel):
    economic_sector_codes: list[str] = Field(min_length=1)
    group_id: int
    group_type: str
    group_name: str | None = None
    priority: int = 0
    effective_start: date
    effective_end: date | None = None

    def to_domain(self) -> CreateMappingRequest:
        return CreateMappingRequest(
            sector_codes=tuple(self.economic_sector_codes),
            group_id=self.group_id,
            group_type=parse_group_type(self.group_type),
            group_name=self.group_name,
            priority=self.priority,
            effective_start=self.effective_start,
            effective_end=self.effective_end,
        )


class UpdateMappingBody(BaseModel):
    """
    Omitted fields are left unchanged; an explicit ``effective_end: null``
    clears the end date.
    """

    group_type: str | None = None
    group_name: str | None = None
    priority: int | None = None
    effective_start: date | None = None
    effective_end: date | None = None

    def to_domain(self) -> MappingUpdate:
        return MappingUpdate(
            group_type=parse_group_type(self.group_type) if self.group_type is not None else None,
            group_name=self.group_name,
            priority=self.priority,
            effective_start=self.effective_start,
            effective_end=self.effective_end if "effective_end" in self.model_fields_set else UNSET,
        )


class MappingIdsBody(BaseModel):
    ids: list[str] = Field(min_length=1)


class BatchRowBody(BaseModel):
    economic_sector_code: str
    group_type: str
    group_name: str
    effective_start: date

    def to_domain(self) -> BatchImportRow:
        return BatchImportRow(
            sector_code=self.economic_sector_code,
            group_type=parse_group_type(self.group_type),
            group_name=self.group_name,
            effective_start=self.effective_start,
        )


class BatchUploadBody(BaseModel):
    mappings: list[BatchRowBody] = Field(default_factory=list)


class TransitionRunBody(BaseModel):
    as_of: date | None = None


class TransitionTriggerBody(BaseModel):
    sector_code: str = Field(min_length=1)
    effective_date: date


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class LogicalMappingResponse(BaseModel):
    id: str
    group_id: int
    group_type: GroupType
    group_name: str
    economic_sector_codes: list[str]
    sector_groups: list[str]
    status: MappingStatus
    priority: int
    effective_start: date | None = None
    effective_end: date | None = None
    created_by: str
    updated_by: str | None = None
    approved_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, mapping: LogicalMapping) -> LogicalMappingResponse:
        return cls(
            id=mapping.id.format(),
            group_id=mapping.group_id,
            group_type=mapping.group_type,
            group_name=mapping.group_name,
            economic_sector_codes=list(mapping.sector_codes),
            sector_groups=list(mapping.sector_groups),
            status=mapping.status,
            priority=mapping.priority,
            effective_start=mapping.effective_start,
            effective_end=mapping.effective_end,
            created_by=mapping.created_by,
            updated_by=mapping.updated_by,
            approved_by=mapping.approved_by,
            created_at=mapping.created_at,
            updated_at=mapping.updated_at,
        )


class MappingPageResponse(BaseModel):
    items: list[LogicalMappingResponse] = Field(default_factory=list)
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_domain(cls, page: MappingPage) -> MappingPageResponse:
        return cls(
            items=[LogicalMappingResponse.from_domain(item) for item in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


class MappingRecordResponse(BaseModel):
    id: int | None = None
    logical_id: str
    group_id: int
    economic_sector_code: str
    sector_description: str | None = None
    group_type: GroupType
    group_name: str
    priority: int
    effective_start: date | None = None
    effective_end: date | None = None
    is_active: bool

    @classmethod
    def from_domain(cls, record: MappingRecord) -> MappingRecordResponse:
        return cls(
            id=record.id,
            logical_id=record.logical_id.format(),
            group_id=record.group_id,
            economic_sector_code=record.economic_sector_code,
            sector_description=record.sector_description,
            group_type=record.group_type,
            group_name=record.group_name,
            priority=record.priority,
            effective_start=record.effective_start,
            effective_end=record.effective_end,
            is_active=record.is_active,
        )


class ApprovalResponse(BaseModel):
    approved_count: int

    @classmethod
    def from_domain(cls, result: ApprovalResult) -> ApprovalResponse:
        return cls(approved_count=result.approved_count)


class DeletionResponse(BaseModel):
    deleted_count: int

    @classmethod
    def from_domain(cls, result: DeletionResult) -> DeletionResponse:
        return cls(deleted_count=result.deleted_count)


class BatchUploadResponse(BaseModel):
    uploaded_count: int
    mappings: list[LogicalMappingResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: BatchImportResult) -> BatchUploadResponse:
        return cls(
            uploaded_count=result.uploaded_count,
            mappings=[LogicalMappingResponse.from_domain(item) for item in result.mappings],
        )


class MappingStatsResponse(BaseModel):
    total: int
    active: int
    pending: int
    draft: int
    upcoming_effective: int

    @classmethod
    def from_domain(cls, stats: MappingStats) -> MappingStatsResponse:
        return cls(
            total=stats.total,
            active=stats.active,
            pending=stats.pending,
            draft=stats.draft,
            upcoming_effective=stats.upcoming_effective,
        )


class SectorGroupResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    is_active: bool

    @classmethod
    def from_domain(cls, group: SectorGroup) -> SectorGroupResponse:
        return cls(
            id=group.id,
            name=group.name,
            description=group.description,
            is_active=group.is_active,
        )


class EconomicSectorResponse(BaseModel):
    code: str
    description: str | None = None

    @classmethod
    def from_domain(cls, sector: EconomicSector) -> EconomicSectorResponse:
        return cls(code=sector.code, description=sector.description)


class TransitionEntryResponse(BaseModel):
    economic_sector_code: str
    action: TransitionAction
    record_id: int | None = None
    group_id: int
    group_type: GroupType
    group_name: str
    effective_start: date | None = None
    effective_end: date | None = None


class TransitionReportResponse(BaseModel):
    as_of: date
    deactivated_count: int
    activated_count: int
    transitions: list[TransitionEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, report: TransitionReport) -> TransitionReportResponse:
        return cls(
            as_of=report.as_of,
            deactivated_count=report.deactivated_count,
            activated_count=report.activated_count,
            transitions=[
                TransitionEntryResponse(
                    economic_sector_code=entry.economic_sector_code,
                    action=entry.action,
                    record_id=entry.mapping.id,
                    group_id=entry.mapping.group_id,
                    group_type=entry.mapping.group_type,
                    group_name=entry.mapping.group_name,
                    effective_start=entry.mapping.effective_start,
                    effective_end=entry.mapping.effective_end,
                )
                for entry in report.transitions
            ],
        )


class UpcomingTransitionsResponse(BaseModel):
    upcoming_deactivations: list[MappingRecordResponse] = Field(default_factory=list)
    upcoming_activations: list[MappingRecordResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, upcoming: UpcomingTransitions) -> UpcomingTransitionsResponse:
        return cls(
            upcoming_deactivations=[
                MappingRecordResponse.from_domain(record) for record in upcoming.upcoming_deactivations
            ],
            upcoming_activations=[
                MappingRecordResponse.from_domain(record) for record in upcoming.upcoming_activations
            ],
        )
