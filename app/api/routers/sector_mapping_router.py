"""
app/api/routers/sector_mapping_router.py

Sector group mapping endpoints.

Mappings are addressed by their logical id
(``<groupId>_<groupName>_<epochMillis|null>``); each logical mapping covers
one or more stored rows, one per economic sector.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query, status

from app.api.dependencies import get_actor, get_pagination, get_sector_mapping_service
from app.domain.sector_mapping import DateRange, MappingListFilter, Pagination, StatusFilter
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
    UpdateMappingBody,
)
from app.services.sector_mapping_service import SectorMappingService

router = APIRouter(prefix="/sector-mappings", tags=["sector-mappings"])


@router.get("", response_model=MappingPageResponse)
def list_mappings(
    status_filter: StatusFilter = Query(default=StatusFilter.ALL, alias="status"),
    date_range: DateRange = Query(default=DateRange.ALL),
    sector_code: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> MappingPageResponse:
    page = service.list_mappings(
        MappingListFilter(
            status=status_filter,
            date_range=date_range,
            sector_code=sector_code,
            created_by=created_by,
        ),
        pagination,
    )
    return MappingPageResponse.from_domain(page)


@router.post(
    "",
    response_model=LogicalMappingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_mapping(
    body: CreateMappingBody,
    actor: str = Depends(get_actor),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> LogicalMappingResponse:
    """
    Create a draft logical mapping covering every listed sector.

    Raises HTTP 400 when the group name breaks the group-type rule.
    """
    mapping = service.create_mapping(body.to_domain(), actor)
    return LogicalMappingResponse.from_domain(mapping)


@router.post("/approve", response_model=ApprovalResponse)
def approve_mappings(
    body: MappingIdsBody,
    actor: str = Depends(get_actor),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> ApprovalResponse:
    return ApprovalResponse.from_domain(service.approve_mappings(body.ids, actor))


@router.delete("", response_model=DeletionResponse)
def delete_mappings(
    body: MappingIdsBody = Body(...),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> DeletionResponse:
    return DeletionResponse.from_domain(service.delete_mappings(body.ids))


@router.post("/batch-upload", response_model=BatchUploadResponse)
def batch_upload(
    body: BatchUploadBody,
    actor: str = Depends(get_actor),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> BatchUploadResponse:
    """
    Import rows all-or-nothing.

    Raises HTTP 422 when a row references an unknown economic sector and
    HTTP 400 when a row breaks the group-name rule; nothing is persisted.
    """
    rows = [row.to_domain() for row in body.mappings]
    return BatchUploadResponse.from_domain(service.batch_import(rows, actor))


@router.get("/sector-groups", response_model=list[SectorGroupResponse])
def list_sector_groups(
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> list[SectorGroupResponse]:
    return [SectorGroupResponse.from_domain(group) for group in service.list_sector_groups()]


@router.get("/economic-sectors", response_model=list[EconomicSectorResponse])
def list_economic_sectors(
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> list[EconomicSectorResponse]:
    return [EconomicSectorResponse.from_domain(sector) for sector in service.list_economic_sectors()]


@router.get("/stats", response_model=MappingStatsResponse)
def get_stats(
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> MappingStatsResponse:
    return MappingStatsResponse.from_domain(service.get_stats())


@router.get("/active-mappings", response_model=list[MappingRecordResponse])
def get_active_mappings(
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> list[MappingRecordResponse]:
    return [
        MappingRecordResponse.from_domain(record)
        for record in service.get_active_mappings_for_template()
    ]


@router.put("/{logical_id}", response_model=LogicalMappingResponse)
def update_mapping(
    logical_id: str,
    body: UpdateMappingBody,
    actor: str = Depends(get_actor),
    service: SectorMappingService = Depends(get_sector_mapping_service),
) -> LogicalMappingResponse:
    """
    Patch every record of one logical mapping.

    Raises HTTP 404 when the id matches no records, HTTP 400 when it is
    malformed.
    """
    mapping = service.update_mapping(logical_id, body.to_domain(), actor)
    return LogicalMappingResponse.from_domain(mapping)
