"""
app/services package marker.
"""

from app.services.mapping_grouping import derive_status, group_to_logical
from app.services.sector_mapping_service import SectorMappingService, parse_logical_ids
from app.services.sector_transition_service import SectorTransitionService

__all__ = [
    "derive_status",
    "group_to_logical",
    "parse_logical_ids",
    "SectorMappingService",
    "SectorTransitionService",
]
