"""
app/api/routers package marker.
"""

from app.api.routers.sector_mapping_router import router as sector_mapping_router
from app.api.routers.transition_router import router as transition_router

__all__ = [
    "sector_mapping_router",
    "transition_router",
]
