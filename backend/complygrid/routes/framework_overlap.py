"""
Framework Overlap API Endpoints

Cross-framework mapping listings and visualization data.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.config import get_settings
from complygrid.database import get_db
from complygrid.schemas.overlap_schemas import (
    MappingListResponse,
    OverlapStatisticsItem,
    OverlapStatisticsResponse,
    SankeyDataResponse,
)
from complygrid.services.framework_overlap import FrameworkOverlapService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/framework-overlap", tags=["Framework Overlap"])
frameworks_router = APIRouter(prefix="/frameworks", tags=["Frameworks"])


def _split_ids(framework_ids: Optional[str]) -> List[str]:
    if not framework_ids:
        return []
    return [fid.strip() for fid in framework_ids.split(",") if fid.strip()]


@router.get(
    "/mappings",
    response_model=MappingListResponse,
    summary="List control mappings",
)
async def list_mappings(
    framework_ids: Optional[str] = Query(None, description="Comma-separated framework IDs"),
    confidence_level: Optional[str] = Query(None, pattern="^(HIGH|MEDIUM|LOW)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Paginated mappings, highest confidence first then newest."""
    try:
        return FrameworkOverlapService(db).list_mappings(
            framework_ids=_split_ids(framework_ids),
            confidence_level=confidence_level,
            page=page,
            page_size=page_size,
        )
    except Exception as e:
        logger.error(f"Error listing framework mappings: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list framework mappings")


@router.get(
    "/sankey-data",
    response_model=SankeyDataResponse,
    summary="Get Sankey diagram data",
    description="Framework and control nodes with confidence-weighted mapping edges",
)
async def get_sankey_data(
    framework_ids: Optional[str] = Query(None, description="Comma-separated framework IDs"),
    db: Session = Depends(get_db),
    _current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Sankey nodes and edges.

    When ``framework_ids`` names any framework it must name between 2 and 6;
    a missing or blank value selects the whole catalog.
    """
    ids = _split_ids(framework_ids)
    settings = get_settings()
    if ids and not settings.sankey_min_frameworks <= len(ids) <= settings.sankey_max_frameworks:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Between {settings.sankey_min_frameworks} and "
                f"{settings.sankey_max_frameworks} frameworks required"
            ),
        )

    try:
        return FrameworkOverlapService(db).get_sankey_data(ids or None)
    except Exception as e:
        logger.error(f"Error building Sankey data: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build Sankey data")


@router.get(
    "/statistics",
    response_model=OverlapStatisticsResponse,
    summary="Get overlap statistics",
)
async def get_overlap_statistics(
    framework_ids: Optional[str] = Query(None, description="Comma-separated framework IDs"),
    db: Session = Depends(get_db),
    _current_user: Dict[str, Any] = Depends(get_current_user),
) -> OverlapStatisticsResponse:
    """Mapping counts for each framework pair, busiest pairs first."""
    try:
        stats = FrameworkOverlapService(db).get_overlap_statistics(_split_ids(framework_ids) or None)
        return OverlapStatisticsResponse(
            statistics=[OverlapStatisticsItem.model_validate(item) for item in stats]
        )
    except Exception as e:
        logger.error(f"Error calculating overlap statistics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate overlap statistics")


@frameworks_router.get("/mappings", summary="List mappings between two frameworks")
async def get_framework_mappings(
    source: Optional[str] = Query(None, description="Source framework ID"),
    target: Optional[str] = Query(None, description="Target framework ID"),
    db: Session = Depends(get_db),
    _current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        mappings = FrameworkOverlapService(db).get_framework_mappings(source, target)
        return {"mappings": mappings, "total": len(mappings)}
    except Exception as e:
        logger.error(f"Error listing mappings between frameworks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list framework mappings")
