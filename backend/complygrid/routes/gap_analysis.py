"""
Gap Analysis API Endpoints

Multi-framework gap analysis, pairwise coverage comparison and CSV export.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from complygrid.config import get_settings
from complygrid.database import get_db
from complygrid.rbac import require_assessor
from complygrid.services.errors import FrameworkNotFoundError
from complygrid.services.gap_analysis import get_gap_analysis_service
from complygrid.services.gap_analysis.cache import GapAnalysisCache
from complygrid.services.gap_analysis.export import export_filename
from complygrid.services.gap_analysis.models import GapAnalysisResult, PairwiseComparisonResult
from complygrid.utils.logging_security import sanitize_id_for_log, sanitize_ids_for_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gap-analysis", tags=["Gap Analysis"])

_cache: Optional[GapAnalysisCache] = None


def get_gap_analysis_cache() -> GapAnalysisCache:
    """Process-wide cache instance, created on first use"""
    global _cache
    if _cache is None:
        _cache = GapAnalysisCache()
    return _cache


def parse_framework_ids(frameworks: Optional[str]) -> List[str]:
    """
    Validate the comma-separated ``frameworks`` parameter.

    Raises:
        HTTPException: 400 when missing, empty or above the configured maximum
    """
    if frameworks is None or not frameworks.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="frameworks parameter is required")

    framework_ids = [fid.strip() for fid in frameworks.split(",") if fid.strip()]
    if not framework_ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one framework ID is required")

    max_frameworks = get_settings().gap_analysis_max_frameworks
    if len(framework_ids) > max_frameworks:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Maximum {max_frameworks} frameworks allowed"
        )
    return framework_ids


@router.get(
    "",
    response_model=Union[GapAnalysisResult, PairwiseComparisonResult],
    response_model_exclude_none=True,
    summary="Run gap analysis",
    description="Multi-framework gap analysis (default) or pairwise coverage comparison",
)
async def run_gap_analysis(
    mode: str = Query("multi", description="multi or pairwise"),
    frameworks: Optional[str] = Query(None, description="Comma-separated framework IDs (multi mode)"),
    source: Optional[str] = Query(None, description="Source framework ID (pairwise mode)"),
    target: Optional[str] = Query(None, description="Target framework ID (pairwise mode)"),
    db: Session = Depends(get_db),
    cache: GapAnalysisCache = Depends(get_gap_analysis_cache),
    current_user: Dict[str, Any] = Depends(require_assessor),
) -> Union[GapAnalysisResult, PairwiseComparisonResult]:
    """
    Run gap analysis for the caller's organization.

    Multi mode scores every selected framework, lists control-level gaps and
    builds the framework mapping matrix. Pairwise mode reports how much of
    each framework is covered by mappings to the other.

    Results are cached for five minutes; cached responses carry
    ``"cached": true``.

    Example Response (multi):
        {
            "frameworks": [{"id": "fw-1", "short_name": "NIST-CSF", "compliance_score": 72, ...}],
            "gaps": [{"control_code": "PR.AA-01", "compliance_status": "PARTIAL", ...}],
            "matrix": {"fw-1": {"fw-2": "MAPPED"}, "fw-2": {"fw-1": "MAPPED"}},
            "generated_at": "2025-11-21T12:34:56.789Z"
        }
    """
    if mode not in ("multi", "pairwise"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="mode must be 'multi' or 'pairwise'")

    service = get_gap_analysis_service(db, cache)

    if mode == "pairwise":
        if not source or not target:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="source and target framework IDs are required for pairwise mode",
            )
        if source == target:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="source and target must be different frameworks"
            )

        try:
            return await service.run_pairwise_comparison(source, target)
        except FrameworkNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
        except Exception as e:
            logger.error(
                f"Error comparing frameworks {sanitize_id_for_log(source)} and {sanitize_id_for_log(target)}: {e}",
                exc_info=True,
            )
            raise HTTPException(status_code=500, detail="Failed to run pairwise comparison")

    framework_ids = parse_framework_ids(frameworks)

    try:
        return await service.run_gap_analysis(current_user["organization_id"], framework_ids)
    except Exception as e:
        logger.error(f"Error running gap analysis for {sanitize_ids_for_log(framework_ids)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to run gap analysis")


@router.get(
    "/export",
    summary="Export gap analysis",
    description="Download the gap list as CSV",
)
async def export_gap_analysis(
    frameworks: Optional[str] = Query(None, description="Comma-separated framework IDs"),
    format: str = Query("csv", description="csv or pdf"),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_assessor),
) -> Response:
    """
    Export a fresh (uncached) gap analysis.

    Returns:
        text/csv attachment named gap-analysis-YYYY-MM-DD.csv
    """
    framework_ids = parse_framework_ids(frameworks)

    if format not in ("csv", "pdf"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="format must be 'csv' or 'pdf'")

    if format == "pdf":
        return JSONResponse(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            content={"error": "PDF export not yet implemented", "error_id": "NOT_IMPLEMENTED"},
        )

    try:
        csv_content = get_gap_analysis_service(db).export_csv(current_user["organization_id"], framework_ids)
    except Exception as e:
        logger.error(f"Error exporting gap analysis for {sanitize_ids_for_log(framework_ids)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to export gap analysis")

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
