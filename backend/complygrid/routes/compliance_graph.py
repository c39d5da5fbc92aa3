"""
Compliance Graph API Endpoints

Requirement -> control -> evidence chains for the caller's organization.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.database import get_db
from complygrid.services.compliance_chain import ComplianceChainService
from complygrid.utils.logging_security import sanitize_id_for_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compliance-graph", tags=["Compliance Graph"])


@router.get("/coverage", summary="Get compliance chain coverage")
async def get_coverage(
    framework_id: Optional[str] = Query(None, description="Restrict to one framework"),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Coverage per framework plus an overall rollup.

    Example Response:
        {
            "frameworks": [{"id": "fw-1", "name": "NIST CSF", "total": 20,
                            "complete": 8, "partial": 4, "missing": 8,
                            "coverage_percent": 40}],
            "overall": {"total": 20, "complete": 8, "partial": 4,
                        "missing": 8, "coverage_percent": 40}
        }
    """
    try:
        return ComplianceChainService(db, current_user["organization_id"]).get_coverage(framework_id)
    except Exception as e:
        logger.error(f"Error calculating compliance coverage: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate compliance coverage")


@router.get("/flow-data", summary="Get compliance flow graph")
async def get_flow_data(
    framework_id: str = Query(..., description="Framework to graph"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """React Flow nodes, edges and counts for the newest chains."""
    try:
        return ComplianceChainService(db, current_user["organization_id"]).get_flow_data(framework_id, limit)
    except Exception as e:
        logger.error(f"Error building flow data for framework {sanitize_id_for_log(framework_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build compliance flow data")
