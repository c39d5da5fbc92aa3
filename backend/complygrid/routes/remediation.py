"""
Remediation Metrics API Endpoints
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.database import get_db
from complygrid.schemas.remediation_schemas import BurndownResponse, VelocityResponse
from complygrid.services.burndown import RemediationMetricsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/remediation", tags=["Remediation"])


@router.get("/burndown", response_model=BurndownResponse, summary="Get remediation burndown")
async def get_burndown(
    days: int = Query(30, ge=1, le=365),
    assessment_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Daily remaining/completed/ideal task counts plus a status summary."""
    try:
        return RemediationMetricsService(db, current_user["organization_id"]).get_burndown(days, assessment_id)
    except Exception as e:
        logger.error(f"Error generating burndown: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate burndown data")


@router.get("/velocity", response_model=VelocityResponse, summary="Get remediation velocity")
async def get_velocity(
    weeks: int = Query(12, ge=1, le=52),
    assessment_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return RemediationMetricsService(db, current_user["organization_id"]).get_velocity(weeks, assessment_id)
    except Exception as e:
        logger.error(f"Error calculating remediation velocity: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate remediation velocity")
