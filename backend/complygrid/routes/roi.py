"""
ROI / ROSI API Endpoints
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from complygrid.database import get_db
from complygrid.rbac import require_risk_manager
from complygrid.schemas.remediation_schemas import (
    ROICalculateRequest,
    ROICalculationResponse,
    ROIScenariosRequest,
    ROIScenariosResponse,
)
from complygrid.services.roi import ROIService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roi", tags=["ROI"])


@router.post(
    "/calculate",
    response_model=ROICalculationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Calculate return on security investment",
)
async def calculate_roi(
    request: Optional[ROICalculateRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_risk_manager),
) -> Dict[str, Any]:
    """
    Calculate and store ROSI for the organization's risks.

    ``rosi`` is a percentage; ``payback_months`` is null when the
    investment never pays back.
    """
    request = request or ROICalculateRequest()
    try:
        return ROIService(db, current_user["organization_id"]).calculate(request.risk_ids, request.control_ids)
    except Exception as e:
        logger.error(f"Error calculating ROI: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate ROI")


@router.post("/scenarios", response_model=ROIScenariosResponse, summary="Compare investment scenarios")
async def compare_scenarios(
    request: ROIScenariosRequest,
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_risk_manager),
) -> Dict[str, Any]:
    """What-if ROSI for alternative control investments, best first."""
    try:
        return ROIService(db, current_user["organization_id"]).compare_scenarios(
            [scenario.model_dump() for scenario in request.scenarios]
        )
    except Exception as e:
        logger.error(f"Error comparing ROI scenarios: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to analyze ROI scenarios")
