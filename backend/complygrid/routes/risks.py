"""
Risk Score API Endpoints

Score history and velocity for the caller's risks.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.database import get_db
from complygrid.schemas.risk_schemas import RiskHeatmapResponse, RiskHistoryResponse, RiskVelocityResponse
from complygrid.services.errors import RiskNotFoundError
from complygrid.services.risk_scoring import RiskScoringService
from complygrid.utils.logging_security import sanitize_id_for_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/risks", tags=["Risks"])


@router.get("/velocity", response_model=RiskVelocityResponse, summary="Get risk score velocity")
async def get_risk_velocity(
    risk_ids: Optional[str] = Query(None, description="Comma-separated risk IDs; all risks when omitted"),
    period_days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Velocity for each of the organization's risks over the last ``period_days`` days."""
    requested = [rid.strip() for rid in risk_ids.split(",") if rid.strip()] if risk_ids else None
    try:
        service = RiskScoringService(db)
        ids = service.organization_risk_ids(current_user["organization_id"], requested)
        return {"velocities": service.calculate_batch_velocity(ids, period_days), "period_days": period_days}
    except Exception as e:
        logger.error(f"Error calculating risk velocity: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate risk velocity")


@router.get("/heatmap", response_model=RiskHeatmapResponse, summary="Get likelihood x impact heatmap")
async def get_risk_heatmap(
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Count of the organization's risks in each likelihood x impact cell.

    Example Response:
        {
            "heatmap": [[0, 0, 0, 0, 0], ..., [0, 0, 0, 1, 2]],
            "total_risks": 3,
            "max_count": 2,
            "dimensions": {"likelihood": ["Very Low", ...], "impact": ["Very Low", ...]}
        }
    """
    try:
        return RiskScoringService(db).get_risk_heatmap(current_user["organization_id"])
    except Exception as e:
        logger.error(f"Error building risk heatmap: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build risk heatmap")


@router.get("/{risk_id}/history", response_model=RiskHistoryResponse, summary="Get risk score history")
async def get_risk_history(
    risk_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Chronological score history with the risk's current scores and velocity.

    Example Response:
        {
            "risk_id": "r-1",
            "risk_title": "Unpatched servers",
            "current_scores": {"inherent": 20, "residual": 8, "target": 5,
                               "control_effectiveness": 60, "level": "MEDIUM"},
            "history": [...],
            "velocity": {"inherent_change": 0, "residual_change": -0.4,
                         "trend": "improving", "period_days": 30},
            "total": 4
        }
    """
    try:
        return RiskScoringService(db).get_risk_history(
            risk_id, current_user["organization_id"], start_date=start_date, end_date=end_date, limit=limit
        )
    except RiskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error loading history for risk {sanitize_id_for_log(risk_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load risk history")
