"""
Regulatory Change API Endpoints
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.database import get_db
from complygrid.rbac import require_risk_manager
from complygrid.schemas.regulatory_schemas import AssessImpactRequest, AssessImpactResponse
from complygrid.services.errors import RegulatoryChangeNotFoundError
from complygrid.services.regulatory_impact import (
    assess_change_impact,
    get_affected_controls,
    get_regulatory_change,
)
from complygrid.utils.logging_security import sanitize_id_for_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/regulatory-changes", tags=["Regulatory Changes"])


@router.post(
    "/{change_id}/assess-impact",
    response_model=AssessImpactResponse,
    summary="Assess regulatory change impact",
)
async def assess_impact(
    change_id: str,
    request: Optional[AssessImpactRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_risk_manager),
) -> Dict[str, Any]:
    """
    Score the change for the caller's organization and store the result.

    Re-assessing updates the organization's existing impact record.
    """
    try:
        return assess_change_impact(
            db,
            change_id,
            current_user["organization_id"],
            assigned_to=request.assigned_to if request else None,
        )
    except RegulatoryChangeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error assessing regulatory change {sanitize_id_for_log(change_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to assess regulatory impact")


@router.get("/{change_id}/affected-controls", summary="List controls affected by a change")
async def list_affected_controls(
    change_id: str,
    db: Session = Depends(get_db),
    _current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        get_regulatory_change(db, change_id)
        return {"change_id": change_id, "frameworks": get_affected_controls(db, change_id)}
    except RegulatoryChangeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error listing controls for change {sanitize_id_for_log(change_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list affected controls")
