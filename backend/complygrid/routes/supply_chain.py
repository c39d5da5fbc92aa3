"""
Supply Chain API Endpoints
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from complygrid.auth import get_current_user
from complygrid.database import get_db
from complygrid.schemas.regulatory_schemas import RiskPropagationResponse
from complygrid.services.errors import VendorNotFoundError
from complygrid.services.supply_chain import calculate_risk_propagation, get_vendor_graph
from complygrid.utils.logging_security import sanitize_id_for_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/supply-chain", tags=["Supply Chain"])


@router.get(
    "/risk-propagation",
    response_model=RiskPropagationResponse,
    summary="Simulate vendor risk propagation",
)
async def get_risk_propagation(
    vendor_id: str = Query(..., description="Vendor whose risk changes"),
    new_risk_score: Optional[float] = Query(None, ge=0, description="Defaults to the current score"),
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """How a vendor's (proposed) risk score flows to downstream vendors."""
    try:
        result = calculate_risk_propagation(
            db, vendor_id, current_user["organization_id"], new_risk_score=new_risk_score
        )
        return result.to_dict()
    except VendorNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error propagating risk for vendor {sanitize_id_for_log(vendor_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to calculate risk propagation")


@router.get("/graph", summary="Get vendor dependency graph")
async def get_graph(
    db: Session = Depends(get_db),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return get_vendor_graph(db, current_user["organization_id"])
    except Exception as e:
        logger.error(f"Error building vendor graph: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build vendor graph")
