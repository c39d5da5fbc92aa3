"""
Regulatory Change and Supply Chain Schemas
"""

from typing import List, Optional

from pydantic import BaseModel


class AssessImpactRequest(BaseModel):
    assigned_to: Optional[str] = None


class ImpactDetails(BaseModel):
    level: str
    action_required: bool
    due_date: Optional[str] = None
    affected_control_count: int
    critical_control_count: int
    score: int


class ImpactAssessment(BaseModel):
    id: str
    change_id: str
    organization_id: str
    impact_level: str
    action_required: bool
    due_date: Optional[str] = None
    assigned_to: Optional[str] = None


class AssessImpactResponse(BaseModel):
    assessment: ImpactAssessment
    impact: ImpactDetails


class AffectedVendorItem(BaseModel):
    id: str
    name: str
    tier: int
    current_risk: float
    new_risk: float
    risk_increase: float


class RiskPropagationResponse(BaseModel):
    vendor_id: str
    vendor_name: str
    current_risk: float
    propagated_risk: float
    affected_vendors: List[AffectedVendorItem]
    total_affected: int
