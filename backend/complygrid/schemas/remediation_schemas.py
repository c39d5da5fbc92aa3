"""
Remediation Metrics Schemas

Pydantic models for burndown, velocity and ROI/ROSI endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class BurndownPoint(BaseModel):
    date: str
    remaining: int
    completed: int
    ideal: int


class BurndownSummary(BaseModel):
    total: int
    completed: int
    in_progress: int
    overdue: int


class BurndownResponse(BaseModel):
    burndown: List[BurndownPoint]
    summary: BurndownSummary


class VelocityPoint(BaseModel):
    week: str
    completed: int
    avg_days_to_complete: float


class VelocityResponse(BaseModel):
    velocity: List[VelocityPoint]
    average: float


class ROICalculateRequest(BaseModel):
    """Restrict the calculation to specific risks and/or controls."""

    risk_ids: Optional[List[str]] = None
    control_ids: Optional[List[str]] = None


class InvestmentBreakdown(BaseModel):
    implementation: float
    annual_maintenance: float
    total: float


class ROICalculationResponse(BaseModel):
    id: str
    total_ale: float
    total_investment: InvestmentBreakdown
    avg_mitigation_percent: float
    rosi: float = Field(..., description="Return on security investment as a percentage")
    annual_savings: float
    payback_months: Optional[float] = None
    risks_analyzed: int
    controls_analyzed: int
    calculated_at: datetime


class ROIScenario(BaseModel):
    name: str = Field(..., min_length=1)
    control_ids: List[str] = Field(..., min_length=1)
    mitigation_percent: Optional[float] = Field(None, ge=0, le=100)


class ROIScenariosRequest(BaseModel):
    scenarios: List[ROIScenario] = Field(..., min_length=1)


class ROIScenarioResult(BaseModel):
    name: str
    controls_count: int
    total_investment: InvestmentBreakdown
    mitigation_percent: float
    rosi: float
    annual_savings: float
    payback_months: Optional[float] = None
    net_benefit: float


class ROIScenariosResponse(BaseModel):
    total_ale: float
    risks_analyzed: int
    scenarios: List[ROIScenarioResult]
    best_scenario: Optional[str] = None
