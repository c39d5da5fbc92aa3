"""
Risk Scoring Schemas

Pydantic models for risk score history and velocity responses.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RiskVelocity(BaseModel):
    """Per-day score change over a history window."""

    inherent_change: float = 0
    residual_change: float = 0
    trend: str = Field("stable", description="improving, worsening or stable")
    period_days: int = 0


class CurrentScores(BaseModel):
    inherent: float
    residual: float
    target: Optional[float] = None
    control_effectiveness: float
    level: str


class RiskHistoryEntry(BaseModel):
    id: str
    risk_id: str
    inherent_score: float
    residual_score: float
    target_score: Optional[float] = None
    control_effectiveness: Optional[float] = None
    source: str
    notes: Optional[str] = None
    recorded_at: str
    created_at: str


class RiskHistoryResponse(BaseModel):
    risk_id: str
    risk_title: str
    current_scores: CurrentScores
    history: List[RiskHistoryEntry]
    velocity: RiskVelocity
    total: int


class RiskVelocityResponse(BaseModel):
    velocities: Dict[str, RiskVelocity]
    period_days: int


class HeatmapDimensions(BaseModel):
    likelihood: List[str]
    impact: List[str]


class RiskHeatmapResponse(BaseModel):
    """5x5 risk counts indexed [likelihood - 1][impact - 1]."""

    heatmap: List[List[int]]
    total_risks: int
    max_count: int
    dimensions: HeatmapDimensions
