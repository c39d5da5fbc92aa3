"""
Gap Analysis Data Models

Type-safe Pydantic models for compliance scores, gaps, the framework mapping
matrix and pairwise coverage results.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ComplianceStatus(str, Enum):
    """Per-control compliance classification."""

    COMPLIANT = "COMPLIANT"  # effectiveness >= 80
    PARTIAL = "PARTIAL"  # effectiveness >= 50
    NON_COMPLIANT = "NON_COMPLIANT"
    NOT_ASSESSED = "NOT_ASSESSED"  # no assessment record


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class MappingType(str, Enum):
    EQUIVALENT = "EQUIVALENT"
    PARTIAL = "PARTIAL"
    RELATED = "RELATED"
    SUPERSET = "SUPERSET"
    SUBSET = "SUBSET"


class MatrixStatus(str, Enum):
    """Relationship between two frameworks in the gap matrix."""

    MAPPED = "MAPPED"
    PARTIAL = "PARTIAL"
    UNMAPPED = "UNMAPPED"


class MappedControlRef(BaseModel):
    """Counterpart control reached through a cross-framework mapping."""

    control_id: str
    control_code: str
    framework_id: str
    confidence: ConfidenceLevel


class FrameworkGap(BaseModel):
    """A control that is not fully compliant."""

    control_id: str
    control_code: str
    control_title: str
    framework_id: str
    framework_name: str
    has_assessment: bool
    has_evidence: bool
    compliance_status: ComplianceStatus
    mapped_controls: List[MappedControlRef] = Field(default_factory=list)


class FrameworkScore(BaseModel):
    """
    Weighted compliance score for one framework.

    compliance_score = round((compliant * 100 + partial * 50) / total)
    """

    id: str
    name: str
    short_name: str
    total_controls: int = Field(0, ge=0)
    compliant_controls: int = Field(0, ge=0)
    partial_controls: int = Field(0, ge=0)
    non_compliant_controls: int = Field(0, ge=0)
    not_assessed_controls: int = Field(0, ge=0)
    compliance_score: int = Field(0, ge=0, le=100)

    @model_validator(mode="after")
    def validate_totals(self) -> "FrameworkScore":
        """
        Validate that the status buckets partition the control set.

        Raises:
            ValueError: If the buckets do not add up to total_controls
        """
        bucket_sum = (
            self.compliant_controls
            + self.partial_controls
            + self.non_compliant_controls
            + self.not_assessed_controls
        )
        if bucket_sum != self.total_controls:
            raise ValueError(
                f"total_controls ({self.total_controls}) must equal the sum of "
                f"status buckets ({bucket_sum})"
            )
        return self


class GapAnalysisResult(BaseModel):
    """Multi-framework gap analysis output."""

    frameworks: List[FrameworkScore] = Field(default_factory=list)
    gaps: List[FrameworkGap] = Field(default_factory=list)
    matrix: Dict[str, Dict[str, MatrixStatus]] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    cached: Optional[bool] = Field(None, description="Set when served from cache")

    class Config:
        json_encoders = {datetime: lambda v: v.isoformat()}


class MappedDetail(BaseModel):
    source_code: str
    source_title: str
    target_code: str
    target_title: str
    confidence: ConfidenceLevel
    mapping_type: MappingType


class UnmappedDetail(BaseModel):
    code: str
    title: str


class DirectionCoverage(BaseModel):
    """How much of the source framework is covered by the target framework."""

    source_id: str
    source_name: str
    source_short_name: str
    target_id: str
    target_name: str
    target_short_name: str
    total_source_controls: int = Field(0, ge=0)
    mapped_controls: int = Field(0, ge=0)
    unmapped_controls: int = Field(0, ge=0)
    coverage_percentage: int = Field(0, ge=0, le=100)
    mapped_details: List[MappedDetail] = Field(default_factory=list)
    unmapped_details: List[UnmappedDetail] = Field(default_factory=list)


class PairwiseComparisonResult(BaseModel):
    source_to_target: DirectionCoverage
    target_to_source: DirectionCoverage
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    cached: Optional[bool] = Field(None, description="Set when served from cache")

    class Config:
        json_encoders = {datetime: lambda v: v.isoformat()}
