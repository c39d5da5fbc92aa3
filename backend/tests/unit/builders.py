"""
Record builders for gap analysis unit tests.
"""

from typing import Optional

from complygrid.services.gap_analysis.loader import AssessmentRecord, ControlRecord, MappingRecord


def control(
    control_id: str,
    framework_id: str,
    code: Optional[str] = None,
    parent_id: Optional[str] = None,
    sort_order: int = 0,
) -> ControlRecord:
    return ControlRecord(
        id=control_id,
        framework_id=framework_id,
        code=code or control_id.upper(),
        title=f"Title of {code or control_id}",
        parent_id=parent_id,
        sort_order=sort_order,
    )


def mapping(
    source: ControlRecord,
    target: ControlRecord,
    confidence: str = "HIGH",
    mapping_type: str = "EQUIVALENT",
    mapping_id: Optional[str] = None,
) -> MappingRecord:
    return MappingRecord(
        id=mapping_id or f"m-{source.id}-{target.id}",
        source_control=source,
        target_control=target,
        source_framework_id=source.framework_id,
        target_framework_id=target.framework_id,
        confidence=confidence,
        mapping_type=mapping_type,
    )


def assessment(
    framework_id: str, control_id: str, effectiveness: Optional[float], has_evidence: bool = False
) -> AssessmentRecord:
    return AssessmentRecord(
        framework_id=framework_id,
        control_id=control_id,
        has_evidence=has_evidence,
        effectiveness=effectiveness,
    )
