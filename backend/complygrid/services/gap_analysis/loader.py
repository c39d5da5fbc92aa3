"""
Gap Analysis Data Layer

Loads framework controls, cross-framework mappings and assessment outcomes
into plain records so the calculators stay free of ORM concerns.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased

from complygrid.database import (
    Control,
    ControlMapping,
    EvidenceLink,
    Framework,
    Risk,
    RiskAssessment,
    RiskControl,
)

logger = logging.getLogger(__name__)

# Assessments in these states count towards compliance
SCORED_ASSESSMENT_STATUSES = ("APPROVED", "UNDER_REVIEW")


@dataclass(frozen=True)
class FrameworkRecord:
    id: str
    name: str
    short_name: str


@dataclass(frozen=True)
class ControlRecord:
    id: str
    framework_id: str
    code: str
    title: str
    parent_id: Optional[str] = None
    sort_order: int = 0
    priority: Optional[str] = None


@dataclass(frozen=True)
class MappingRecord:
    id: str
    source_control: ControlRecord
    target_control: ControlRecord
    source_framework_id: str
    target_framework_id: str
    confidence: str
    mapping_type: str
    rationale: Optional[str] = None

    @property
    def source_control_id(self) -> str:
        return self.source_control.id

    @property
    def target_control_id(self) -> str:
        return self.target_control.id


@dataclass(frozen=True)
class AssessmentRecord:
    """One risk-control link from a scored assessment."""

    framework_id: str
    control_id: str
    has_evidence: bool
    effectiveness: Optional[float]


def unique_ids(framework_ids: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates while keeping request order."""
    seen = set()
    result = []
    for framework_id in framework_ids:
        framework_id = framework_id.strip()
        if framework_id and framework_id not in seen:
            seen.add(framework_id)
            result.append(framework_id)
    return result


def _control_record(control: Control) -> ControlRecord:
    return ControlRecord(
        id=control.id,
        framework_id=control.framework_id,
        code=control.code,
        title=control.title,
        parent_id=control.parent_id,
        sort_order=control.sort_order or 0,
        priority=control.priority,
    )


class GapAnalysisDataLoader:
    """
    Reads everything the gap analysis needs in a handful of queries.

    All loaders take the framework selection up front; nothing is fetched
    lazily per control.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_frameworks(self, framework_ids: Sequence[str]) -> Dict[str, FrameworkRecord]:
        """
        Load framework metadata.

        Args:
            framework_ids: Framework IDs to look up

        Returns:
            Mapping of framework id to FrameworkRecord (unknown ids omitted)
        """
        if not framework_ids:
            return {}

        rows = self.db.query(Framework).filter(Framework.id.in_(list(framework_ids))).all()
        return {row.id: FrameworkRecord(id=row.id, name=row.name, short_name=row.short_name) for row in rows}

    def load_framework_controls(self, framework_ids: Sequence[str]) -> Dict[str, List[ControlRecord]]:
        """
        Load controls grouped by framework.

        Controls are ordered by sort_order then code. Every requested id gets
        an entry, empty when the framework has no controls.
        """
        grouped: Dict[str, List[ControlRecord]] = {framework_id: [] for framework_id in framework_ids}
        if not framework_ids:
            return grouped

        rows = (
            self.db.query(Control)
            .filter(Control.framework_id.in_(list(framework_ids)))
            .order_by(Control.sort_order.asc(), Control.code.asc())
            .all()
        )
        for row in rows:
            grouped.setdefault(row.framework_id, []).append(_control_record(row))

        logger.debug(f"Loaded {len(rows)} controls across {len(grouped)} frameworks")
        return grouped

    def load_control_mappings(self, framework_ids: Sequence[str]) -> List[MappingRecord]:
        """
        Load every mapping whose source or target framework is selected.

        Both endpoint controls are resolved so callers can report codes and
        titles, including for counterparts outside the selection.
        """
        if not framework_ids:
            return []

        ids = list(framework_ids)
        source_control = aliased(Control)
        target_control = aliased(Control)

        rows = (
            self.db.query(ControlMapping, source_control, target_control)
            .join(source_control, ControlMapping.source_control_id == source_control.id)
            .join(target_control, ControlMapping.target_control_id == target_control.id)
            .filter(
                or_(
                    ControlMapping.source_framework_id.in_(ids),
                    ControlMapping.target_framework_id.in_(ids),
                )
            )
            .order_by(ControlMapping.created_at.asc(), ControlMapping.id.asc())
            .all()
        )

        return [
            MappingRecord(
                id=mapping.id,
                source_control=_control_record(source),
                target_control=_control_record(target),
                source_framework_id=mapping.source_framework_id,
                target_framework_id=mapping.target_framework_id,
                confidence=mapping.confidence_score,
                mapping_type=mapping.mapping_type,
                rationale=mapping.rationale,
            )
            for mapping, source, target in rows
        ]

    def load_assessment_data(self, organization_id: str, framework_ids: Sequence[str]) -> List[AssessmentRecord]:
        """
        Load assessment outcomes for the organization.

        One record per risk-control link of every APPROVED or UNDER_REVIEW
        assessment on a selected framework. The record carries the
        assessment's framework, so a control only counts for the framework
        it was assessed against.

        Records are ordered oldest assessment first; the score calculator
        keeps the first record per (framework, control).
        """
        if not framework_ids:
            return []

        rows = (
            self.db.query(
                RiskAssessment.framework_id,
                RiskControl.control_id,
                RiskControl.effectiveness,
                Risk.id,
            )
            .join(Risk, Risk.assessment_id == RiskAssessment.id)
            .join(RiskControl, RiskControl.risk_id == Risk.id)
            .filter(
                RiskAssessment.organization_id == organization_id,
                RiskAssessment.framework_id.in_(list(framework_ids)),
                RiskAssessment.status.in_(SCORED_ASSESSMENT_STATUSES),
            )
            .order_by(
                RiskAssessment.created_at.asc(),
                RiskAssessment.id.asc(),
                Risk.created_at.asc(),
                Risk.id.asc(),
                RiskControl.id.asc(),
            )
            .all()
        )

        risk_ids = {row[3] for row in rows}
        risks_with_evidence = set()
        if risk_ids:
            risks_with_evidence = {
                risk_id
                for (risk_id,) in self.db.query(EvidenceLink.risk_id)
                .filter(EvidenceLink.risk_id.in_(list(risk_ids)))
                .distinct()
                .all()
            }

        return [
            AssessmentRecord(
                framework_id=framework_id,
                control_id=control_id,
                has_evidence=risk_id in risks_with_evidence,
                effectiveness=effectiveness,
            )
            for framework_id, control_id, effectiveness, risk_id in rows
        ]
