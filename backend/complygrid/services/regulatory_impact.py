"""
Regulatory Impact Service

Scores how strongly a regulatory change hits an organization, based on how
many of the affected controls exist in its frameworks and how many of them
are critical.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from complygrid.database import ChangeImpact, Control, Framework, FrameworkChange, RegulatoryChange
from complygrid.services.errors import RegulatoryChangeNotFoundError

logger = logging.getLogger(__name__)

CRITICAL_WEIGHT = 3
HIGH_IMPACT_THRESHOLD = 10
MEDIUM_IMPACT_THRESHOLD = 5
HIGH_IMPACT_DUE_DAYS = 30
MEDIUM_IMPACT_DUE_DAYS = 90


@dataclass
class ImpactResult:
    level: str
    action_required: bool
    due_date: Optional[datetime]
    affected_control_count: int
    critical_control_count: int
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "action_required": self.action_required,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "affected_control_count": self.affected_control_count,
            "critical_control_count": self.critical_control_count,
            "score": self.score,
        }


def classify_impact(affected: int, critical: int, now: Optional[datetime] = None) -> ImpactResult:
    """
    Turn control counts into an impact level and deadline.

    Critical controls weigh three times an ordinary affected control.
    """
    now = now or datetime.utcnow()
    score = affected + critical * CRITICAL_WEIGHT

    if score >= HIGH_IMPACT_THRESHOLD:
        return ImpactResult("HIGH", True, now + timedelta(days=HIGH_IMPACT_DUE_DAYS), affected, critical, score)
    if score >= MEDIUM_IMPACT_THRESHOLD:
        return ImpactResult("MEDIUM", True, now + timedelta(days=MEDIUM_IMPACT_DUE_DAYS), affected, critical, score)
    return ImpactResult("LOW", False, None, affected, critical, score)


def _framework_changes(db: Session, change_id: str) -> List[FrameworkChange]:
    return db.query(FrameworkChange).filter(FrameworkChange.change_id == change_id).all()


def _affected_controls(db: Session, framework_change: FrameworkChange) -> List[Control]:
    if not framework_change.affected_controls:
        return []
    return (
        db.query(Control)
        .filter(
            Control.framework_id == framework_change.framework_id,
            Control.id.in_(list(framework_change.affected_controls)),
        )
        .order_by(Control.sort_order.asc(), Control.code.asc())
        .all()
    )


def get_regulatory_change(db: Session, change_id: str) -> RegulatoryChange:
    change = db.query(RegulatoryChange).filter(RegulatoryChange.id == change_id).first()
    if change is None:
        raise RegulatoryChangeNotFoundError(change_id)
    return change


def calculate_regulatory_impact(
    db: Session, change_id: str, organization_id: str, now: Optional[datetime] = None
) -> ImpactResult:
    """
    Impact of a regulatory change.

    Only control ids that actually belong to the changed framework count.
    ``organization_id`` identifies the tenant the assessment is for.
    """
    affected = 0
    critical = 0
    for framework_change in _framework_changes(db, change_id):
        controls = _affected_controls(db, framework_change)
        affected += len(controls)
        critical += sum(1 for c in controls if c.priority == "CRITICAL")

    result = classify_impact(affected, critical, now)
    logger.info(
        f"Regulatory change {change_id} for organization {organization_id}: "
        f"{result.level} (score {result.score}, {affected} controls, {critical} critical)"
    )
    return result


def get_affected_controls(db: Session, change_id: str) -> List[Dict[str, Any]]:
    """Affected controls grouped by framework."""
    grouped = []
    for framework_change in _framework_changes(db, change_id):
        framework = db.query(Framework).filter(Framework.id == framework_change.framework_id).first()
        grouped.append(
            {
                "framework": {
                    "id": framework_change.framework_id,
                    "name": framework.name if framework else None,
                    "short_name": framework.short_name if framework else None,
                },
                "controls": [
                    {"id": c.id, "code": c.code, "title": c.title, "priority": c.priority}
                    for c in _affected_controls(db, framework_change)
                ],
            }
        )
    return grouped


def assess_change_impact(
    db: Session, change_id: str, organization_id: str, assigned_to: Optional[str] = None
) -> Dict[str, Any]:
    """
    Calculate and store the organization's impact record for a change.

    Raises:
        RegulatoryChangeNotFoundError: If the change does not exist
    """
    get_regulatory_change(db, change_id)
    result = calculate_regulatory_impact(db, change_id, organization_id)

    impact = (
        db.query(ChangeImpact)
        .filter(ChangeImpact.change_id == change_id, ChangeImpact.organization_id == organization_id)
        .first()
    )
    if impact is None:
        impact = ChangeImpact(change_id=change_id, organization_id=organization_id)
        db.add(impact)

    impact.impact_level = result.level
    impact.action_required = result.action_required
    impact.due_date = result.due_date
    if assigned_to is not None:
        impact.assigned_to = assigned_to

    db.commit()
    db.refresh(impact)

    return {
        "assessment": {
            "id": impact.id,
            "change_id": impact.change_id,
            "organization_id": impact.organization_id,
            "impact_level": impact.impact_level,
            "action_required": impact.action_required,
            "due_date": impact.due_date.isoformat() if impact.due_date else None,
            "assigned_to": impact.assigned_to,
        },
        "impact": result.to_dict(),
    }
