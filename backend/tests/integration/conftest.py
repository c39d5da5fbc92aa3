"""
Integration fixtures: a small two-framework catalog with one scored
assessment for the default organization.

Catalog layout:
    NIST-CSF  PR (parent), PR.AA-01, PR.AA-02
    ISO-27001 A.5.15, A.5.16 (flat)
    Mapping   PR.AA-01 -> A.5.15 (HIGH, EQUIVALENT)

Assessment (APPROVED, NIST-CSF):
    PR.AA-01 effectiveness 90, PR.AA-02 effectiveness 60, evidence linked
"""

from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session

from complygrid.database import (
    Control,
    ControlMapping,
    Evidence,
    EvidenceLink,
    Framework,
    Organization,
    Risk,
    RiskAssessment,
    RiskControl,
)


def add_control(db: Session, framework: Framework, code: str, sort_order: int, parent=None, priority=None) -> Control:
    control = Control(
        framework_id=framework.id,
        code=code,
        title=f"{code} control",
        sort_order=sort_order,
        parent_id=parent.id if parent else None,
        priority=priority,
    )
    db.add(control)
    db.flush()
    return control


@pytest.fixture
def catalog(db_session: Session, organization: Organization) -> SimpleNamespace:
    nist = Framework(name="NIST Cybersecurity Framework", short_name="NIST-CSF", version="2.0")
    iso = Framework(name="ISO/IEC 27001", short_name="ISO-27001", version="2022")
    db_session.add_all([nist, iso])
    db_session.flush()

    pr = add_control(db_session, nist, "PR", 0)
    n1 = add_control(db_session, nist, "PR.AA-01", 1, parent=pr, priority="CRITICAL")
    n2 = add_control(db_session, nist, "PR.AA-02", 2, parent=pr, priority="HIGH")
    i1 = add_control(db_session, iso, "A.5.15", 0, priority="CRITICAL")
    i2 = add_control(db_session, iso, "A.5.16", 1)

    db_session.add(
        ControlMapping(
            source_control_id=n1.id,
            target_control_id=i1.id,
            source_framework_id=nist.id,
            target_framework_id=iso.id,
            confidence_score="HIGH",
            mapping_type="EQUIVALENT",
            rationale="Access control policy",
        )
    )

    assessment = RiskAssessment(
        organization_id=organization.id,
        framework_id=nist.id,
        title="Annual NIST assessment",
        status="APPROVED",
        created_at=datetime(2025, 1, 1),
    )
    db_session.add(assessment)
    db_session.flush()

    risk = Risk(
        assessment_id=assessment.id,
        title="Credential theft",
        likelihood=4,
        impact=5,
        inherent_score=20,
        residual_score=8,
        control_effectiveness=60,
    )
    db_session.add(risk)
    db_session.flush()

    db_session.add_all(
        [
            RiskControl(risk_id=risk.id, control_id=n1.id, effectiveness=90),
            RiskControl(risk_id=risk.id, control_id=n2.id, effectiveness=60),
        ]
    )

    evidence = Evidence(organization_id=organization.id, filename="mfa-policy.pdf")
    db_session.add(evidence)
    db_session.flush()
    db_session.add(EvidenceLink(evidence_id=evidence.id, risk_id=risk.id))
    db_session.commit()

    return SimpleNamespace(
        nist=nist,
        iso=iso,
        controls={"PR": pr, "PR.AA-01": n1, "PR.AA-02": n2, "A.5.15": i1, "A.5.16": i2},
        assessment=assessment,
        risk=risk,
        evidence=evidence,
    )
