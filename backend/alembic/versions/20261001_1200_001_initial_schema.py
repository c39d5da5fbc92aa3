"""Initial ComplyGrid schema

Revision ID: 20261001_1200_001
Revises:
Create Date: 2026-10-01

Creates the tenant, framework catalog, risk assessment, evidence,
compliance chain, vendor, regulatory change, remediation task and ROI tables.
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic
revision = "20261001_1200_001"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at():
    return sa.Column("created_at", sa.DateTime(), nullable=False)


def upgrade():
    """Create all tables with indexes."""
    # Tenants and users
    op.create_table("organizations", _id(), sa.Column("name", sa.String(200), nullable=False), _created_at())

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="VIEWER"),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column("last_login", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    # Framework catalog
    op.create_table(
        "frameworks",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("short_name", sa.String(50), nullable=False),
        sa.Column("version", sa.String(50), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_frameworks_short_name", "frameworks", ["short_name"], unique=True)

    op.create_table(
        "controls",
        _id(),
        sa.Column("framework_id", sa.String(36), sa.ForeignKey("frameworks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_id", sa.String(36), sa.ForeignKey("controls.id"), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.UniqueConstraint("framework_id", "code", name="uq_controls_framework_code"),
    )
    op.create_index("ix_controls_framework_id", "controls", ["framework_id"])
    op.create_index("ix_controls_parent_id", "controls", ["parent_id"])

    op.create_table(
        "control_mappings",
        _id(),
        sa.Column("source_control_id", sa.String(36), sa.ForeignKey("controls.id", ondelete="CASCADE"), nullable=False),
        sa.Column("target_control_id", sa.String(36), sa.ForeignKey("controls.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source_framework_id", sa.String(36), sa.ForeignKey("frameworks.id"), nullable=False),
        sa.Column("target_framework_id", sa.String(36), sa.ForeignKey("frameworks.id"), nullable=False),
        sa.Column("confidence_score", sa.String(10), nullable=False, server_default="MEDIUM"),
        sa.Column("mapping_type", sa.String(20), nullable=False, server_default="RELATED"),
        sa.Column("rationale", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("source_control_id", "target_control_id", name="uq_control_mappings_pair"),
    )
    for column in ("source_control_id", "target_control_id", "source_framework_id", "target_framework_id"):
        op.create_index(f"ix_control_mappings_{column}", "control_mappings", [column])

    # Risk assessments
    op.create_table(
        "risk_assessments",
        _id(),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("framework_id", sa.String(36), sa.ForeignKey("frameworks.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        _created_at(),
    )
    op.create_index("ix_risk_assessments_organization_id", "risk_assessments", ["organization_id"])
    op.create_index("ix_risk_assessments_framework_id", "risk_assessments", ["framework_id"])

    op.create_table(
        "risks",
        _id(),
        sa.Column(
            "assessment_id", sa.String(36), sa.ForeignKey("risk_assessments.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("likelihood", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("impact", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("inherent_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("residual_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("target_score", sa.Float(), nullable=True),
        sa.Column("control_effectiveness", sa.Float(), nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_risks_assessment_id", "risks", ["assessment_id"])

    op.create_table(
        "risk_controls",
        _id(),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("control_id", sa.String(36), sa.ForeignKey("controls.id"), nullable=False),
        sa.Column("effectiveness", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_risk_controls_risk_id", "risk_controls", ["risk_id"])
    op.create_index("ix_risk_controls_control_id", "risk_controls", ["control_id"])

    op.create_table(
        "risk_score_history",
        _id(),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("inherent_score", sa.Float(), nullable=False),
        sa.Column("residual_score", sa.Float(), nullable=False),
        sa.Column("target_score", sa.Float(), nullable=True),
        sa.Column("control_effectiveness", sa.Float(), nullable=True),
        sa.Column("source", sa.String(50), nullable=False, server_default="MANUAL"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_risk_score_history_risk_id", "risk_score_history", ["risk_id"])
    op.create_index("ix_risk_score_history_recorded_at", "risk_score_history", ["recorded_at"])

    # Evidence
    op.create_table(
        "evidence",
        _id(),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("filename", sa.String(255), nullable=True),
        sa.Column("original_name", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_evidence_organization_id", "evidence", ["organization_id"])

    op.create_table(
        "evidence_links",
        _id(),
        sa.Column("evidence_id", sa.String(36), sa.ForeignKey("evidence.id", ondelete="CASCADE"), nullable=False),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_evidence_links_evidence_id", "evidence_links", ["evidence_id"])
    op.create_index("ix_evidence_links_risk_id", "evidence_links", ["risk_id"])

    op.create_table(
        "compliance_chains",
        _id(),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("requirement", sa.Text(), nullable=False),
        sa.Column("control_id", sa.String(36), sa.ForeignKey("controls.id"), nullable=True),
        sa.Column("chain_status", sa.String(20), nullable=False, server_default="MISSING"),
        sa.Column("evidence_ids", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_compliance_chains_organization_id", "compliance_chains", ["organization_id"])
    op.create_index("ix_compliance_chains_control_id", "compliance_chains", ["control_id"])

    # Vendors
    op.create_table(
        "vendors",
        _id(),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("risk_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("parent_vendor_id", sa.String(36), sa.ForeignKey("vendors.id"), nullable=True),
        _created_at(),
    )
    op.create_index("ix_vendors_organization_id", "vendors", ["organization_id"])
    op.create_index("ix_vendors_parent_vendor_id", "vendors", ["parent_vendor_id"])

    # Regulatory changes
    op.create_table(
        "regulatory_changes",
        _id(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("source", sa.String(200), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "framework_changes",
        _id(),
        sa.Column(
            "change_id", sa.String(36), sa.ForeignKey("regulatory_changes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("framework_id", sa.String(36), sa.ForeignKey("frameworks.id"), nullable=False),
        sa.Column("affected_controls", sa.JSON(), nullable=False),
    )
    op.create_index("ix_framework_changes_change_id", "framework_changes", ["change_id"])
    op.create_index("ix_framework_changes_framework_id", "framework_changes", ["framework_id"])

    op.create_table(
        "change_impacts",
        _id(),
        sa.Column(
            "change_id", sa.String(36), sa.ForeignKey("regulatory_changes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("impact_level", sa.String(10), nullable=False),
        sa.Column("action_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("assigned_to", sa.String(36), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("change_id", "organization_id", name="uq_change_impacts_org"),
    )
    op.create_index("ix_change_impacts_organization_id", "change_impacts", ["organization_id"])

    # Remediation
    op.create_table(
        "tasks",
        _id(),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        _created_at(),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_tasks_risk_id", "tasks", ["risk_id"])

    # ROI / ROSI
    op.create_table(
        "risk_cost_profiles",
        _id(),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("sle", sa.Float(), nullable=False),
        sa.Column("aro", sa.Float(), nullable=False),
    )

    op.create_table(
        "mitigation_investments",
        _id(),
        sa.Column("risk_id", sa.String(36), sa.ForeignKey("risks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("control_id", sa.String(36), sa.ForeignKey("controls.id"), nullable=True),
        sa.Column("implementation_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("annual_maintenance_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("mitigation_percent", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_mitigation_investments_risk_id", "mitigation_investments", ["risk_id"])
    op.create_index("ix_mitigation_investments_control_id", "mitigation_investments", ["control_id"])

    op.create_table(
        "rosi_calculations",
        _id(),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("total_ale", sa.Float(), nullable=False),
        sa.Column("total_investment", sa.Float(), nullable=False),
        sa.Column("total_mitigation", sa.Float(), nullable=False),
        sa.Column("rosi", sa.Float(), nullable=False),
        sa.Column("payback_period", sa.Float(), nullable=False),
        sa.Column("calculation_date", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_rosi_calculations_organization_id", "rosi_calculations", ["organization_id"])


def downgrade():
    """Drop all tables in reverse dependency order."""
    for table in (
        "rosi_calculations",
        "mitigation_investments",
        "risk_cost_profiles",
        "tasks",
        "change_impacts",
        "framework_changes",
        "regulatory_changes",
        "vendors",
        "compliance_chains",
        "evidence_links",
        "evidence",
        "risk_score_history",
        "risk_controls",
        "risks",
        "risk_assessments",
        "control_mappings",
        "controls",
        "frameworks",
        "users",
        "organizations",
    ):
        op.drop_table(table)
