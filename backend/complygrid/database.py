"""
Database configuration and ORM models
PostgreSQL in production with TLS, SQLite for local development and tests
"""

import logging
from datetime import datetime
from typing import Any, Dict, Generator
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> Dict[str, Any]:
    """Build engine keyword arguments for the configured backend."""
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    connect_args: Dict[str, Any] = {
        "connect_timeout": 10,
        "options": "-c application_name=complygrid",
    }
    if settings.database_ssl_mode:
        connect_args["sslmode"] = settings.database_ssl_mode
    elif settings.debug:
        connect_args["sslmode"] = "disable"

    return {
        "poolclass": QueuePool,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # Recycle connections every hour
        "connect_args": connect_args,
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


# Organizations and users
class Organization(Base):  # type: ignore[valid-type, misc]
    """Tenant boundary: every assessment, chain, vendor and task belongs to one"""

    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class User(Base):  # type: ignore[valid-type, misc]
    """User model with Argon2id password storage"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), default="VIEWER", nullable=False)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)


# Framework catalog
class Framework(Base):  # type: ignore[valid-type, misc]
    """Regulatory or industry framework (NIST CSF, ISO 27001, PCI-DSS, ...)"""

    __tablename__ = "frameworks"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    short_name = Column(String(50), unique=True, nullable=False, index=True)
    version = Column(String(50), nullable=True)
    category = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Control(Base):  # type: ignore[valid-type, misc]
    """Framework control; parent_id links sub-controls to their group"""

    __tablename__ = "controls"
    __table_args__ = (UniqueConstraint("framework_id", "code", name="uq_controls_framework_code"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    framework_id = Column(String(36), ForeignKey("frameworks.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(36), ForeignKey("controls.id"), nullable=True, index=True)
    sort_order = Column(Integer, default=0, nullable=False)
    priority = Column(String(20), nullable=True)  # CRITICAL, HIGH, MEDIUM, LOW


class ControlMapping(Base):  # type: ignore[valid-type, misc]
    """Directed cross-framework control relationship"""

    __tablename__ = "control_mappings"
    __table_args__ = (
        UniqueConstraint("source_control_id", "target_control_id", name="uq_control_mappings_pair"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    source_control_id = Column(String(36), ForeignKey("controls.id", ondelete="CASCADE"), nullable=False, index=True)
    target_control_id = Column(String(36), ForeignKey("controls.id", ondelete="CASCADE"), nullable=False, index=True)
    source_framework_id = Column(String(36), ForeignKey("frameworks.id"), nullable=False, index=True)
    target_framework_id = Column(String(36), ForeignKey("frameworks.id"), nullable=False, index=True)
    confidence_score = Column(String(10), default="MEDIUM", nullable=False)  # HIGH, MEDIUM, LOW
    mapping_type = Column(String(20), default="RELATED", nullable=False)
    rationale = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# Risk assessments
class RiskAssessment(Base):  # type: ignore[valid-type, misc]
    """Organization risk assessment against a single framework"""

    __tablename__ = "risk_assessments"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    framework_id = Column(String(36), ForeignKey("frameworks.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    status = Column(String(20), default="DRAFT", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Risk(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "risks"

    id = Column(String(36), primary_key=True, default=_uuid)
    assessment_id = Column(String(36), ForeignKey("risk_assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    likelihood = Column(Integer, default=1, nullable=False)
    impact = Column(Integer, default=1, nullable=False)
    inherent_score = Column(Float, default=0, nullable=False)
    residual_score = Column(Float, default=0, nullable=False)
    target_score = Column(Float, nullable=True)
    control_effectiveness = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class RiskControl(Base):  # type: ignore[valid-type, misc]
    """Control applied to a risk with its measured effectiveness (0-100)"""

    __tablename__ = "risk_controls"

    id = Column(String(36), primary_key=True, default=_uuid)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)
    control_id = Column(String(36), ForeignKey("controls.id"), nullable=False, index=True)
    effectiveness = Column(Integer, default=0, nullable=False)


class RiskScoreHistory(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "risk_score_history"

    id = Column(String(36), primary_key=True, default=_uuid)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)
    inherent_score = Column(Float, nullable=False)
    residual_score = Column(Float, nullable=False)
    target_score = Column(Float, nullable=True)
    control_effectiveness = Column(Float, nullable=True)
    source = Column(String(50), default="MANUAL", nullable=False)
    notes = Column(Text, nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# Evidence and compliance chains
class Evidence(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "evidence"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    filename = Column(String(255), nullable=True)
    original_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class EvidenceLink(Base):  # type: ignore[valid-type, misc]
    """Evidence attached to a risk"""

    __tablename__ = "evidence_links"

    id = Column(String(36), primary_key=True, default=_uuid)
    evidence_id = Column(String(36), ForeignKey("evidence.id", ondelete="CASCADE"), nullable=False, index=True)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)


class ComplianceChain(Base):  # type: ignore[valid-type, misc]
    """Requirement -> control -> evidence traceability record"""

    __tablename__ = "compliance_chains"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    requirement = Column(Text, nullable=False)
    control_id = Column(String(36), ForeignKey("controls.id"), nullable=True, index=True)
    chain_status = Column(String(20), default="MISSING", nullable=False)  # COMPLETE, PARTIAL, MISSING
    evidence_ids = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# Supply chain
class Vendor(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    tier = Column(Integer, default=1, nullable=False)
    risk_score = Column(Float, default=0, nullable=False)
    parent_vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# Regulatory change tracking
class RegulatoryChange(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "regulatory_changes"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    source = Column(String(200), nullable=True)
    published_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class FrameworkChange(Base):  # type: ignore[valid-type, misc]
    """Framework touched by a regulatory change, with the affected control ids"""

    __tablename__ = "framework_changes"

    id = Column(String(36), primary_key=True, default=_uuid)
    change_id = Column(String(36), ForeignKey("regulatory_changes.id", ondelete="CASCADE"), nullable=False, index=True)
    framework_id = Column(String(36), ForeignKey("frameworks.id"), nullable=False, index=True)
    affected_controls = Column(JSON, default=list, nullable=False)


class ChangeImpact(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "change_impacts"
    __table_args__ = (UniqueConstraint("change_id", "organization_id", name="uq_change_impacts_org"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    change_id = Column(String(36), ForeignKey("regulatory_changes.id", ondelete="CASCADE"), nullable=False)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    impact_level = Column(String(10), nullable=False)
    action_required = Column(Boolean, default=False, nullable=False)
    due_date = Column(DateTime, nullable=True)
    assigned_to = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# Remediation
class Task(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_uuid)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    status = Column(String(20), default="OPEN", nullable=False)  # OPEN, IN_PROGRESS, COMPLETED, CANCELLED
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    due_date = Column(DateTime, nullable=True)


# ROI / ROSI
class RiskCostProfile(Base):  # type: ignore[valid-type, misc]
    """Single loss expectancy and annual rate of occurrence for a risk"""

    __tablename__ = "risk_cost_profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, unique=True)
    sle = Column(Float, nullable=False)
    aro = Column(Float, nullable=False)


class MitigationInvestment(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "mitigation_investments"

    id = Column(String(36), primary_key=True, default=_uuid)
    risk_id = Column(String(36), ForeignKey("risks.id", ondelete="CASCADE"), nullable=False, index=True)
    control_id = Column(String(36), ForeignKey("controls.id"), nullable=True, index=True)
    implementation_cost = Column(Float, default=0, nullable=False)
    annual_maintenance_cost = Column(Float, default=0, nullable=False)
    mitigation_percent = Column(Float, default=0, nullable=False)


class ROSICalculation(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "rosi_calculations"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    total_ale = Column(Float, nullable=False)
    total_investment = Column(Float, nullable=False)
    total_mitigation = Column(Float, nullable=False)
    rosi = Column(Float, nullable=False)
    payback_period = Column(Float, nullable=False)
    calculation_date = Column(DateTime, default=datetime.utcnow, nullable=False)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency providing a database session.

    Yields:
        SQLAlchemy Session, closed when the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create database tables if they don't exist."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        raise


def check_database_health() -> bool:
    """Check database connectivity for health checks"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    finally:
        db.close()


async def init_database() -> None:
    """
    Initialize database connection.

    Performs connectivity test and creates tables if they don't exist.
    Raises an exception if initialization fails.
    """
    try:
        if not check_database_health():
            raise ConnectionError("Database connection failed")

        create_tables()
        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
