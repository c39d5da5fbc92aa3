"""
Supply Chain Risk Service
Propagates a vendor risk change down the vendor dependency hierarchy.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.orm import Session

from complygrid.config import get_settings
from complygrid.database import Vendor
from complygrid.services.errors import VendorNotFoundError
from complygrid.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

# Recursive walk from the start vendor through parent_vendor_id links. Every
# level is restricted to the organization, and UNION drops rows already seen
# so a parent_vendor_id cycle terminates.
DESCENDANTS_QUERY = text(
    """
    WITH RECURSIVE vendor_tree AS (
        SELECT id, name, tier, risk_score, parent_vendor_id
        FROM vendors
        WHERE id = :vendor_id AND organization_id = :organization_id

        UNION

        SELECT v.id, v.name, v.tier, v.risk_score, v.parent_vendor_id
        FROM vendors v
        INNER JOIN vendor_tree vt ON v.parent_vendor_id = vt.id
        WHERE v.organization_id = :organization_id
    )
    SELECT id, name, tier, risk_score
    FROM vendor_tree
    WHERE id != :vendor_id
    ORDER BY tier, name
    """
)


@dataclass
class AffectedVendor:
    id: str
    name: str
    tier: int
    current_risk: float
    new_risk: float
    risk_increase: float


@dataclass
class RiskPropagationResult:
    vendor_id: str
    vendor_name: str
    current_risk: float
    propagated_risk: float
    affected_vendors: List[AffectedVendor] = field(default_factory=list)

    @property
    def total_affected(self) -> int:
        return len(self.affected_vendors)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_affected"] = self.total_affected
        return data


def propagate_to_vendor(current_risk: float, new_risk_score: float, factor: float) -> Dict[str, float]:
    """
    Inherited risk for one downstream vendor.

    A vendor never drops below its own current score.
    """
    new_risk = max(new_risk_score * factor, current_risk)
    return {
        "new_risk": round_half_up(new_risk, 2),
        "risk_increase": round_half_up(new_risk - current_risk, 2),
    }


def calculate_risk_propagation(
    db: Session,
    vendor_id: str,
    organization_id: str,
    new_risk_score: Optional[float] = None,
    factor: Optional[float] = None,
) -> RiskPropagationResult:
    """
    Propagate a (hypothetical) risk score to every downstream vendor.

    Args:
        db: SQLAlchemy session
        vendor_id: Vendor whose risk changes
        organization_id: Tenant owning the vendor
        new_risk_score: Proposed score; defaults to the vendor's current score
        factor: Share of risk inherited per link; defaults to settings

    Raises:
        VendorNotFoundError: If the vendor does not exist in the organization
    """
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id, Vendor.organization_id == organization_id).first()
    if vendor is None:
        raise VendorNotFoundError(vendor_id)

    if factor is None:
        factor = get_settings().supply_chain_propagation_factor
    if new_risk_score is None:
        new_risk_score = vendor.risk_score

    rows = db.execute(DESCENDANTS_QUERY, {"vendor_id": vendor_id, "organization_id": organization_id}).fetchall()

    affected = [
        AffectedVendor(
            id=row.id,
            name=row.name,
            tier=row.tier,
            current_risk=row.risk_score,
            **propagate_to_vendor(row.risk_score, new_risk_score, factor),
        )
        for row in rows
    ]

    logger.info(f"Risk propagation from vendor {vendor_id}: {len(affected)} downstream vendors affected")

    return RiskPropagationResult(
        vendor_id=vendor.id,
        vendor_name=vendor.name,
        current_risk=vendor.risk_score,
        propagated_risk=new_risk_score,
        affected_vendors=affected,
    )


def build_graph_data(vendors: Sequence[Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Vendor dependency graph for visualization.

    Edges run parent -> child and are typed ``depends-on``.
    """
    nodes = [
        {
            "id": v.id,
            "label": v.name,
            "tier": v.tier,
            "risk_score": v.risk_score,
            "category": v.category,
        }
        for v in vendors
    ]
    edges = [
        {"source": v.parent_vendor_id, "target": v.id, "type": "depends-on"}
        for v in vendors
        if v.parent_vendor_id
    ]
    return {"nodes": nodes, "edges": edges}


def get_vendor_graph(db: Session, organization_id: str) -> Dict[str, List[Dict[str, Any]]]:
    vendors = (
        db.query(Vendor)
        .filter(Vendor.organization_id == organization_id)
        .order_by(Vendor.tier.asc(), Vendor.name.asc())
        .all()
    )
    return build_graph_data(vendors)
