"""
ROI / ROSI Service
Return on security investment for an organization's risks.

Formulas:
    ALE = SLE * ARO
    ROSI = (ALE * mitigation% - investment) / investment
    Payback (months) = implementation cost / net annual savings * 12
"""

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from complygrid.database import MitigationInvestment, RiskCostProfile, ROSICalculation
from complygrid.services.risk_scoring import RiskScoringService

logger = logging.getLogger(__name__)


def calculate_ale(sle: float, aro: float) -> float:
    """Annual loss expectancy."""
    return sle * aro


def calculate_rosi(total_ale: float, mitigation_percent: float, total_investment: float) -> float:
    """ROSI as a ratio (0.25 == 25%); 0 when nothing is invested."""
    if total_investment == 0:
        return 0
    annual_savings = total_ale * (mitigation_percent / 100)
    return (annual_savings - total_investment) / total_investment


def calculate_payback_period(total_investment: float, annual_savings: float) -> float:
    """Months to recover the investment; ``math.inf`` without positive savings."""
    if annual_savings <= 0:
        return math.inf
    return (total_investment / annual_savings) * 12


def calculate_annual_savings(total_ale: float, mitigation_percent: float, annual_maintenance: float) -> float:
    return total_ale * (mitigation_percent / 100) - annual_maintenance


def summarize_investments(
    total_ale: float, investments: Sequence[Any], mitigation_percent: Optional[float] = None
) -> Dict[str, Any]:
    """
    ROSI figures for a set of mitigation investments.

    Args:
        total_ale: Annual loss expectancy being mitigated
        investments: Rows with implementation_cost, annual_maintenance_cost
            and mitigation_percent
        mitigation_percent: Override for the average mitigation of the rows

    Returns:
        Dict with total_investment breakdown, mitigation_percent, rosi (as a
        percentage), annual_savings and payback_months (None when never)
    """
    implementation = sum(inv.implementation_cost for inv in investments)
    maintenance = sum(inv.annual_maintenance_cost for inv in investments)
    total_investment = implementation + maintenance

    if mitigation_percent is None:
        mitigation_percent = (
            sum(inv.mitigation_percent for inv in investments) / len(investments) if investments else 0
        )

    rosi = calculate_rosi(total_ale, mitigation_percent, total_investment)
    annual_savings = calculate_annual_savings(total_ale, mitigation_percent, maintenance)
    payback = calculate_payback_period(implementation, annual_savings)

    return {
        "total_investment": {
            "implementation": implementation,
            "annual_maintenance": maintenance,
            "total": total_investment,
        },
        "mitigation_percent": mitigation_percent,
        "rosi_ratio": rosi,
        "rosi": rosi * 100,
        "annual_savings": annual_savings,
        "payback_period": payback,
        "payback_months": None if math.isinf(payback) else payback,
    }


class ROIService:
    """ROSI calculations scoped to one organization's risks."""

    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id
        self.risks = RiskScoringService(db)

    def _cost_profiles(self, risk_ids: List[str]) -> List[RiskCostProfile]:
        if not risk_ids:
            return []
        return self.db.query(RiskCostProfile).filter(RiskCostProfile.risk_id.in_(risk_ids)).all()

    def _investments(self, risk_ids: List[str], control_ids: Optional[Sequence[str]]) -> List[MitigationInvestment]:
        if not risk_ids:
            return []
        query = self.db.query(MitigationInvestment).filter(MitigationInvestment.risk_id.in_(risk_ids))
        if control_ids:
            query = query.filter(MitigationInvestment.control_id.in_(list(control_ids)))
        return query.order_by(MitigationInvestment.id.asc()).all()

    def _total_ale(self, profiles: Sequence[RiskCostProfile]) -> float:
        return sum(calculate_ale(p.sle, p.aro) for p in profiles)

    def calculate(
        self, risk_ids: Optional[Sequence[str]] = None, control_ids: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        """
        Calculate and persist ROSI for selected (or all) risks and controls.

        Returns:
            Response payload including the stored calculation id
        """
        org_risk_ids = self.risks.organization_risk_ids(self.organization_id, risk_ids)
        profiles = self._cost_profiles(org_risk_ids)
        investments = self._investments(org_risk_ids, control_ids)

        total_ale = self._total_ale(profiles)
        summary = summarize_investments(total_ale, investments)

        calculation = ROSICalculation(
            organization_id=self.organization_id,
            total_ale=total_ale,
            total_investment=summary["total_investment"]["total"],
            total_mitigation=summary["mitigation_percent"],
            rosi=summary["rosi_ratio"],
            payback_period=summary["payback_months"] or 0,
        )
        self.db.add(calculation)
        self.db.commit()
        self.db.refresh(calculation)

        logger.info(
            f"ROSI for organization {self.organization_id}: {summary['rosi']:.1f}% "
            f"over {len(profiles)} risks and {len(investments)} investments"
        )

        return {
            "id": calculation.id,
            "total_ale": total_ale,
            "total_investment": summary["total_investment"],
            "avg_mitigation_percent": summary["mitigation_percent"],
            "rosi": summary["rosi"],
            "annual_savings": summary["annual_savings"],
            "payback_months": summary["payback_months"],
            "risks_analyzed": len(profiles),
            "controls_analyzed": len(investments),
            "calculated_at": calculation.calculation_date.isoformat(),
        }

    def compare_scenarios(self, scenarios: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        What-if comparison of control investment scenarios.

        Each scenario is {name, control_ids, mitigation_percent?}. Results are
        sorted by ROSI, best first.
        """
        org_risk_ids = self.risks.organization_risk_ids(self.organization_id)
        profiles = self._cost_profiles(org_risk_ids)
        total_ale = self._total_ale(profiles)

        results = []
        for scenario in scenarios:
            investments = self._investments(org_risk_ids, scenario["control_ids"])
            summary = summarize_investments(total_ale, investments, scenario.get("mitigation_percent"))
            results.append(
                {
                    "name": scenario["name"],
                    "controls_count": len(investments),
                    "total_investment": summary["total_investment"],
                    "mitigation_percent": summary["mitigation_percent"],
                    "rosi": summary["rosi"],
                    "annual_savings": summary["annual_savings"],
                    "payback_months": summary["payback_months"],
                    "net_benefit": summary["annual_savings"] - summary["total_investment"]["total"],
                }
            )

        results.sort(key=lambda r: r["rosi"], reverse=True)
        return {
            "total_ale": total_ale,
            "risks_analyzed": len(profiles),
            "scenarios": results,
            "best_scenario": results[0]["name"] if results else None,
        }
