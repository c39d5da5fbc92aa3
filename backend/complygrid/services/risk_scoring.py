"""
Risk Scoring Service
Inherent/residual scoring on the 5x5 likelihood-impact scale and score
velocity from history.
"""

import logging
from datetime import datetime, timedelta
from functools import reduce
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from complygrid.database import Risk, RiskAssessment, RiskScoreHistory
from complygrid.services.errors import InvalidRiskParameterError, RiskNotFoundError
from complygrid.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 0.1  # points per day
SECONDS_PER_DAY = 24 * 60 * 60


def calculate_inherent_score(likelihood: int, impact: int) -> int:
    """
    Inherent risk score (1-25).

    Raises:
        InvalidRiskParameterError: If either rating is outside 1-5
    """
    if likelihood < 1 or likelihood > 5 or impact < 1 or impact > 5:
        raise InvalidRiskParameterError("Likelihood and impact must be between 1 and 5")
    return likelihood * impact


def calculate_residual_score(inherent_score: float, control_effectiveness: float) -> float:
    """
    Residual score after controls: inherent * (1 - effectiveness / 100).

    Raises:
        InvalidRiskParameterError: If effectiveness is outside 0-100
    """
    if control_effectiveness < 0 or control_effectiveness > 100:
        raise InvalidRiskParameterError("Control effectiveness must be between 0 and 100")
    return inherent_score * (1 - control_effectiveness / 100)


def calculate_overall_effectiveness(control_effectiveness: Sequence[float]) -> float:
    """
    Combined effectiveness of independent controls.

    Compound probability: 1 - (1 - e1) * (1 - e2) * ... expressed as a
    percentage. No controls means 0.
    """
    if not control_effectiveness:
        return 0
    residual = reduce(lambda acc, eff: acc * (1 - eff / 100), control_effectiveness, 1.0)
    return (1 - residual) * 100


def get_risk_level(score: float) -> str:
    if score >= 17:
        return "CRITICAL"
    if score >= 10:
        return "HIGH"
    if score >= 5:
        return "MEDIUM"
    return "LOW"


def validate_risk_parameters(likelihood: Any, impact: Any) -> bool:
    """
    Validate likelihood and impact ratings.

    Raises:
        InvalidRiskParameterError: If either value is not an integer in 1-5
    """
    if not _is_integer(likelihood) or likelihood < 1 or likelihood > 5:
        raise InvalidRiskParameterError("Likelihood must be an integer between 1 and 5")
    if not _is_integer(impact) or impact < 1 or impact > 5:
        raise InvalidRiskParameterError("Impact must be an integer between 1 and 5")
    return True


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def stable_velocity() -> Dict[str, Any]:
    return {"inherent_change": 0, "residual_change": 0, "trend": "stable", "period_days": 0}


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def calculate_risk_velocity(history: Sequence[Any]) -> Dict[str, Any]:
    """
    Rate of change of a risk's scores.

    Args:
        history: Records (dicts or ORM rows) with recorded_at, inherent_score
            and residual_score, in any order

    Returns:
        {inherent_change, residual_change, trend, period_days}; changes are
        points per day rounded to 2 places, trend follows residual change:
        below -0.1 improving, above 0.1 worsening, otherwise stable

    Example:
        >>> calculate_risk_velocity([
        ...     {"recorded_at": "2025-01-01T00:00:00", "inherent_score": 20, "residual_score": 16},
        ...     {"recorded_at": "2025-01-11T00:00:00", "inherent_score": 20, "residual_score": 6},
        ... ])["trend"]
        'improving'
    """
    if len(history) < 2:
        return stable_velocity()

    ordered = sorted(history, key=lambda r: _as_datetime(_field(r, "recorded_at")))
    oldest, newest = ordered[0], ordered[-1]

    span = _as_datetime(_field(newest, "recorded_at")) - _as_datetime(_field(oldest, "recorded_at"))
    days = max(1.0, span.total_seconds() / SECONDS_PER_DAY)

    inherent_change = (_field(newest, "inherent_score") - _field(oldest, "inherent_score")) / days
    residual_change = (_field(newest, "residual_score") - _field(oldest, "residual_score")) / days

    trend = "stable"
    if residual_change < -TREND_THRESHOLD:
        trend = "improving"
    elif residual_change > TREND_THRESHOLD:
        trend = "worsening"

    return {
        "inherent_change": round_half_up(inherent_change, 2),
        "residual_change": round_half_up(residual_change, 2),
        "trend": trend,
        "period_days": round_half_up(days),
    }


def calculate_batch_risk_velocity(risks_with_history: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Velocity per risk for items shaped {"risk_id": ..., "history": [...]}."""
    return {item["risk_id"]: calculate_risk_velocity(item["history"]) for item in risks_with_history}


HEATMAP_LABELS = ["Very Low", "Low", "Medium", "High", "Very High"]


def build_risk_heatmap(ratings: Iterable[Tuple[int, int]]) -> Dict[str, Any]:
    """
    Count risks per likelihood x impact cell of the 5x5 matrix.

    ``heatmap[likelihood - 1][impact - 1]`` holds the count. Ratings outside
    1-5 are left out of the matrix but still counted in ``total_risks``.
    """
    heatmap = [[0] * 5 for _ in range(5)]
    total = 0
    for likelihood, impact in ratings:
        total += 1
        if 1 <= likelihood <= 5 and 1 <= impact <= 5:
            heatmap[likelihood - 1][impact - 1] += 1

    return {
        "heatmap": heatmap,
        "total_risks": total,
        "max_count": max(max(row) for row in heatmap),
        "dimensions": {"likelihood": list(HEATMAP_LABELS), "impact": list(HEATMAP_LABELS)},
    }


class RiskScoringService:
    """Risk history and velocity backed by RiskScoreHistory."""

    def __init__(self, db: Session):
        self.db = db

    def calculate_batch_velocity(
        self, risk_ids: Sequence[str], period_days: int = 30, now: Optional[datetime] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Velocity for several risks over the last ``period_days`` days.

        Risks with fewer than two records in the window are stable.
        """
        if not risk_ids:
            return {}

        start = (now or datetime.utcnow()) - timedelta(days=period_days)
        records = (
            self.db.query(RiskScoreHistory)
            .filter(RiskScoreHistory.risk_id.in_(list(risk_ids)), RiskScoreHistory.recorded_at >= start)
            .order_by(RiskScoreHistory.recorded_at.asc())
            .all()
        )

        by_risk: Dict[str, List[RiskScoreHistory]] = {}
        for record in records:
            by_risk.setdefault(record.risk_id, []).append(record)

        return {risk_id: calculate_risk_velocity(by_risk.get(risk_id, [])) for risk_id in risk_ids}

    def calculate_single_velocity(self, risk_id: str, period_days: int = 30) -> Dict[str, Any]:
        return self.calculate_batch_velocity([risk_id], period_days).get(risk_id, stable_velocity())

    def get_organization_risk(self, risk_id: str, organization_id: str) -> Risk:
        """
        Raises:
            RiskNotFoundError: If the risk does not exist in the organization
        """
        risk = (
            self.db.query(Risk)
            .join(RiskAssessment, Risk.assessment_id == RiskAssessment.id)
            .filter(Risk.id == risk_id, RiskAssessment.organization_id == organization_id)
            .first()
        )
        if risk is None:
            raise RiskNotFoundError(risk_id)
        return risk

    def organization_risk_ids(self, organization_id: str, risk_ids: Optional[Sequence[str]] = None) -> List[str]:
        """Risk ids of the organization, optionally restricted to a subset."""
        query = (
            self.db.query(Risk.id)
            .join(RiskAssessment, Risk.assessment_id == RiskAssessment.id)
            .filter(RiskAssessment.organization_id == organization_id)
        )
        if risk_ids:
            query = query.filter(Risk.id.in_(list(risk_ids)))
        return [risk_id for (risk_id,) in query.order_by(Risk.created_at.asc(), Risk.id.asc()).all()]

    def get_risk_history(
        self,
        risk_id: str,
        organization_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """
        Score history of a risk with its velocity.

        Raises:
            RiskNotFoundError: If the risk does not exist in the organization
        """
        risk = self.get_organization_risk(risk_id, organization_id)

        query = self.db.query(RiskScoreHistory).filter(RiskScoreHistory.risk_id == risk.id)
        if start_date:
            query = query.filter(RiskScoreHistory.recorded_at >= start_date)
        if end_date:
            query = query.filter(RiskScoreHistory.recorded_at <= end_date)
        records = query.order_by(RiskScoreHistory.recorded_at.asc()).limit(limit).all()

        history = [
            {
                "id": h.id,
                "risk_id": h.risk_id,
                "inherent_score": h.inherent_score,
                "residual_score": h.residual_score,
                "target_score": h.target_score,
                "control_effectiveness": h.control_effectiveness,
                "source": h.source,
                "notes": h.notes,
                "recorded_at": h.recorded_at.isoformat(),
                "created_at": h.created_at.isoformat(),
            }
            for h in records
        ]

        return {
            "risk_id": risk.id,
            "risk_title": risk.title,
            "current_scores": {
                "inherent": risk.inherent_score,
                "residual": risk.residual_score,
                "target": risk.target_score,
                "control_effectiveness": risk.control_effectiveness,
                "level": get_risk_level(risk.residual_score),
            },
            "history": history,
            "velocity": calculate_risk_velocity(history),
            "total": len(history),
        }

    def get_risk_heatmap(self, organization_id: str) -> Dict[str, Any]:
        ratings = (
            self.db.query(Risk.likelihood, Risk.impact)
            .join(RiskAssessment, Risk.assessment_id == RiskAssessment.id)
            .filter(RiskAssessment.organization_id == organization_id)
            .all()
        )
        return build_risk_heatmap((likelihood, impact) for likelihood, impact in ratings)
