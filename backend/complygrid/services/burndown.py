"""
Remediation burndown and velocity metrics.

Task inputs can be ORM rows or anything else exposing ``status``,
``created_at``, ``completed_at`` and ``due_date`` attributes.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from complygrid.database import Risk, RiskAssessment, Task
from complygrid.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

CLOSED_STATUSES = ("COMPLETED", "CANCELLED")
SECONDS_PER_DAY = 24 * 60 * 60


def generate_ideal_line(total_tasks: int, total_days: int, day_index: int) -> int:
    """Ideal remaining count for a day on a straight burn to zero."""
    if total_days == 0:
        return total_tasks
    ideal = total_tasks - (total_tasks / total_days) * day_index
    return max(0, round_half_up(ideal))


def _completed_by(task: Any, moment: datetime) -> bool:
    return task.status == "COMPLETED" and task.completed_at is not None and task.completed_at <= moment


def generate_burndown_data(tasks: Sequence[Any], start_date: datetime, end_date: datetime) -> List[Dict[str, Any]]:
    """
    Daily burndown points from ``start_date`` through ``end_date``.

    Returns:
        One {date, remaining, completed, ideal} dict per day, both ends
        included; ``date`` is an ISO date string
    """
    total_days = math.ceil((end_date - start_date).total_seconds() / SECONDS_PER_DAY)
    total_tasks = len(tasks)

    points = []
    for i in range(total_days + 1):
        current = start_date + timedelta(days=i)
        created = sum(1 for t in tasks if t.created_at <= current)
        completed = sum(1 for t in tasks if _completed_by(t, current))
        points.append(
            {
                "date": current.date().isoformat(),
                "remaining": created - completed,
                "completed": completed,
                "ideal": generate_ideal_line(total_tasks, total_days, i),
            }
        )
    return points


def calculate_velocity(completed_tasks: Sequence[Any], weeks: int, start_date: datetime) -> List[Dict[str, Any]]:
    """
    Weekly completion counts and average days to complete.

    Week ``i`` covers [start + 7i days, start + 7(i+1) days).
    """
    velocity = []
    for i in range(weeks):
        week_start = start_date + timedelta(days=i * 7)
        week_end = week_start + timedelta(days=7)

        week_tasks = [t for t in completed_tasks if t.completed_at and week_start <= t.completed_at < week_end]
        total_days = sum((t.completed_at - t.created_at).total_seconds() / SECONDS_PER_DAY for t in week_tasks)

        velocity.append(
            {
                "week": week_start.date().isoformat(),
                "completed": len(week_tasks),
                "avg_days_to_complete": round_half_up(total_days / len(week_tasks), 1) if week_tasks else 0,
            }
        )
    return velocity


def calculate_overdue_tasks(tasks: Sequence[Any], now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    return sum(1 for t in tasks if t.status not in CLOSED_STATUSES and t.due_date and t.due_date < now)


class RemediationMetricsService:
    """Organization-scoped task queries for burndown and velocity."""

    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    def _tasks(self, assessment_id: Optional[str] = None):
        query = (
            self.db.query(Task)
            .join(Risk, Task.risk_id == Risk.id)
            .join(RiskAssessment, Risk.assessment_id == RiskAssessment.id)
            .filter(RiskAssessment.organization_id == self.organization_id)
        )
        if assessment_id:
            query = query.filter(Risk.assessment_id == assessment_id)
        return query

    def get_burndown(self, days: int = 30, assessment_id: Optional[str] = None) -> Dict[str, Any]:
        """Burndown over the last ``days`` days plus a status summary."""
        end_date = datetime.utcnow()
        start_date = end_date - timedelta(days=days)
        tasks = self._tasks(assessment_id).order_by(Task.created_at.asc()).all()

        return {
            "burndown": generate_burndown_data(tasks, start_date, end_date),
            "summary": {
                "total": len(tasks),
                "completed": sum(1 for t in tasks if t.status == "COMPLETED"),
                "in_progress": sum(1 for t in tasks if t.status == "IN_PROGRESS"),
                "overdue": calculate_overdue_tasks(tasks, end_date),
            },
        }

    def get_velocity(self, weeks: int = 12, assessment_id: Optional[str] = None) -> Dict[str, Any]:
        """Weekly velocity for the last ``weeks`` weeks."""
        start_date = datetime.utcnow() - timedelta(weeks=weeks)
        completed = (
            self._tasks(assessment_id)
            .filter(Task.status == "COMPLETED", Task.completed_at >= start_date)
            .order_by(Task.completed_at.asc())
            .all()
        )
        velocity = calculate_velocity(completed, weeks, start_date)
        total_completed = sum(point["completed"] for point in velocity)
        return {"velocity": velocity, "average": round_half_up(total_completed / weeks, 1)}
