"""
Gap Analysis Core Layer - Compliance Score Calculator

Classifies every control from assessment effectiveness and rolls the
classifications up into a weighted score per framework.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from complygrid.utils.rounding import round_half_up

from ..loader import AssessmentRecord, ControlRecord, FrameworkRecord
from ..models import ComplianceStatus, FrameworkScore

logger = logging.getLogger(__name__)

COMPLIANT_THRESHOLD = 80
PARTIAL_THRESHOLD = 50

# Score contribution per status, out of 100
STATUS_WEIGHTS = {
    ComplianceStatus.COMPLIANT: 100,
    ComplianceStatus.PARTIAL: 50,
    ComplianceStatus.NON_COMPLIANT: 0,
    ComplianceStatus.NOT_ASSESSED: 0,
}

AssessmentLookup = Dict[Tuple[str, str], AssessmentRecord]


def classify_effectiveness(effectiveness: Optional[float]) -> ComplianceStatus:
    """
    Map a control effectiveness percentage to a compliance status.

    Args:
        effectiveness: Effectiveness 0-100, None is treated as 0

    Returns:
        COMPLIANT (>= 80), PARTIAL (>= 50) or NON_COMPLIANT

    Example:
        >>> classify_effectiveness(80)
        <ComplianceStatus.COMPLIANT: 'COMPLIANT'>
        >>> classify_effectiveness(79.9)
        <ComplianceStatus.PARTIAL: 'PARTIAL'>
    """
    value = effectiveness or 0
    if value >= COMPLIANT_THRESHOLD:
        return ComplianceStatus.COMPLIANT
    elif value >= PARTIAL_THRESHOLD:
        return ComplianceStatus.PARTIAL
    else:
        return ComplianceStatus.NON_COMPLIANT


def build_assessment_lookup(records: Iterable[AssessmentRecord]) -> AssessmentLookup:
    """
    Index assessment records by (framework_id, control_id).

    The first record seen for a key wins; later duplicates are ignored.
    """
    lookup: AssessmentLookup = {}
    for record in records:
        lookup.setdefault((record.framework_id, record.control_id), record)
    return lookup


def resolve_control_status(record: Optional[AssessmentRecord]) -> ComplianceStatus:
    """Status of a control given its (possibly missing) assessment record."""
    if record is None:
        return ComplianceStatus.NOT_ASSESSED
    return classify_effectiveness(record.effectiveness)


class ComplianceScoreCalculator:
    """
    Core compliance score calculator.

    Provides the canonical implementations of:
    - Control status classification (effectiveness thresholds)
    - Weighted framework score (compliant 100, partial 50, otherwise 0)
    """

    def calculate_score(self, compliant: int, partial: int, total: int) -> int:
        """
        Calculate the weighted compliance score.

        Formula: round((compliant * 100 + partial * 50) / total)

        Args:
            compliant: Number of compliant controls
            partial: Number of partially compliant controls
            total: Total number of controls

        Returns:
            Integer score 0-100, 0 when the framework has no controls

        Example:
            >>> ComplianceScoreCalculator().calculate_score(compliant=1, partial=1, total=2)
            75
        """
        if total == 0:
            return 0
        weighted = (
            compliant * STATUS_WEIGHTS[ComplianceStatus.COMPLIANT]
            + partial * STATUS_WEIGHTS[ComplianceStatus.PARTIAL]
        )
        return round_half_up(weighted / total)

    def score_framework(
        self,
        framework: FrameworkRecord,
        controls: Sequence[ControlRecord],
        lookup: AssessmentLookup,
    ) -> FrameworkScore:
        """
        Score a single framework.

        Args:
            framework: Framework being scored
            controls: All controls of the framework
            lookup: Assessment records indexed by (framework_id, control_id)

        Returns:
            FrameworkScore with per-status counts
        """
        counts = {status: 0 for status in ComplianceStatus}
        for control in controls:
            status = resolve_control_status(lookup.get((framework.id, control.id)))
            counts[status] += 1

        total = len(controls)
        score = self.calculate_score(
            counts[ComplianceStatus.COMPLIANT],
            counts[ComplianceStatus.PARTIAL],
            total,
        )

        return FrameworkScore(
            id=framework.id,
            name=framework.name,
            short_name=framework.short_name,
            total_controls=total,
            compliant_controls=counts[ComplianceStatus.COMPLIANT],
            partial_controls=counts[ComplianceStatus.PARTIAL],
            non_compliant_controls=counts[ComplianceStatus.NON_COMPLIANT],
            not_assessed_controls=counts[ComplianceStatus.NOT_ASSESSED],
            compliance_score=score,
        )

    def calculate_compliance_scores(
        self,
        framework_ids: Sequence[str],
        frameworks: Mapping[str, FrameworkRecord],
        controls_by_framework: Mapping[str, Sequence[ControlRecord]],
        lookup: AssessmentLookup,
    ) -> List[FrameworkScore]:
        """
        Score every requested framework that exists, in request order.

        Unknown framework ids are skipped.
        """
        scores = []
        for framework_id in framework_ids:
            framework = frameworks.get(framework_id)
            if framework is None:
                logger.debug(f"Skipping unknown framework {framework_id}")
                continue
            scores.append(self.score_framework(framework, controls_by_framework.get(framework_id, []), lookup))
        return scores
