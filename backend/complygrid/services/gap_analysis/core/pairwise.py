"""
Gap Analysis Core Layer - Pairwise Coverage

Measures, in each direction, how many controls of one framework have a
mapped counterpart in another.
"""

import logging
from typing import Optional, Sequence

from complygrid.utils.rounding import round_half_up

from ..loader import ControlRecord, FrameworkRecord, MappingRecord
from ..models import DirectionCoverage, MappedDetail, PairwiseComparisonResult, UnmappedDetail

logger = logging.getLogger(__name__)


def effective_controls(controls: Sequence[ControlRecord]) -> Sequence[ControlRecord]:
    """
    Controls that count for coverage.

    Leaf controls (those with a parent) when the framework has any,
    otherwise every control.
    """
    leaves = [control for control in controls if control.parent_id is not None]
    return leaves if leaves else controls


def find_counterpart(
    control: ControlRecord, target_framework_id: str, mappings: Sequence[MappingRecord]
) -> Optional[MappedDetail]:
    """
    First mapping linking the control to the target framework, either way.

    Returns:
        MappedDetail with the control on the source side, or None
    """
    for mapping in mappings:
        if mapping.source_control_id == control.id and mapping.target_framework_id == target_framework_id:
            counterpart = mapping.target_control
        elif mapping.target_control_id == control.id and mapping.source_framework_id == target_framework_id:
            counterpart = mapping.source_control
        else:
            continue

        return MappedDetail(
            source_code=control.code,
            source_title=control.title,
            target_code=counterpart.code,
            target_title=counterpart.title,
            confidence=mapping.confidence,
            mapping_type=mapping.mapping_type,
        )
    return None


class PairwiseComparator:
    """Bidirectional framework coverage comparison."""

    def build_direction_coverage(
        self,
        source: FrameworkRecord,
        target: FrameworkRecord,
        source_controls: Sequence[ControlRecord],
        mappings: Sequence[MappingRecord],
    ) -> DirectionCoverage:
        """
        Coverage of ``source`` controls by ``target``.

        Args:
            source: Framework whose controls are checked
            target: Framework providing coverage
            source_controls: All controls of the source framework
            mappings: Mappings touching either framework

        Returns:
            DirectionCoverage with per-control details
        """
        controls = effective_controls(source_controls)
        mapped_details = []
        unmapped_details = []

        for control in controls:
            detail = find_counterpart(control, target.id, mappings)
            if detail is not None:
                mapped_details.append(detail)
            else:
                unmapped_details.append(UnmappedDetail(code=control.code, title=control.title))

        total = len(controls)
        coverage = round_half_up(len(mapped_details) / total * 100) if total else 0

        return DirectionCoverage(
            source_id=source.id,
            source_name=source.name,
            source_short_name=source.short_name,
            target_id=target.id,
            target_name=target.name,
            target_short_name=target.short_name,
            total_source_controls=total,
            mapped_controls=len(mapped_details),
            unmapped_controls=len(unmapped_details),
            coverage_percentage=coverage,
            mapped_details=mapped_details,
            unmapped_details=unmapped_details,
        )

    def compare(
        self,
        source: FrameworkRecord,
        target: FrameworkRecord,
        source_controls: Sequence[ControlRecord],
        target_controls: Sequence[ControlRecord],
        mappings: Sequence[MappingRecord],
    ) -> PairwiseComparisonResult:
        """Run the comparison in both directions."""
        forward = self.build_direction_coverage(source, target, source_controls, mappings)
        backward = self.build_direction_coverage(target, source, target_controls, mappings)
        logger.debug(
            f"Pairwise {source.short_name}->{target.short_name}: "
            f"{forward.coverage_percentage}% / {backward.coverage_percentage}%"
        )
        return PairwiseComparisonResult(source_to_target=forward, target_to_source=backward)
