"""
Gap Analysis Core Layer - Gap Identification

Lists every control that is not fully compliant, together with the controls
in other frameworks it is mapped to.
"""

from typing import Dict, List, Mapping, Sequence

from ..loader import ControlRecord, FrameworkRecord, MappingRecord
from ..models import ComplianceStatus, FrameworkGap, MappedControlRef
from .score_calculator import AssessmentLookup, resolve_control_status

UNKNOWN_FRAMEWORK_NAME = "Unknown"


def index_mapped_controls(mappings: Sequence[MappingRecord]) -> Dict[str, List[MappedControlRef]]:
    """
    Build control id -> counterpart references for every mapping.

    A mapping contributes its target to the source control and its source to
    the target control. Order follows the mapping order.
    """
    index: Dict[str, List[MappedControlRef]] = {}
    for mapping in mappings:
        index.setdefault(mapping.source_control_id, []).append(
            MappedControlRef(
                control_id=mapping.target_control.id,
                control_code=mapping.target_control.code,
                framework_id=mapping.target_framework_id,
                confidence=mapping.confidence,
            )
        )
        if mapping.target_control_id != mapping.source_control_id:
            index.setdefault(mapping.target_control_id, []).append(
                MappedControlRef(
                    control_id=mapping.source_control.id,
                    control_code=mapping.source_control.code,
                    framework_id=mapping.source_framework_id,
                    confidence=mapping.confidence,
                )
            )
    return index


class GapIdentifier:
    """Produces FrameworkGap entries for non-compliant controls."""

    def identify_gaps(
        self,
        framework_ids: Sequence[str],
        frameworks: Mapping[str, FrameworkRecord],
        controls_by_framework: Mapping[str, Sequence[ControlRecord]],
        mappings: Sequence[MappingRecord],
        lookup: AssessmentLookup,
    ) -> List[FrameworkGap]:
        """
        Identify control-level gaps.

        Args:
            framework_ids: Selected frameworks in request order
            frameworks: Framework metadata by id
            controls_by_framework: Controls per framework (ordered)
            mappings: Mappings touching any selected framework
            lookup: Assessment records indexed by (framework_id, control_id)

        Returns:
            One FrameworkGap per control whose status is not COMPLIANT
        """
        mapped_index = index_mapped_controls(mappings)
        gaps: List[FrameworkGap] = []

        for framework_id in framework_ids:
            framework = frameworks.get(framework_id)
            framework_name = framework.name if framework else UNKNOWN_FRAMEWORK_NAME

            for control in controls_by_framework.get(framework_id, []):
                record = lookup.get((framework_id, control.id))
                status = resolve_control_status(record)
                if status == ComplianceStatus.COMPLIANT:
                    continue

                gaps.append(
                    FrameworkGap(
                        control_id=control.id,
                        control_code=control.code,
                        control_title=control.title,
                        framework_id=framework_id,
                        framework_name=framework_name,
                        has_assessment=record is not None,
                        has_evidence=bool(record and record.has_evidence),
                        compliance_status=status,
                        mapped_controls=list(mapped_index.get(control.id, [])),
                    )
                )

        return gaps
