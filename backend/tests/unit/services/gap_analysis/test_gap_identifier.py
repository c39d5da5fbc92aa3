"""
Unit tests for control-level gap identification.
"""

import pytest

from complygrid.services.gap_analysis.core.gap_identifier import (
    UNKNOWN_FRAMEWORK_NAME,
    GapIdentifier,
    index_mapped_controls,
)
from complygrid.services.gap_analysis.core.score_calculator import build_assessment_lookup
from complygrid.services.gap_analysis.models import ComplianceStatus
from tests.unit.builders import assessment, control, mapping


@pytest.mark.unit
class TestIndexMappedControls:
    """Test counterpart indexing."""

    def test_mapping_indexed_in_both_directions(self) -> None:
        source = control("n1", "fw-nist")
        target = control("i1", "fw-iso")

        index = index_mapped_controls([mapping(source, target, confidence="MEDIUM")])

        assert [ref.control_id for ref in index["n1"]] == ["i1"]
        assert [ref.control_id for ref in index["i1"]] == ["n1"]
        assert index["n1"][0].framework_id == "fw-iso"
        assert index["i1"][0].confidence.value == "MEDIUM"

    def test_self_mapping_indexed_once(self) -> None:
        c = control("n1", "fw-nist")
        index = index_mapped_controls([mapping(c, c)])
        assert len(index["n1"]) == 1


@pytest.mark.unit
class TestGapIdentifier:
    """Test gap listing across frameworks."""

    def setup_method(self) -> None:
        self.identifier = GapIdentifier()

    def test_compliant_controls_are_not_gaps(self, nist) -> None:
        """
        Validates:
        - COMPLIANT controls are excluded
        - PARTIAL, NON_COMPLIANT and NOT_ASSESSED are reported in control order
        """
        controls = {nist.id: [control(f"c{i}", nist.id, sort_order=i) for i in range(1, 5)]}
        lookup = build_assessment_lookup(
            [
                assessment(nist.id, "c1", 90),
                assessment(nist.id, "c2", 55, has_evidence=True),
                assessment(nist.id, "c3", 10),
            ]
        )

        gaps = self.identifier.identify_gaps([nist.id], {nist.id: nist}, controls, [], lookup)

        assert [g.control_id for g in gaps] == ["c2", "c3", "c4"]
        assert [g.compliance_status for g in gaps] == [
            ComplianceStatus.PARTIAL,
            ComplianceStatus.NON_COMPLIANT,
            ComplianceStatus.NOT_ASSESSED,
        ]
        assert gaps[0].has_assessment is True
        assert gaps[0].has_evidence is True
        assert gaps[2].has_assessment is False
        assert gaps[2].has_evidence is False

    def test_gaps_carry_mapped_controls(self, nist, iso) -> None:
        n1 = control("n1", nist.id)
        i1 = control("i1", iso.id)
        i2 = control("i2", iso.id)
        controls = {nist.id: [n1], iso.id: [i1, i2]}
        mappings = [mapping(n1, i1), mapping(n1, i2, confidence="LOW")]

        gaps = self.identifier.identify_gaps(
            [nist.id, iso.id], {nist.id: nist, iso.id: iso}, controls, mappings, {}
        )

        by_control = {g.control_id: g for g in gaps}
        assert [ref.control_code for ref in by_control["n1"].mapped_controls] == ["I1", "I2"]
        assert [ref.control_id for ref in by_control["i2"].mapped_controls] == ["n1"]
        assert by_control["i1"].framework_name == "ISO/IEC 27001"

    def test_unknown_framework_name(self) -> None:
        controls = {"fw-x": [control("x1", "fw-x")]}
        gaps = self.identifier.identify_gaps(["fw-x"], {}, controls, [], {})
        assert gaps[0].framework_name == UNKNOWN_FRAMEWORK_NAME
