"""
Unit tests for compliance chain flow data and coverage statistics.
"""

import pytest

from complygrid.services.compliance_chain import (
    build_flow_data,
    calculate_coverage_stats,
    evidence_label,
    truncate_label,
)


def _chain(chain_id: str, control_id=None, status: str = "COMPLETE", requirement: str = "Encrypt data at rest"):
    chain = {"id": chain_id, "requirement": requirement, "control_id": control_id, "chain_status": status}
    if control_id:
        chain["control"] = {"id": control_id, "code": f"CODE-{control_id}", "title": "Control"}
    return chain


@pytest.mark.unit
class TestLabels:
    def test_truncate_long_requirement(self) -> None:
        text = "x" * 60
        assert truncate_label(text) == "x" * 50 + "..."

    def test_short_requirement_unchanged(self) -> None:
        assert truncate_label("x" * 50) == "x" * 50

    def test_evidence_label_fallbacks(self) -> None:
        assert evidence_label({"filename": "policy.pdf", "original_name": "Policy.pdf"}) == "policy.pdf"
        assert evidence_label({"filename": None, "original_name": "Policy.pdf"}) == "Policy.pdf"
        assert evidence_label({}) == "Evidence"


@pytest.mark.unit
class TestBuildFlowData:
    """Test React Flow node and edge construction."""

    def test_requirement_control_evidence_chain(self) -> None:
        chains = [_chain("ch1", control_id="c1", status="PARTIAL")]
        evidence = {"ch1": [{"id": "e1", "filename": "report.pdf"}]}

        data = build_flow_data(chains, evidence)

        assert [n["id"] for n in data["nodes"]] == ["req-ch1", "ctrl-c1", "ev-e1"]
        assert data["nodes"][1]["data"] == {"label": "CODE-c1", "status": "PARTIAL"}
        assert data["edges"] == [
            {"id": "e-req-ctrl-ch1", "source": "req-ch1", "target": "ctrl-c1"},
            {"id": "e-ctrl-ev-ch1-e1", "source": "ctrl-c1", "target": "ev-e1"},
        ]

    def test_shared_nodes_are_deduplicated(self) -> None:
        """
        Validates:
        - Two chains on one control share the control node
        - Shared evidence yields one node but one edge per chain
        """
        chains = [_chain("ch1", control_id="c1"), _chain("ch2", control_id="c1")]
        evidence = {"ch1": [{"id": "e1"}], "ch2": [{"id": "e1"}]}

        data = build_flow_data(chains, evidence)

        node_ids = [n["id"] for n in data["nodes"]]
        assert node_ids.count("ctrl-c1") == 1
        assert node_ids.count("ev-e1") == 1
        assert len(data["edges"]) == 4

    def test_chain_without_control_has_only_requirement(self) -> None:
        data = build_flow_data([_chain("ch1", status="MISSING")], {})
        assert [n["type"] for n in data["nodes"]] == ["requirement"]
        assert data["edges"] == []


@pytest.mark.unit
class TestCoverageStats:
    """Test framework coverage statistics."""

    def test_unchained_controls_count_as_missing(self) -> None:
        stats = calculate_coverage_stats(["COMPLETE", "COMPLETE", "PARTIAL", "MISSING"], total_controls=8)
        assert stats == {"total": 8, "complete": 2, "partial": 1, "missing": 5, "coverage_percent": 25}

    def test_coverage_rounds_half_up(self) -> None:
        stats = calculate_coverage_stats(["COMPLETE"], total_controls=8)
        assert stats["coverage_percent"] == 13

    def test_no_controls(self) -> None:
        assert calculate_coverage_stats([], 0)["coverage_percent"] == 0
