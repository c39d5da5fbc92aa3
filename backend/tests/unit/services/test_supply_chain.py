"""
Unit tests for supply chain risk propagation helpers.
"""

from types import SimpleNamespace

import pytest

from complygrid.services.supply_chain import (
    AffectedVendor,
    RiskPropagationResult,
    build_graph_data,
    propagate_to_vendor,
)


@pytest.mark.unit
class TestPropagateToVendor:
    def test_inherits_share_of_new_score(self) -> None:
        assert propagate_to_vendor(20, 80, 0.7) == {"new_risk": 56.0, "risk_increase": 36.0}

    def test_never_drops_below_current(self) -> None:
        assert propagate_to_vendor(90, 80, 0.7) == {"new_risk": 90, "risk_increase": 0}

    def test_rounds_to_two_places(self) -> None:
        result = propagate_to_vendor(10, 33.333, 0.7)
        assert result["new_risk"] == 23.33
        assert result["risk_increase"] == 13.33


@pytest.mark.unit
class TestRiskPropagationResult:
    def test_to_dict_includes_total(self) -> None:
        result = RiskPropagationResult(
            vendor_id="v1",
            vendor_name="Cloud Host",
            current_risk=40,
            propagated_risk=80,
            affected_vendors=[
                AffectedVendor(id="v2", name="CDN", tier=2, current_risk=10, new_risk=56, risk_increase=46)
            ],
        )

        data = result.to_dict()

        assert data["total_affected"] == 1
        assert data["affected_vendors"][0]["name"] == "CDN"


@pytest.mark.unit
class TestBuildGraphData:
    def test_edges_run_parent_to_child(self) -> None:
        vendors = [
            SimpleNamespace(id="v1", name="Cloud", tier=1, risk_score=40, category="IaaS", parent_vendor_id=None),
            SimpleNamespace(id="v2", name="CDN", tier=2, risk_score=10, category="Network", parent_vendor_id="v1"),
        ]

        graph = build_graph_data(vendors)

        assert graph["nodes"][0] == {"id": "v1", "label": "Cloud", "tier": 1, "risk_score": 40, "category": "IaaS"}
        assert graph["edges"] == [{"source": "v1", "target": "v2", "type": "depends-on"}]
