"""
Integration tests for compliance chain coverage and flow graph endpoints.
"""

from datetime import datetime

import pytest

from complygrid.database import ComplianceChain, Evidence


@pytest.fixture
def chains(db_session, catalog, organization, other_organization):
    foreign_evidence = Evidence(organization_id=other_organization.id, filename="other-org.pdf")
    db_session.add(foreign_evidence)
    db_session.flush()

    rows = [
        ComplianceChain(
            organization_id=organization.id,
            requirement="Multi-factor authentication is enforced for every remote administrative session",
            control_id=catalog.controls["PR.AA-01"].id,
            chain_status="COMPLETE",
            evidence_ids=[catalog.evidence.id, foreign_evidence.id],
            created_at=datetime(2025, 2, 1),
        ),
        ComplianceChain(
            organization_id=organization.id,
            requirement="Access reviews",
            control_id=catalog.controls["PR.AA-02"].id,
            chain_status="PARTIAL",
            evidence_ids=[],
            created_at=datetime(2025, 1, 1),
        ),
        ComplianceChain(
            organization_id=other_organization.id,
            requirement="Another tenant",
            control_id=catalog.controls["PR"].id,
            chain_status="COMPLETE",
            evidence_ids=[],
        ),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.mark.integration
class TestCoverage:
    """GET /api/compliance-graph/coverage."""

    def test_coverage_per_framework_and_overall(self, client, chains, catalog, auth_headers) -> None:
        """
        Validates:
        - Only the caller's chains count
        - Controls without chains count as missing
        - Overall sums every framework
        """
        resp = client.get("/api/compliance-graph/coverage", headers=auth_headers("VIEWER"))

        assert resp.status_code == 200
        data = resp.json()
        by_name = {fw["name"]: fw for fw in data["frameworks"]}
        nist = by_name["NIST Cybersecurity Framework"]
        assert nist == {
            "id": catalog.nist.id,
            "name": "NIST Cybersecurity Framework",
            "total": 3,
            "complete": 1,
            "partial": 1,
            "missing": 1,
            "coverage_percent": 33,
        }
        assert by_name["ISO/IEC 27001"]["missing"] == 2
        assert data["overall"] == {"total": 5, "complete": 1, "partial": 1, "missing": 3, "coverage_percent": 20}

    def test_single_framework(self, client, chains, catalog, auth_headers) -> None:
        resp = client.get(f"/api/compliance-graph/coverage?framework_id={catalog.iso.id}", headers=auth_headers())
        assert [fw["id"] for fw in resp.json()["frameworks"]] == [catalog.iso.id]


@pytest.mark.integration
class TestFlowData:
    """GET /api/compliance-graph/flow-data."""

    def test_graph_for_framework(self, client, chains, catalog, auth_headers) -> None:
        resp = client.get(
            f"/api/compliance-graph/flow-data?framework_id={catalog.nist.id}", headers=auth_headers()
        )

        assert resp.status_code == 200
        data = resp.json()
        types = [n["type"] for n in data["nodes"]]
        assert types.count("requirement") == 2
        assert types.count("control") == 2
        assert types.count("evidence") == 1
        assert data["nodes"][0]["data"]["label"].endswith("...")
        assert data["metadata"] == {
            "framework_id": catalog.nist.id,
            "total_chains": 2,
            "total_nodes": 5,
            "total_edges": 3,
        }

    def test_limit_keeps_newest(self, client, chains, catalog, auth_headers) -> None:
        resp = client.get(
            f"/api/compliance-graph/flow-data?framework_id={catalog.nist.id}&limit=1", headers=auth_headers()
        )
        assert resp.json()["metadata"]["total_chains"] == 1
        assert resp.json()["nodes"][1]["data"]["status"] == "COMPLETE"

    def test_framework_id_required(self, client, auth_headers) -> None:
        resp = client.get("/api/compliance-graph/flow-data", headers=auth_headers())
        assert resp.status_code == 422
