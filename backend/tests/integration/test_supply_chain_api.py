"""
Integration tests for supply chain risk propagation.

The recursive descendant query runs on SQLite as well as PostgreSQL.
"""

import pytest

from complygrid.database import Vendor
from complygrid.services.supply_chain import calculate_risk_propagation


@pytest.fixture
def vendors(db_session, organization, other_organization):
    """
    Tree:
        Cloud Host (40)
        +-- CDN (10)
        |   +-- DNS Provider (60)
        +-- Backup Service (20)
    """
    cloud = Vendor(organization_id=organization.id, name="Cloud Host", category="IaaS", tier=1, risk_score=40)
    db_session.add(cloud)
    db_session.flush()
    cdn = Vendor(
        organization_id=organization.id, name="CDN", category="Network", tier=2, risk_score=10, parent_vendor_id=cloud.id
    )
    backup = Vendor(
        organization_id=organization.id,
        name="Backup Service",
        category="Storage",
        tier=2,
        risk_score=20,
        parent_vendor_id=cloud.id,
    )
    db_session.add_all([cdn, backup])
    db_session.flush()
    dns = Vendor(
        organization_id=organization.id, name="DNS Provider", category="Network", tier=3, risk_score=60,
        parent_vendor_id=cdn.id,
    )
    foreign = Vendor(organization_id=other_organization.id, name="Foreign", category="IaaS", tier=1, risk_score=5)
    db_session.add_all([dns, foreign])
    db_session.commit()
    return {"cloud": cloud, "cdn": cdn, "backup": backup, "dns": dns, "foreign": foreign}


@pytest.mark.integration
class TestRiskPropagation:
    """GET /api/supply-chain/risk-propagation."""

    def test_propagates_to_every_descendant(self, client, vendors, auth_headers) -> None:
        """
        Validates:
        - Every downstream vendor is listed, ordered by tier then name
        - Inherited risk is the new score times 0.7, never below current
        """
        resp = client.get(
            f"/api/supply-chain/risk-propagation?vendor_id={vendors['cloud'].id}&new_risk_score=80",
            headers=auth_headers(),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["vendor_name"] == "Cloud Host"
        assert data["propagated_risk"] == 80
        assert data["total_affected"] == 3
        assert [v["name"] for v in data["affected_vendors"]] == ["Backup Service", "CDN", "DNS Provider"]
        by_name = {v["name"]: v for v in data["affected_vendors"]}
        assert by_name["CDN"]["new_risk"] == 56
        assert by_name["CDN"]["risk_increase"] == 46
        assert by_name["DNS Provider"]["new_risk"] == 60
        assert by_name["DNS Provider"]["risk_increase"] == 0

    def test_defaults_to_current_score(self, client, vendors, auth_headers) -> None:
        resp = client.get(
            f"/api/supply-chain/risk-propagation?vendor_id={vendors['cdn'].id}", headers=auth_headers()
        )

        data = resp.json()
        assert data["propagated_risk"] == 10
        assert data["affected_vendors"][0]["risk_increase"] == 0

    def test_leaf_vendor_has_no_descendants(self, client, vendors, auth_headers) -> None:
        resp = client.get(
            f"/api/supply-chain/risk-propagation?vendor_id={vendors['dns'].id}&new_risk_score=99",
            headers=auth_headers(),
        )
        assert resp.json()["total_affected"] == 0

    def test_unknown_vendor(self, client, vendors, auth_headers) -> None:
        resp = client.get("/api/supply-chain/risk-propagation?vendor_id=missing", headers=auth_headers())
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Vendor not found"

    def test_other_organization_vendor_not_found(self, client, vendors, auth_headers) -> None:
        resp = client.get(
            f"/api/supply-chain/risk-propagation?vendor_id={vendors['foreign'].id}", headers=auth_headers()
        )
        assert resp.status_code == 404

    def test_vendor_id_required(self, client, auth_headers) -> None:
        resp = client.get("/api/supply-chain/risk-propagation", headers=auth_headers())
        assert resp.status_code == 422


@pytest.mark.integration
class TestVendorGraph:
    def test_graph_for_organization(self, client, vendors, auth_headers) -> None:
        resp = client.get("/api/supply-chain/graph", headers=auth_headers())

        assert resp.status_code == 200
        data = resp.json()
        assert len(data["nodes"]) == 4
        assert {"source": vendors["cdn"].id, "target": vendors["dns"].id, "type": "depends-on"} in data["edges"]
        assert len(data["edges"]) == 3


@pytest.mark.integration
class TestPropagationBoundaries:
    """Descendant walk stays inside the tenant and terminates on cycles."""

    def test_child_in_other_organization_is_excluded(
        self, db_session, vendors, organization, other_organization
    ) -> None:
        db_session.add(
            Vendor(
                organization_id=other_organization.id,
                name="Other Tenant Reseller",
                category="Network",
                tier=2,
                risk_score=30,
                parent_vendor_id=vendors["cloud"].id,
            )
        )
        db_session.commit()

        result = calculate_risk_propagation(db_session, vendors["cloud"].id, organization.id, 80.0)

        names = [v.name for v in result.affected_vendors]
        assert "Other Tenant Reseller" not in names
        assert names == ["Backup Service", "CDN", "DNS Provider"]

    def test_parent_cycle_terminates(self, db_session, organization) -> None:
        first = Vendor(organization_id=organization.id, name="Payments A", category="SaaS", tier=1, risk_score=20)
        second = Vendor(organization_id=organization.id, name="Payments B", category="SaaS", tier=2, risk_score=30)
        db_session.add_all([first, second])
        db_session.flush()
        first.parent_vendor_id = second.id
        second.parent_vendor_id = first.id
        db_session.commit()

        result = calculate_risk_propagation(db_session, first.id, organization.id, 80.0)

        assert [v.name for v in result.affected_vendors] == ["Payments B"]
        assert result.affected_vendors[0].new_risk == 56
