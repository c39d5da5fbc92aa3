"""
Integration tests for the framework overlap endpoints.
"""

import pytest

from complygrid.database import ControlMapping


@pytest.mark.integration
class TestMappingListing:
    """GET /api/framework-overlap/mappings."""

    def test_lists_mappings_with_frameworks(self, client, catalog, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/mappings", headers=auth_headers("VIEWER"))

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["page"] == 1
        assert data["total_pages"] == 1
        mapping = data["mappings"][0]
        assert mapping["source_control"]["code"] == "PR.AA-01"
        assert mapping["target_control"]["framework"]["short_name"] == "ISO-27001"
        assert mapping["confidence"] == "HIGH"

    def test_high_confidence_listed_first(self, client, catalog, auth_headers, db_session) -> None:
        controls = catalog.controls
        db_session.add(
            ControlMapping(
                source_control_id=controls["PR.AA-02"].id,
                target_control_id=controls["A.5.16"].id,
                source_framework_id=catalog.nist.id,
                target_framework_id=catalog.iso.id,
                confidence_score="LOW",
                mapping_type="RELATED",
            )
        )
        db_session.commit()

        resp = client.get("/api/framework-overlap/mappings", headers=auth_headers())

        assert [m["confidence"] for m in resp.json()["mappings"]] == ["HIGH", "LOW"]

    def test_confidence_filter(self, client, catalog, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/mappings?confidence_level=LOW", headers=auth_headers())
        assert resp.status_code == 200
        assert resp.json()["total"] == 0

    def test_invalid_confidence_rejected(self, client, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/mappings?confidence_level=SURE", headers=auth_headers())
        assert resp.status_code == 422


@pytest.mark.integration
class TestSankeyData:
    """GET /api/framework-overlap/sankey-data."""

    def test_selected_frameworks(self, client, catalog, auth_headers) -> None:
        resp = client.get(
            f"/api/framework-overlap/sankey-data?framework_ids={catalog.nist.id},{catalog.iso.id}",
            headers=auth_headers(),
        )

        assert resp.status_code == 200
        data = resp.json()
        framework_nodes = [n for n in data["nodes"] if n["type"] == "framework"]
        assert {n["name"] for n in framework_nodes} == {"NIST-CSF", "ISO-27001"}
        assert data["edges"] == [
            {
                "source": f"ctrl-{catalog.controls['PR.AA-01'].id}",
                "target": f"ctrl-{catalog.controls['A.5.15'].id}",
                "value": 3,
                "label": "HIGH",
            }
        ]

    def test_single_framework_rejected(self, client, catalog, auth_headers) -> None:
        resp = client.get(f"/api/framework-overlap/sankey-data?framework_ids={catalog.nist.id}", headers=auth_headers())
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Between 2 and 6 frameworks required"

    def test_whole_catalog_without_selection(self, client, catalog, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/sankey-data", headers=auth_headers())
        assert resp.status_code == 200
        assert len(resp.json()["edges"]) == 1

    def test_blank_selection_means_whole_catalog(self, client, catalog, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/sankey-data?framework_ids=", headers=auth_headers())

        assert resp.status_code == 200
        framework_nodes = [n for n in resp.json()["nodes"] if n["type"] == "framework"]
        assert len(framework_nodes) == 2


@pytest.mark.integration
class TestOverlapStatistics:
    def test_pair_counts(self, client, catalog, auth_headers) -> None:
        resp = client.get("/api/framework-overlap/statistics", headers=auth_headers())

        assert resp.status_code == 200
        stats = resp.json()["statistics"]
        assert len(stats) == 1
        assert stats[0]["total_mappings"] == 1
        assert stats[0]["high_confidence"] == 1
        assert stats[0]["equivalent"] == 1


@pytest.mark.integration
class TestFrameworkPairMappings:
    """GET /api/frameworks/mappings."""

    def test_filter_by_source_and_target(self, client, catalog, auth_headers) -> None:
        resp = client.get(
            f"/api/frameworks/mappings?source={catalog.nist.id}&target={catalog.iso.id}", headers=auth_headers()
        )
        assert resp.status_code == 200
        assert resp.json()["total"] == 1

    def test_reverse_direction_has_no_mappings(self, client, catalog, auth_headers) -> None:
        resp = client.get(
            f"/api/frameworks/mappings?source={catalog.iso.id}&target={catalog.nist.id}", headers=auth_headers()
        )
        assert resp.status_code == 200
        assert resp.json() == {"mappings": [], "total": 0}
