"""
Unit tests for framework catalog validation.

Validation of self-contained catalogs never touches the session, so a
placeholder is passed in place of a database.
"""

import json

import pytest

from complygrid.services.catalog_loader import DEFAULT_CATALOG_PATH, CatalogValidationError, FrameworkCatalogLoader


def _catalog(**overrides):
    catalog = {
        "frameworks": [
            {
                "name": "Framework A",
                "short_name": "FA",
                "controls": [
                    {"code": "A", "title": "Parent"},
                    {"code": "A.1", "title": "Child", "parent": "A", "priority": "HIGH"},
                ],
            },
            {"name": "Framework B", "short_name": "FB", "controls": [{"code": "B.1", "title": "Only"}]},
        ],
        "mappings": [
            {
                "source_framework": "FA",
                "source_control": "A.1",
                "target_framework": "FB",
                "target_control": "B.1",
                "confidence": "HIGH",
                "mapping_type": "EQUIVALENT",
            }
        ],
    }
    catalog.update(overrides)
    return catalog


@pytest.mark.unit
class TestValidateCatalog:
    """Test structural validation of catalog documents."""

    def setup_method(self) -> None:
        self.loader = FrameworkCatalogLoader(db=None)

    def test_valid_catalog(self) -> None:
        self.loader.validate_catalog(_catalog())

    def test_rejects_non_object(self) -> None:
        with pytest.raises(CatalogValidationError):
            self.loader.validate_catalog([])

    def test_rejects_duplicate_codes(self) -> None:
        catalog = _catalog(
            frameworks=[
                {
                    "name": "Framework A",
                    "short_name": "FA",
                    "controls": [{"code": "A.1", "title": "One"}, {"code": "A.1", "title": "Two"}],
                }
            ],
            mappings=[],
        )
        with pytest.raises(CatalogValidationError, match="Duplicate control code A.1"):
            self.loader.validate_catalog(catalog)

    def test_rejects_bad_priority(self) -> None:
        catalog = _catalog(
            frameworks=[
                {"name": "Framework A", "short_name": "FA", "controls": [{"code": "A", "title": "x", "priority": "P1"}]}
            ],
            mappings=[],
        )
        with pytest.raises(CatalogValidationError, match="Invalid priority"):
            self.loader.validate_catalog(catalog)

    def test_rejects_bad_confidence(self) -> None:
        catalog = _catalog()
        catalog["mappings"][0]["confidence"] = "CERTAIN"
        with pytest.raises(CatalogValidationError, match="Invalid confidence"):
            self.loader.validate_catalog(catalog)

    def test_rejects_bad_mapping_type(self) -> None:
        catalog = _catalog()
        catalog["mappings"][0]["mapping_type"] = "SIMILAR"
        with pytest.raises(CatalogValidationError, match="Invalid mapping type"):
            self.loader.validate_catalog(catalog)


@pytest.mark.unit
class TestBundledCatalog:
    """The packaged sample catalog must validate on its own."""

    def test_sample_catalog_is_self_contained(self) -> None:
        with open(DEFAULT_CATALOG_PATH / "sample_catalog.json", encoding="utf-8") as f:
            catalog = json.load(f)

        FrameworkCatalogLoader(db=None).validate_catalog(catalog)

        short_names = {fw["short_name"] for fw in catalog["frameworks"]}
        assert {"NIST-CSF", "ISO-27001"} <= short_names
        assert len(catalog["mappings"]) > 0
