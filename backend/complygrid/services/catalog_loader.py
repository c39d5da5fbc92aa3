"""
Framework Catalog Loader Service
Loads framework, control and cross-framework mapping definitions from JSON
files into the relational catalog.

File format::

    {
      "frameworks": [
        {"name": ..., "short_name": ..., "version": ..., "category": ...,
         "controls": [{"code": ..., "title": ..., "parent": ..., "priority": ...}]}
      ],
      "mappings": [
        {"source_framework": ..., "source_control": ...,
         "target_framework": ..., "target_control": ...,
         "confidence": "HIGH", "mapping_type": "EQUIVALENT", "rationale": ...}
      ]
    }

Frameworks are matched by short name and controls by code, so loading the
same file twice updates rows in place.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from complygrid.database import Control, ControlMapping, Framework

logger = logging.getLogger(__name__)

VALID_CONFIDENCE = ("HIGH", "MEDIUM", "LOW")
VALID_MAPPING_TYPES = ("EQUIVALENT", "PARTIAL", "RELATED", "SUPERSET", "SUBSET")
VALID_PRIORITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "frameworks"


class CatalogValidationError(ValueError):
    """A catalog file is malformed or references unknown controls"""


class FrameworkCatalogLoader:
    """Service for loading framework catalogs into the database"""

    def __init__(self, db: Session, catalog_path: Optional[Path] = None):
        self.db = db
        self.catalog_path = catalog_path or DEFAULT_CATALOG_PATH

    def load_all(self) -> Dict[str, Dict[str, int]]:
        """Load every JSON catalog in the catalog directory"""
        results: Dict[str, Dict[str, int]] = {}

        if not self.catalog_path.exists():
            logger.error(f"Catalog directory not found: {self.catalog_path}")
            return results

        for json_file in sorted(self.catalog_path.glob("*.json")):
            results[json_file.stem] = self.load_file(json_file)

        return results

    def load_file(self, file_path: Path) -> Dict[str, int]:
        """
        Load one catalog file.

        Returns:
            Counts of frameworks, controls and mappings written

        Raises:
            CatalogValidationError: If the file fails validation; nothing is
                committed in that case
        """
        logger.info(f"Loading framework catalog from {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            catalog = json.load(f)

        try:
            counts = self.load_catalog(catalog)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Loaded {counts['frameworks']} frameworks, {counts['controls']} controls "
            f"and {counts['mappings']} mappings from {file_path.name}"
        )
        return counts

    def load_catalog(self, catalog: Dict[str, Any]) -> Dict[str, int]:
        """Upsert a parsed catalog into the session without committing"""
        self.validate_catalog(catalog)
        counts = {"frameworks": 0, "controls": 0, "mappings": 0}

        for framework_data in catalog.get("frameworks", []):
            framework = self._upsert_framework(framework_data)
            counts["frameworks"] += 1
            counts["controls"] += self._upsert_controls(framework, framework_data.get("controls", []))

        self.db.flush()

        for mapping_data in catalog.get("mappings", []):
            self._upsert_mapping(mapping_data)
            counts["mappings"] += 1

        return counts

    def validate_catalog(self, catalog: Dict[str, Any]) -> None:
        """
        Structural checks plus mapping reference resolution.

        Mapping endpoints may reference controls defined in the file or
        already present in the database.
        """
        if not isinstance(catalog, dict):
            raise CatalogValidationError("Catalog must be a JSON object")

        defined: Dict[str, set] = {}
        for framework_data in catalog.get("frameworks", []):
            short_name = framework_data.get("short_name")
            if not short_name or not framework_data.get("name"):
                raise CatalogValidationError("Every framework needs a name and short_name")
            codes = defined.setdefault(short_name, set())
            for control_data in framework_data.get("controls", []):
                code = control_data.get("code")
                if not code or not control_data.get("title"):
                    raise CatalogValidationError(f"Control in {short_name} is missing code or title")
                if code in codes:
                    raise CatalogValidationError(f"Duplicate control code {code} in {short_name}")
                priority = control_data.get("priority")
                if priority is not None and priority not in VALID_PRIORITIES:
                    raise CatalogValidationError(f"Invalid priority {priority} for {short_name} {code}")
                codes.add(code)

        missing = []
        for mapping_data in catalog.get("mappings", []):
            if mapping_data.get("confidence", "MEDIUM") not in VALID_CONFIDENCE:
                raise CatalogValidationError(f"Invalid confidence {mapping_data.get('confidence')}")
            if mapping_data.get("mapping_type", "RELATED") not in VALID_MAPPING_TYPES:
                raise CatalogValidationError(f"Invalid mapping type {mapping_data.get('mapping_type')}")
            for side in ("source", "target"):
                ref = (mapping_data.get(f"{side}_framework"), mapping_data.get(f"{side}_control"))
                if ref[1] in defined.get(ref[0], set()):
                    continue
                if self._find_control(*ref) is None:
                    missing.append(f"{ref[0]} {ref[1]}")

        if missing:
            raise CatalogValidationError(f"Mappings reference unknown controls: {', '.join(missing[:5])}")

    def _upsert_framework(self, data: Dict[str, Any]) -> Framework:
        framework = self.db.query(Framework).filter(Framework.short_name == data["short_name"]).first()
        if framework is None:
            framework = Framework(short_name=data["short_name"])
            self.db.add(framework)

        framework.name = data["name"]
        framework.version = data.get("version")
        framework.category = data.get("category")
        framework.description = data.get("description")
        framework.is_active = data.get("is_active", True)
        self.db.flush()
        return framework

    def _upsert_controls(self, framework: Framework, controls: List[Dict[str, Any]]) -> int:
        by_code: Dict[str, Control] = {
            c.code: c for c in self.db.query(Control).filter(Control.framework_id == framework.id).all()
        }

        for index, data in enumerate(controls):
            control = by_code.get(data["code"])
            if control is None:
                control = Control(framework_id=framework.id, code=data["code"])
                self.db.add(control)
                by_code[data["code"]] = control

            control.title = data["title"]
            control.description = data.get("description")
            control.priority = data.get("priority")
            control.sort_order = data.get("sort_order", index)

        self.db.flush()

        # Parents resolve after every control of the framework has an id
        for data in controls:
            parent = by_code.get(data.get("parent") or "")
            by_code[data["code"]].parent_id = parent.id if parent else None

        return len(controls)

    def _find_control(self, short_name: Optional[str], code: Optional[str]) -> Optional[Control]:
        if not short_name or not code:
            return None
        return (
            self.db.query(Control)
            .join(Framework, Control.framework_id == Framework.id)
            .filter(Framework.short_name == short_name, Control.code == code)
            .first()
        )

    def _resolve(self, data: Dict[str, Any], side: str) -> Control:
        control = self._find_control(data.get(f"{side}_framework"), data.get(f"{side}_control"))
        if control is None:
            raise CatalogValidationError(f"Unknown {side} control {data.get(f'{side}_control')}")
        return control

    def _upsert_mapping(self, data: Dict[str, Any]) -> ControlMapping:
        source = self._resolve(data, "source")
        target = self._resolve(data, "target")

        mapping = (
            self.db.query(ControlMapping)
            .filter(ControlMapping.source_control_id == source.id, ControlMapping.target_control_id == target.id)
            .first()
        )
        if mapping is None:
            mapping = ControlMapping(source_control_id=source.id, target_control_id=target.id)
            self.db.add(mapping)

        mapping.source_framework_id = source.framework_id
        mapping.target_framework_id = target.framework_id
        mapping.confidence_score = data.get("confidence", "MEDIUM")
        mapping.mapping_type = data.get("mapping_type", "RELATED")
        mapping.rationale = data.get("rationale")
        return mapping

    def get_summary(self) -> List[Dict[str, Any]]:
        """Framework list with control and outgoing/incoming mapping counts"""
        control_counts = dict(
            self.db.query(Control.framework_id, func.count(Control.id)).group_by(Control.framework_id).all()
        )
        outgoing = dict(
            self.db.query(ControlMapping.source_framework_id, func.count(ControlMapping.id))
            .group_by(ControlMapping.source_framework_id)
            .all()
        )
        incoming = dict(
            self.db.query(ControlMapping.target_framework_id, func.count(ControlMapping.id))
            .group_by(ControlMapping.target_framework_id)
            .all()
        )

        return [
            {
                "id": fw.id,
                "name": fw.name,
                "short_name": fw.short_name,
                "version": fw.version,
                "control_count": control_counts.get(fw.id, 0),
                "mappings_out": outgoing.get(fw.id, 0),
                "mappings_in": incoming.get(fw.id, 0),
            }
            for fw in self.db.query(Framework).order_by(Framework.short_name.asc()).all()
        ]
