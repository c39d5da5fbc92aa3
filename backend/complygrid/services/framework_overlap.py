"""
Framework Overlap Service
Cross-framework mapping listings, Sankey visualization data and per-pair
overlap statistics.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import case, or_
from sqlalchemy.orm import Session, aliased

from complygrid.database import Control, ControlMapping, Framework
from complygrid.services.gap_analysis.loader import FrameworkRecord, GapAnalysisDataLoader, MappingRecord

logger = logging.getLogger(__name__)

CONFIDENCE_WEIGHTS = {"HIGH": 3, "MEDIUM": 2, "LOW": 1}
MAPPING_TYPES = ("EQUIVALENT", "PARTIAL", "RELATED", "SUPERSET", "SUBSET")


def get_confidence_weight(level: Optional[str]) -> int:
    """Numeric weight used as the Sankey edge value; unknown levels weigh 1."""
    return CONFIDENCE_WEIGHTS.get(level or "", 1)


def transform_to_sankey_data(
    mappings: Sequence[MappingRecord], frameworks: Sequence[FrameworkRecord]
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Convert mappings into Sankey nodes and edges.

    Framework nodes come first (``fw-{id}``, named by short name), then
    control nodes (``ctrl-{id}``, named by code) in first-seen order. Each
    mapping becomes one edge weighted by confidence.

    Returns:
        {"nodes": [...], "edges": [...]}
    """
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []
    node_ids = set()

    def add_node(node_id: str, name: str, node_type: str) -> None:
        if node_id not in node_ids:
            nodes.append({"id": node_id, "name": name, "type": node_type})
            node_ids.add(node_id)

    for framework in frameworks:
        add_node(f"fw-{framework.id}", framework.short_name, "framework")

    for mapping in mappings:
        source_node = f"ctrl-{mapping.source_control.id}"
        target_node = f"ctrl-{mapping.target_control.id}"
        add_node(source_node, mapping.source_control.code, "control")
        add_node(target_node, mapping.target_control.code, "control")
        edges.append(
            {
                "source": source_node,
                "target": target_node,
                "value": get_confidence_weight(mapping.confidence),
                "label": mapping.confidence,
            }
        )

    return {"nodes": nodes, "edges": edges}


@dataclass
class OverlapStatistics:
    framework1: str
    framework2: str
    total_mappings: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0
    equivalent: int = 0
    partial: int = 0
    related: int = 0
    superset: int = 0
    subset: int = 0


def calculate_overlap_statistics(
    mappings: Sequence[MappingRecord], frameworks: Sequence[FrameworkRecord]
) -> List[OverlapStatistics]:
    """
    Per framework pair mapping counts.

    Pairs are unordered and only listed when at least one mapping links
    them in either direction. Results are sorted by total mappings,
    descending; ties keep framework order.
    """
    statistics: List[OverlapStatistics] = []

    for i, first in enumerate(frameworks):
        for second in frameworks[i + 1:]:
            pair = {first.id, second.id}
            pair_mappings = [
                m
                for m in mappings
                if {m.source_framework_id, m.target_framework_id} == pair
                and m.source_framework_id != m.target_framework_id
            ]
            if not pair_mappings:
                continue

            stats = OverlapStatistics(framework1=first.short_name, framework2=second.short_name)
            stats.total_mappings = len(pair_mappings)
            for mapping in pair_mappings:
                if mapping.confidence == "HIGH":
                    stats.high_confidence += 1
                elif mapping.confidence == "MEDIUM":
                    stats.medium_confidence += 1
                elif mapping.confidence == "LOW":
                    stats.low_confidence += 1

                if mapping.mapping_type in MAPPING_TYPES:
                    attr = mapping.mapping_type.lower()
                    setattr(stats, attr, getattr(stats, attr) + 1)

            statistics.append(stats)

    statistics.sort(key=lambda s: s.total_mappings, reverse=True)
    return statistics


def _framework_summary(framework: Framework) -> Dict[str, Any]:
    return {"id": framework.id, "name": framework.name, "short_name": framework.short_name}


class FrameworkOverlapService:
    """Database-backed queries for the framework overlap views."""

    def __init__(self, db: Session):
        self.db = db
        self.loader = GapAnalysisDataLoader(db)

    def list_mappings(
        self,
        framework_ids: Optional[Sequence[str]] = None,
        confidence_level: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """
        Paginated mapping listing.

        Ordered HIGH -> MEDIUM -> LOW confidence, newest first within a level.
        """
        source_control = aliased(Control)
        target_control = aliased(Control)
        source_framework = aliased(Framework)
        target_framework = aliased(Framework)

        query = (
            self.db.query(ControlMapping, source_control, target_control, source_framework, target_framework)
            .join(source_control, ControlMapping.source_control_id == source_control.id)
            .join(target_control, ControlMapping.target_control_id == target_control.id)
            .join(source_framework, source_control.framework_id == source_framework.id)
            .join(target_framework, target_control.framework_id == target_framework.id)
        )

        if confidence_level:
            query = query.filter(ControlMapping.confidence_score == confidence_level)
        if framework_ids:
            query = query.filter(
                or_(
                    ControlMapping.source_framework_id.in_(list(framework_ids)),
                    ControlMapping.target_framework_id.in_(list(framework_ids)),
                )
            )

        total = query.count()
        confidence_rank = case(
            (ControlMapping.confidence_score == "HIGH", 0),
            (ControlMapping.confidence_score == "MEDIUM", 1),
            else_=2,
        )
        rows = (
            query.order_by(confidence_rank, ControlMapping.created_at.desc(), ControlMapping.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        mappings = [
            {
                "id": mapping.id,
                "source_control": {
                    "id": source.id,
                    "code": source.code,
                    "title": source.title,
                    "framework": _framework_summary(src_fw),
                },
                "target_control": {
                    "id": target.id,
                    "code": target.code,
                    "title": target.title,
                    "framework": _framework_summary(tgt_fw),
                },
                "confidence": mapping.confidence_score,
                "mapping_type": mapping.mapping_type,
                "rationale": mapping.rationale,
            }
            for mapping, source, target, src_fw, tgt_fw in rows
        ]

        return {
            "mappings": mappings,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size),
        }

    def _frameworks(self, framework_ids: Optional[Sequence[str]]) -> List[FrameworkRecord]:
        query = self.db.query(Framework)
        if framework_ids:
            query = query.filter(Framework.id.in_(list(framework_ids)))
        return [
            FrameworkRecord(id=fw.id, name=fw.name, short_name=fw.short_name)
            for fw in query.order_by(Framework.name.asc()).all()
        ]

    def _mappings(self, frameworks: Sequence[FrameworkRecord], filtered: bool) -> List[MappingRecord]:
        if filtered:
            return self.loader.load_control_mappings([fw.id for fw in frameworks])
        all_ids = [fw_id for (fw_id,) in self.db.query(Framework.id).all()]
        return self.loader.load_control_mappings(all_ids)

    def get_sankey_data(self, framework_ids: Optional[Sequence[str]] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Sankey nodes and edges for the selection, or the whole catalog."""
        frameworks = self._frameworks(framework_ids)
        mappings = self._mappings(frameworks, bool(framework_ids))
        return transform_to_sankey_data(mappings, frameworks)

    def get_overlap_statistics(self, framework_ids: Optional[Sequence[str]] = None) -> List[OverlapStatistics]:
        frameworks = self._frameworks(framework_ids)
        mappings = self._mappings(frameworks, bool(framework_ids))
        return calculate_overlap_statistics(mappings, frameworks)

    def get_framework_mappings(
        self, source_framework_id: Optional[str] = None, target_framework_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Mappings filtered by source and/or target framework."""
        source_control = aliased(Control)
        target_control = aliased(Control)
        source_framework = aliased(Framework)
        target_framework = aliased(Framework)

        query = (
            self.db.query(ControlMapping, source_control, target_control, source_framework, target_framework)
            .join(source_control, ControlMapping.source_control_id == source_control.id)
            .join(target_control, ControlMapping.target_control_id == target_control.id)
            .join(source_framework, ControlMapping.source_framework_id == source_framework.id)
            .join(target_framework, ControlMapping.target_framework_id == target_framework.id)
        )
        if source_framework_id:
            query = query.filter(ControlMapping.source_framework_id == source_framework_id)
        if target_framework_id:
            query = query.filter(ControlMapping.target_framework_id == target_framework_id)

        return [
            {
                "id": mapping.id,
                "source_control": {"id": source.id, "code": source.code, "title": source.title},
                "target_control": {"id": target.id, "code": target.code, "title": target.title},
                "source_framework": _framework_summary(src_fw),
                "target_framework": _framework_summary(tgt_fw),
                "confidence_score": mapping.confidence_score,
                "mapping_type": mapping.mapping_type,
                "rationale": mapping.rationale,
            }
            for mapping, source, target, src_fw, tgt_fw in query.order_by(ControlMapping.created_at.asc()).all()
        ]
