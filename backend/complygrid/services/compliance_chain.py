"""
Compliance Chain Service
Requirement -> control -> evidence flow graphs and coverage statistics.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from complygrid.database import ComplianceChain, Control, Evidence, Framework
from complygrid.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

REQUIREMENT_LABEL_LIMIT = 50
CHAIN_STATUSES = ("COMPLETE", "PARTIAL", "MISSING")


def truncate_label(text: str, limit: int = REQUIREMENT_LABEL_LIMIT) -> str:
    """Trim to ``limit`` characters, adding an ellipsis when cut."""
    return text[:limit] + ("..." if len(text) > limit else "")


def evidence_label(evidence: Mapping[str, Any]) -> str:
    return evidence.get("filename") or evidence.get("original_name") or "Evidence"


def build_flow_data(
    chains: Sequence[Mapping[str, Any]], evidence_map: Mapping[str, Sequence[Mapping[str, Any]]]
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build React Flow nodes and edges for a set of compliance chains.

    Args:
        chains: Dicts with id, requirement, control_id, chain_status and an
            optional ``control`` dict ({id, code, title})
        evidence_map: Chain id -> evidence dicts ({id, filename, original_name})

    Returns:
        {"nodes": [...], "edges": [...]}; nodes are deduplicated by id
    """
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []
    added = set()

    def add_node(node: Dict[str, Any]) -> None:
        if node["id"] not in added:
            nodes.append(node)
            added.add(node["id"])

    for chain in chains:
        req_node_id = f"req-{chain['id']}"
        add_node(
            {
                "id": req_node_id,
                "type": "requirement",
                "data": {"label": truncate_label(chain["requirement"])},
            }
        )

        control = chain.get("control")
        if not chain.get("control_id") or not control:
            continue

        ctrl_node_id = f"ctrl-{chain['control_id']}"
        add_node(
            {
                "id": ctrl_node_id,
                "type": "control",
                "data": {"label": control.get("code") or "Unknown", "status": chain["chain_status"]},
            }
        )
        edges.append({"id": f"e-req-ctrl-{chain['id']}", "source": req_node_id, "target": ctrl_node_id})

        for evidence in evidence_map.get(chain["id"], []):
            ev_node_id = f"ev-{evidence['id']}"
            add_node({"id": ev_node_id, "type": "evidence", "data": {"label": evidence_label(evidence)}})
            edges.append(
                {
                    "id": f"e-ctrl-ev-{chain['id']}-{evidence['id']}",
                    "source": ctrl_node_id,
                    "target": ev_node_id,
                }
            )

    return {"nodes": nodes, "edges": edges}


def calculate_coverage_stats(chain_statuses: Sequence[str], total_controls: int) -> Dict[str, int]:
    """
    Coverage statistics for a framework.

    Controls without any chain count as missing.

    Args:
        chain_statuses: Status of every chain on the framework's controls
        total_controls: Number of controls in the framework

    Returns:
        {total, complete, partial, missing, coverage_percent}
    """
    complete = sum(1 for s in chain_statuses if s == "COMPLETE")
    partial = sum(1 for s in chain_statuses if s == "PARTIAL")
    missing = sum(1 for s in chain_statuses if s == "MISSING")
    unmapped = total_controls - (complete + partial + missing)

    return {
        "total": total_controls,
        "complete": complete,
        "partial": partial,
        "missing": missing + unmapped,
        "coverage_percent": round_half_up(complete / total_controls * 100) if total_controls > 0 else 0,
    }


class ComplianceChainService:
    """Organization-scoped compliance chain queries."""

    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    def _chains_for_framework(self, framework_id: str):
        return (
            self.db.query(ComplianceChain, Control)
            .join(Control, ComplianceChain.control_id == Control.id)
            .filter(
                ComplianceChain.organization_id == self.organization_id,
                Control.framework_id == framework_id,
            )
        )

    def get_coverage(self, framework_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Coverage per framework plus an overall rollup.

        Args:
            framework_id: Restrict to one framework
        """
        query = self.db.query(Framework)
        if framework_id:
            query = query.filter(Framework.id == framework_id)
        frameworks = query.order_by(Framework.name.asc()).all()

        control_counts = dict(
            self.db.query(Control.framework_id, func.count(Control.id)).group_by(Control.framework_id).all()
        )

        coverages = []
        for framework in frameworks:
            statuses = [chain.chain_status for chain, _ in self._chains_for_framework(framework.id).all()]
            stats = calculate_coverage_stats(statuses, control_counts.get(framework.id, 0))
            coverages.append({"id": framework.id, "name": framework.name, **stats})

        overall = {key: sum(c[key] for c in coverages) for key in ("total", "complete", "partial", "missing")}
        overall["coverage_percent"] = (
            round_half_up(overall["complete"] / overall["total"] * 100) if overall["total"] > 0 else 0
        )

        return {"frameworks": coverages, "overall": overall}

    def get_flow_data(self, framework_id: str, limit: int = 50) -> Dict[str, Any]:
        """
        React Flow graph for the newest chains of a framework.

        Evidence outside the organization is never attached.
        """
        rows = (
            self._chains_for_framework(framework_id)
            .order_by(ComplianceChain.created_at.desc(), ComplianceChain.id.asc())
            .limit(limit)
            .all()
        )

        chains = []
        evidence_ids = set()
        for chain, control in rows:
            chains.append(
                {
                    "id": chain.id,
                    "requirement": chain.requirement,
                    "control_id": chain.control_id,
                    "chain_status": chain.chain_status,
                    "control": {"id": control.id, "code": control.code, "title": control.title},
                    "evidence_ids": list(chain.evidence_ids or []),
                }
            )
            evidence_ids.update(chain.evidence_ids or [])

        evidence_by_id = {}
        if evidence_ids:
            evidence_rows = (
                self.db.query(Evidence)
                .filter(Evidence.id.in_(list(evidence_ids)), Evidence.organization_id == self.organization_id)
                .all()
            )
            evidence_by_id = {
                ev.id: {"id": ev.id, "filename": ev.filename, "original_name": ev.original_name}
                for ev in evidence_rows
            }

        evidence_map = {
            chain["id"]: [evidence_by_id[ev_id] for ev_id in chain["evidence_ids"] if ev_id in evidence_by_id]
            for chain in chains
        }

        flow = build_flow_data(chains, evidence_map)
        logger.debug(f"Flow data for framework {framework_id}: {len(chains)} chains, {len(flow['nodes'])} nodes")

        return {
            **flow,
            "metadata": {
                "framework_id": framework_id,
                "total_chains": len(chains),
                "total_nodes": len(flow["nodes"]),
                "total_edges": len(flow["edges"]),
            },
        }
