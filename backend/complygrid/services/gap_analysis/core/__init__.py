"""
Gap Analysis Core Layer

Pure calculators operating on loaded records.
"""

from .gap_identifier import GapIdentifier, index_mapped_controls
from .matrix_builder import GapMatrixBuilder, classify_mapping
from .pairwise import PairwiseComparator, effective_controls, find_counterpart
from .score_calculator import (
    ComplianceScoreCalculator,
    build_assessment_lookup,
    classify_effectiveness,
    resolve_control_status,
)

__all__ = [
    "ComplianceScoreCalculator",
    "GapIdentifier",
    "GapMatrixBuilder",
    "PairwiseComparator",
    "build_assessment_lookup",
    "classify_effectiveness",
    "classify_mapping",
    "effective_controls",
    "find_counterpart",
    "index_mapped_controls",
    "resolve_control_status",
]
