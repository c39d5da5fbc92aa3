"""
Gap Analysis Core Layer - Framework Mapping Matrix

Summarises how strongly each pair of selected frameworks is linked.
"""

from typing import Dict, Sequence

from ..loader import MappingRecord
from ..models import ConfidenceLevel, MappingType, MatrixStatus

# Stronger relationships win when several mappings link the same pair
MATRIX_PRECEDENCE = {
    MatrixStatus.UNMAPPED: 0,
    MatrixStatus.PARTIAL: 1,
    MatrixStatus.MAPPED: 2,
}

GapMatrix = Dict[str, Dict[str, MatrixStatus]]


def classify_mapping(mapping_type: str, confidence: str) -> MatrixStatus:
    """
    Matrix cell value contributed by a single mapping.

    EQUIVALENT mappings are MAPPED and PARTIAL mappings are PARTIAL. Other
    mapping types count as MAPPED only with HIGH confidence.
    """
    if mapping_type == MappingType.EQUIVALENT.value:
        return MatrixStatus.MAPPED
    if mapping_type == MappingType.PARTIAL.value:
        return MatrixStatus.PARTIAL
    if confidence == ConfidenceLevel.HIGH.value:
        return MatrixStatus.MAPPED
    return MatrixStatus.PARTIAL


class GapMatrixBuilder:
    """Builds the symmetric framework-to-framework matrix."""

    def build(self, framework_ids: Sequence[str], mappings: Sequence[MappingRecord]) -> GapMatrix:
        """
        Generate the gap matrix.

        Every selected framework gets a row holding every *other* selected
        framework, initialised to UNMAPPED. Mappings between two distinct
        selected frameworks upgrade the cell in both directions.

        Args:
            framework_ids: Selected framework ids (deduplicated)
            mappings: Mappings touching the selection

        Returns:
            Nested dict matrix[a][b] == matrix[b][a]
        """
        matrix: GapMatrix = {
            row_id: {col_id: MatrixStatus.UNMAPPED for col_id in framework_ids if col_id != row_id}
            for row_id in framework_ids
        }

        for mapping in mappings:
            source = mapping.source_framework_id
            target = mapping.target_framework_id
            if source == target or source not in matrix or target not in matrix:
                continue

            status = classify_mapping(mapping.mapping_type, mapping.confidence)
            if MATRIX_PRECEDENCE[status] > MATRIX_PRECEDENCE[matrix[source][target]]:
                matrix[source][target] = status
                matrix[target][source] = status

        return matrix
