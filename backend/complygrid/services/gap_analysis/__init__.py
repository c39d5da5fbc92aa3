"""
ComplyGrid Gap Analysis Engine

Single source of truth for cross-framework compliance analysis.

This module provides:
- Weighted compliance scores per framework
- Control-level gap identification with mapped counterparts
- A framework-to-framework mapping matrix
- Bidirectional pairwise coverage comparison
- CSV export of gaps

Architecture:
    Entry Point -> Data Layer -> Core Calculators -> Cached Results

Layers:
    0. Data Layer: controls, mappings and assessment outcomes as plain records
    1. Core Layer: scoring, gap identification, matrix, pairwise coverage
    2. Cache Layer: Redis, 5 minute TTL
    3. Export Layer: CSV rendering

Usage:
    >>> from complygrid.services.gap_analysis import get_gap_analysis_service
    >>> service = get_gap_analysis_service(db)
    >>>
    >>> result = await service.run_gap_analysis(org_id, ["fw-nist", "fw-iso"])
    >>> for score in result.frameworks:
    ...     print(f"{score.short_name}: {score.compliance_score}%")
    >>>
    >>> pairwise = await service.run_pairwise_comparison("fw-nist", "fw-iso")
    >>> print(pairwise.source_to_target.coverage_percentage)
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from complygrid.services.errors import FrameworkNotFoundError

from .cache import GapAnalysisCache, multi_cache_key, pairwise_cache_key
from .core import ComplianceScoreCalculator, GapIdentifier, GapMatrixBuilder, PairwiseComparator
from .core.matrix_builder import GapMatrix
from .core.score_calculator import build_assessment_lookup
from .export import generate_gap_csv
from .loader import GapAnalysisDataLoader, MappingRecord, unique_ids
from .models import (
    ComplianceStatus,
    DirectionCoverage,
    FrameworkGap,
    FrameworkScore,
    GapAnalysisResult,
    MatrixStatus,
    PairwiseComparisonResult,
)

logger = logging.getLogger(__name__)

__version__ = "1.0.0"
__all__ = [
    # Main service
    "GapAnalysisService",
    "get_gap_analysis_service",
    # Models
    "ComplianceStatus",
    "DirectionCoverage",
    "FrameworkGap",
    "FrameworkScore",
    "GapAnalysisResult",
    "MatrixStatus",
    "PairwiseComparisonResult",
]


class GapAnalysisService:
    """
    Main entry point for gap analysis.

    Provides a unified interface to the engine while keeping loading,
    calculation and caching in separate layers.
    """

    def __init__(self, db: Session, cache: Optional[GapAnalysisCache] = None):
        """
        Initialize the service with a database session.

        Args:
            db: SQLAlchemy database session
            cache: Optional cache; results are recomputed on every call without one
        """
        self.db = db
        self.cache = cache

        # Layer 0: Data
        self.loader = GapAnalysisDataLoader(db)

        # Layer 1: Core calculators
        self.score_calculator = ComplianceScoreCalculator()
        self.gap_identifier = GapIdentifier()
        self.matrix_builder = GapMatrixBuilder()
        self.pairwise_comparator = PairwiseComparator()

    def calculate_compliance_scores(self, organization_id: str, framework_ids: Sequence[str]) -> List[FrameworkScore]:
        """
        Weighted compliance score for each requested framework.

        Args:
            organization_id: Tenant whose assessments are scored
            framework_ids: Frameworks to score

        Returns:
            FrameworkScore list in request order, unknown frameworks omitted
        """
        ids = unique_ids(framework_ids)
        frameworks = self.loader.load_frameworks(ids)
        controls = self.loader.load_framework_controls(ids)
        lookup = build_assessment_lookup(self.loader.load_assessment_data(organization_id, ids))
        return self.score_calculator.calculate_compliance_scores(ids, frameworks, controls, lookup)

    def identify_gaps(self, organization_id: str, framework_ids: Sequence[str]) -> List[FrameworkGap]:
        """
        Every non-compliant control of the requested frameworks.

        Returns:
            FrameworkGap list ordered by framework then control order
        """
        ids = unique_ids(framework_ids)
        frameworks = self.loader.load_frameworks(ids)
        controls = self.loader.load_framework_controls(ids)
        mappings = self.loader.load_control_mappings(ids)
        lookup = build_assessment_lookup(self.loader.load_assessment_data(organization_id, ids))
        return self.gap_identifier.identify_gaps(ids, frameworks, controls, mappings, lookup)

    def generate_gap_matrix(
        self, framework_ids: Sequence[str], mappings: Optional[Sequence[MappingRecord]] = None
    ) -> GapMatrix:
        """
        Framework-to-framework mapping matrix.

        Args:
            framework_ids: Selected frameworks
            mappings: Pre-loaded mappings; loaded from the database when omitted
        """
        ids = unique_ids(framework_ids)
        if mappings is None:
            mappings = self.loader.load_control_mappings(ids)
        return self.matrix_builder.build(ids, mappings)

    def analyze(self, organization_id: str, framework_ids: Sequence[str]) -> GapAnalysisResult:
        """
        Compute a full gap analysis without touching the cache.

        Loads controls, mappings and assessments once and feeds every
        calculator from the same snapshot.
        """
        ids = unique_ids(framework_ids)
        frameworks = self.loader.load_frameworks(ids)
        controls = self.loader.load_framework_controls(ids)
        mappings = self.loader.load_control_mappings(ids)
        lookup = build_assessment_lookup(self.loader.load_assessment_data(organization_id, ids))

        result = GapAnalysisResult(
            frameworks=self.score_calculator.calculate_compliance_scores(ids, frameworks, controls, lookup),
            gaps=self.gap_identifier.identify_gaps(ids, frameworks, controls, mappings, lookup),
            matrix=self.matrix_builder.build(ids, mappings),
        )
        logger.info(
            f"Gap analysis for {len(ids)} frameworks: "
            f"{len(result.frameworks)} scored, {len(result.gaps)} gaps, {len(mappings)} mappings"
        )
        return result

    async def run_gap_analysis(
        self, organization_id: str, framework_ids: Sequence[str], use_cache: bool = True
    ) -> GapAnalysisResult:
        """
        Run (or fetch from cache) a multi-framework gap analysis.

        Args:
            organization_id: Tenant being analyzed
            framework_ids: Selected frameworks
            use_cache: Read and populate the cache when available

        Returns:
            GapAnalysisResult; ``cached`` is True when served from cache

        Example:
            >>> result = await service.run_gap_analysis(org_id, ["fw-1", "fw-2"])
            >>> result.matrix["fw-1"]["fw-2"]
            <MatrixStatus.MAPPED: 'MAPPED'>
        """
        ids = unique_ids(framework_ids)
        cache_key = multi_cache_key(organization_id, ids)

        if use_cache and self.cache:
            cached = await self.cache.get(cache_key)
            if cached:
                result = GapAnalysisResult(**cached)
                result.cached = True
                return result

        result = self.analyze(organization_id, ids)

        if use_cache and self.cache:
            await self.cache.set(cache_key, result.model_dump(mode="json", exclude_none=True))

        return result

    def compare(self, source_id: str, target_id: str) -> PairwiseComparisonResult:
        """
        Bidirectional coverage between two frameworks, uncached.

        Raises:
            FrameworkNotFoundError: If either framework does not exist
        """
        frameworks = self.loader.load_frameworks([source_id, target_id])
        source = frameworks.get(source_id)
        target = frameworks.get(target_id)
        if source is None or target is None:
            raise FrameworkNotFoundError(message="One or both frameworks not found")

        controls = self.loader.load_framework_controls([source_id, target_id])
        mappings = self.loader.load_control_mappings([source_id, target_id])
        return self.pairwise_comparator.compare(
            source, target, controls.get(source_id, []), controls.get(target_id, []), mappings
        )

    async def run_pairwise_comparison(
        self, source_id: str, target_id: str, use_cache: bool = True
    ) -> PairwiseComparisonResult:
        """
        Run (or fetch from cache) a pairwise coverage comparison.

        Raises:
            FrameworkNotFoundError: If either framework does not exist
        """
        cache_key = pairwise_cache_key(source_id, target_id)

        if use_cache and self.cache:
            cached = await self.cache.get(cache_key)
            if cached:
                result = PairwiseComparisonResult(**cached)
                result.cached = True
                return result

        result = self.compare(source_id, target_id)

        if use_cache and self.cache:
            await self.cache.set(cache_key, result.model_dump(mode="json", exclude_none=True))

        return result

    def export_csv(self, organization_id: str, framework_ids: Sequence[str]) -> str:
        """Fresh analysis rendered as CSV."""
        return generate_gap_csv(self.analyze(organization_id, framework_ids))


def get_gap_analysis_service(db: Session, cache: Optional[GapAnalysisCache] = None) -> GapAnalysisService:
    """
    Factory function to create a gap analysis service instance.

    Args:
        db: SQLAlchemy database session
        cache: Optional cache instance

    Returns:
        Configured GapAnalysisService

    Example:
        >>> service = get_gap_analysis_service(db, cache=GapAnalysisCache())
        >>> result = await service.run_gap_analysis(org_id, framework_ids)
    """
    return GapAnalysisService(db, cache)
