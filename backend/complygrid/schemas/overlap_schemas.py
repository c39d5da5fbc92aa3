"""
Framework Overlap Schemas

Pydantic models for mapping listings, Sankey data and overlap statistics.
"""

from typing import List, Optional

from pydantic import BaseModel


class FrameworkSummary(BaseModel):
    id: str
    name: str
    short_name: str


class MappedControl(BaseModel):
    id: str
    code: str
    title: str
    framework: FrameworkSummary


class MappingItem(BaseModel):
    """One cross-framework control mapping."""

    id: str
    source_control: MappedControl
    target_control: MappedControl
    confidence: str
    mapping_type: str
    rationale: Optional[str] = None


class MappingListResponse(BaseModel):
    mappings: List[MappingItem]
    total: int
    page: int
    page_size: int
    total_pages: int


class SankeyNode(BaseModel):
    id: str
    name: str
    type: str


class SankeyEdge(BaseModel):
    source: str
    target: str
    value: int
    label: str


class SankeyDataResponse(BaseModel):
    nodes: List[SankeyNode]
    edges: List[SankeyEdge]


class OverlapStatisticsItem(BaseModel):
    """Mapping counts for one unordered framework pair."""

    framework1: str
    framework2: str
    total_mappings: int
    high_confidence: int
    medium_confidence: int
    low_confidence: int
    equivalent: int
    partial: int
    related: int
    superset: int
    subset: int

    class Config:
        from_attributes = True


class OverlapStatisticsResponse(BaseModel):
    statistics: List[OverlapStatisticsItem]
