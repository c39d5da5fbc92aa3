"""
Unit test fixtures.

Provides lightweight framework records for unit testing that do NOT require
database connections or running services.
"""

import pytest

from complygrid.services.gap_analysis.loader import FrameworkRecord


@pytest.fixture
def nist() -> FrameworkRecord:
    return FrameworkRecord(id="fw-nist", name="NIST Cybersecurity Framework", short_name="NIST-CSF")


@pytest.fixture
def iso() -> FrameworkRecord:
    return FrameworkRecord(id="fw-iso", name="ISO/IEC 27001", short_name="ISO-27001")


@pytest.fixture
def soc2() -> FrameworkRecord:
    return FrameworkRecord(id="fw-soc2", name="SOC 2", short_name="SOC2")
