"""
Unit tests for z-score anomaly detection.
"""

import math

import pytest

from complygrid.services.anomaly_detection import (
    calculate_mean,
    calculate_std_dev,
    classify_z_score,
    detect_anomaly,
)

# mean 5, population std dev 2
HISTORY = [2, 4, 4, 4, 5, 5, 7, 9]


@pytest.mark.unit
class TestStatistics:
    def test_mean_and_std_dev(self) -> None:
        assert calculate_mean(HISTORY) == 5
        assert calculate_std_dev(HISTORY, 5) == 2

    def test_empty_history(self) -> None:
        assert calculate_mean([]) == 0
        assert calculate_std_dev([], 0) == 0


@pytest.mark.unit
class TestDetectAnomaly:
    """
    Validates:
    - Severity thresholds are strict: |z| > 3 CRITICAL, > 2.5 HIGH, > 2 MEDIUM
    - Negative deviations are judged by magnitude
    - A flat history flags any change as CRITICAL
    """

    def test_within_normal_range(self) -> None:
        result = detect_anomaly(HISTORY, 9)  # z = 2.0 exactly

        assert result.is_anomaly is False
        assert result.severity == "LOW"
        assert result.z_score == 2.0
        assert result.expected_value == 5
        assert result.deviation == 2

    def test_severity_levels(self) -> None:
        assert detect_anomaly(HISTORY, 9.5).severity == "MEDIUM"  # z = 2.25
        assert detect_anomaly(HISTORY, 10.5).severity == "HIGH"  # z = 2.75
        assert detect_anomaly(HISTORY, 12).severity == "CRITICAL"  # z = 3.5

    def test_drop_is_anomalous(self) -> None:
        result = detect_anomaly(HISTORY, -2)

        assert result.is_anomaly is True
        assert result.z_score == -3.5
        assert result.severity == "CRITICAL"

    def test_flat_history_with_change(self) -> None:
        result = detect_anomaly([70, 70, 70], 65)

        assert result.is_anomaly is True
        assert math.isinf(result.z_score)
        assert result.severity == "CRITICAL"
        assert result.deviation == 0

    def test_flat_history_without_change(self) -> None:
        result = detect_anomaly([70, 70, 70], 70)

        assert result.to_dict() == {
            "is_anomaly": False,
            "z_score": 0.0,
            "severity": "LOW",
            "expected_value": 70,
            "deviation": 0.0,
        }

    def test_classify_boundaries(self) -> None:
        assert classify_z_score(3.0) == "HIGH"
        assert classify_z_score(-2.5) == "MEDIUM"
        assert classify_z_score(2.0) == "LOW"
