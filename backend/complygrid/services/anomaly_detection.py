"""
Anomaly Detection Service
Z-score detection of unusual metric values against their recent history.
"""

import logging
import math
import statistics
from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence

logger = logging.getLogger(__name__)

# (threshold on |z|, severity); first match wins
SEVERITY_THRESHOLDS = [
    (3.0, "CRITICAL"),
    (2.5, "HIGH"),
    (2.0, "MEDIUM"),
]


@dataclass
class AnomalyResult:
    is_anomaly: bool
    z_score: float
    severity: str
    expected_value: float
    deviation: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return statistics.fmean(values)


def calculate_std_dev(values: Sequence[float], mean: float) -> float:
    """Population standard deviation around ``mean``."""
    if not values:
        return 0.0
    return statistics.pstdev(values, mu=mean)


def classify_z_score(z_score: float) -> str:
    magnitude = abs(z_score)
    for threshold, severity in SEVERITY_THRESHOLDS:
        if magnitude > threshold:
            return severity
    return "LOW"


def detect_anomaly(values: Sequence[float], current_value: float) -> AnomalyResult:
    """
    Compare ``current_value`` against the distribution of ``values``.

    Severity by |z|: > 3.0 CRITICAL, > 2.5 HIGH, > 2.0 MEDIUM, otherwise LOW
    (not an anomaly).

    When the history has no spread at all, any change from the mean is a
    CRITICAL anomaly with an infinite z-score and the deviation reported as 0.
    """
    mean = calculate_mean(values)
    std_dev = calculate_std_dev(values, mean)

    if std_dev == 0:
        changed = current_value != mean
        return AnomalyResult(
            is_anomaly=changed,
            z_score=math.inf if changed else 0.0,
            severity="CRITICAL" if changed else "LOW",
            expected_value=mean,
            deviation=0.0,
        )

    z_score = (current_value - mean) / std_dev
    severity = classify_z_score(z_score)

    if severity != "LOW":
        logger.debug(f"Anomaly detected: value {current_value} vs mean {mean:.2f} (z={z_score:.2f}, {severity})")

    return AnomalyResult(
        is_anomaly=severity != "LOW",
        z_score=z_score,
        severity=severity,
        expected_value=mean,
        deviation=std_dev,
    )
