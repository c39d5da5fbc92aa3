"""
Benchmarking Privacy Helpers

Peer benchmark submissions are anonymized before they are pooled:
organization ids are replaced by a salted SHA-256 digest, published
aggregates get Laplace noise (epsilon-differential privacy), and aggregates
are only released once enough organizations contributed.
"""

import hashlib
import math
import random
from typing import Optional

from complygrid.config import get_settings


def laplace_random(rng: Optional[random.Random] = None) -> float:
    """
    Sample the standard Laplace distribution (location 0, scale 1).

    Inverse transform: -sgn(u - 0.5) * ln(1 - 2|u - 0.5|) for u ~ U(0, 1).
    """
    u = (rng or random).random()
    sign = 1 if u < 0.5 else -1
    return -sign * math.log(1 - 2 * abs(u - 0.5))


def add_laplace_noise(
    value: float, sensitivity: float, epsilon: float, rng: Optional[random.Random] = None
) -> float:
    """
    Add Laplace noise with scale ``sensitivity / epsilon``.

    Args:
        value: True value
        sensitivity: Largest change a single organization can cause
        epsilon: Privacy budget; smaller is more private (typically 0.5-2.0)
        rng: Random source, mainly for reproducible tests

    Raises:
        ValueError: If epsilon is not positive
    """
    if epsilon <= 0:
        raise ValueError("epsilon must be greater than 0")
    return value + (sensitivity / epsilon) * laplace_random(rng)


def hash_organization_id(organization_id: str, salt: Optional[str] = None) -> str:
    """Salted SHA-256 hex digest (64 chars) standing in for the organization id."""
    if salt is None:
        salt = get_settings().benchmark_salt
    return hashlib.sha256(f"{organization_id}{salt}".encode("utf-8")).hexdigest()


def validate_sample_size(count: int, minimum: Optional[int] = None) -> bool:
    if minimum is None:
        minimum = get_settings().benchmark_min_sample_size
    return count >= minimum
