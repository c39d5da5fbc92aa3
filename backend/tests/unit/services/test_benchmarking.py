"""
Unit tests for benchmark anonymization helpers.
"""

import hashlib
import math
import random

import pytest

from complygrid.services.benchmarking import (
    add_laplace_noise,
    hash_organization_id,
    laplace_random,
    validate_sample_size,
)


class FixedUniform:
    """Random source that always returns the same uniform sample."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.mark.unit
class TestLaplaceNoise:
    def test_median_sample_adds_nothing(self) -> None:
        assert laplace_random(FixedUniform(0.5)) == 0

    def test_inverse_transform_is_symmetric(self) -> None:
        assert laplace_random(FixedUniform(0.25)) == pytest.approx(math.log(2))
        assert laplace_random(FixedUniform(0.75)) == pytest.approx(-math.log(2))

    def test_noise_scales_with_sensitivity_over_epsilon(self) -> None:
        noisy = add_laplace_noise(70, sensitivity=1, epsilon=0.5, rng=FixedUniform(0.25))
        assert noisy == pytest.approx(70 + 2 * math.log(2))

    def test_seeded_noise_is_reproducible(self) -> None:
        first = add_laplace_noise(70, 1, 1, rng=random.Random(42))
        second = add_laplace_noise(70, 1, 1, rng=random.Random(42))
        assert first == second

    def test_epsilon_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="epsilon"):
            add_laplace_noise(70, 1, 0)


@pytest.mark.unit
class TestOrganizationHash:
    def test_salted_sha256(self) -> None:
        digest = hash_organization_id("org-1", salt="pepper")

        assert digest == hashlib.sha256(b"org-1pepper").hexdigest()
        assert len(digest) == 64

    def test_default_salt_from_settings(self) -> None:
        assert hash_organization_id("org-1") == hashlib.sha256(b"org-1benchmark-salt-2026").hexdigest()
        assert hash_organization_id("org-1") != hash_organization_id("org-2")


@pytest.mark.unit
class TestSampleSize:
    def test_explicit_minimum(self) -> None:
        assert validate_sample_size(5, 5) is True
        assert validate_sample_size(4, 5) is False

    def test_default_minimum_is_ten(self) -> None:
        assert validate_sample_size(10) is True
        assert validate_sample_size(9) is False
