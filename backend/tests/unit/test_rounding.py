"""
Unit tests for half-up rounding.
"""

import math

import pytest

from complygrid.utils.rounding import round_half_up


@pytest.mark.unit
class TestRoundHalfUp:
    """Halves round towards positive infinity."""

    def test_half_rounds_up(self) -> None:
        assert round_half_up(62.5) == 63
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3

    def test_below_half_rounds_down(self) -> None:
        assert round_half_up(62.49) == 62

    def test_integer_result_when_no_digits(self) -> None:
        assert isinstance(round_half_up(10.0), int)

    def test_negative_half_moves_up(self) -> None:
        assert round_half_up(-0.5) == 0
        assert round_half_up(-1.5) == -1

    def test_decimal_places(self) -> None:
        assert round_half_up(1.234, 2) == 1.23
        assert round_half_up(-0.125, 2) == -0.12
        assert round_half_up(3.25, 1) == 3.3

    def test_infinity_passes_through(self) -> None:
        assert math.isinf(round_half_up(math.inf))
