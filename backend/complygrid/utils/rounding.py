"""
Numeric rounding helpers

Python's round() uses banker's rounding (round(0.5) == 0). Scores shown to
users round halves upward so that 62.5% reads as 63%, which is what the
dashboards and exports have always displayed.
"""

import math
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number, digits: int = 0) -> Union[int, float]:
    """
    Round a number with halves moving towards positive infinity.

    Args:
        value: Number to round
        digits: Decimal places to keep (0 returns an int)

    Returns:
        Rounded value; ``int`` when ``digits`` is 0, otherwise ``float``

    Example:
        >>> round_half_up(62.5)
        63
        >>> round_half_up(-0.125, 2)
        -0.12
    """
    if math.isinf(value) or math.isnan(value):
        return value

    if digits == 0:
        return int(math.floor(value + 0.5))

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
