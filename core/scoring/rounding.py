"""Decimal rounding for stored scores and rates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int) -> float:
    """Round ``value`` to ``places`` decimals, sending exact ties away from zero.

    The float's exact binary value is rounded, so 95.125 becomes 95.13 while
    1.005 (stored as 1.00499...) stays 1.0.

    >>> round_half_up(95.125, 2)
    95.13
    >>> round_half_up(1 / 32, 4)
    0.0313
    """

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
