from __future__ import annotations

import pytest

from core.scoring.rounding import round_half_up


@pytest.mark.parametrize(
    ("value", "places", "expected"),
    [
        (95.125, 2, 95.13),
        (90.625, 2, 90.63),
        (0.03125, 4, 0.0313),
        (1.005, 2, 1.0),
        (66.666666, 2, 66.67),
        (100.0, 2, 100.0),
        (0.0, 4, 0.0),
    ],
)
def test_round_half_up(value: float, places: int, expected: float) -> None:
    assert round_half_up(value, places) == expected
