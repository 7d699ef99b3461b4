"""
Tests for the shortfall penalty
"""
import pytest

from chorewheel.domain.penalty import owed_points, penalty_for_shortfall


@pytest.mark.parametrize("earned, expected", [
    (100, 0.0),
    (110, 0.0),
    (91, 0.0),
    (80, 1.0),
    (69, 1.5),
    (50, 2.5),
    (0, 5.0),
])
def test_penalty_steps(earned, expected):
    assert penalty_for_shortfall(100, earned, increment=10, size=0.5) == expected


def test_half_month_resident():
    owed = owed_points(100, 0.5)

    assert owed == 50
    assert penalty_for_shortfall(owed, 40, increment=10, size=0.5) == 0.5


def test_float_noise_does_not_drop_a_step():
    owed = owed_points(100, 0.7)  # 70.00000000000001 or 69.99999999999999
    assert penalty_for_shortfall(owed, 50, increment=10, size=0.5) == 1.0
