"""
Monthly under-performance penalty.

Each full `increment` points of shortfall costs `size` hearts:

    owed 100, earned 80, increment 10, size 0.5  -> 1.0
    owed 100, earned 91                          -> 0.0
"""
import math


def owed_points(points_per_resident: float, active_percentage: float) -> float:
    return points_per_resident * active_percentage


def penalty_for_shortfall(owed: float, earned: float, increment: float, size: float) -> float:
    # Rounded so float noise in owed/earned cannot drop a whole step
    shortfall = round(owed - earned, 6)
    if shortfall <= 0:
        return 0.0
    return math.floor(shortfall / increment) * size
