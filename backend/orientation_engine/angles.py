"""Angle helpers shared by the transform, house locator and triggers."""
from __future__ import annotations


def normalize(angle: float) -> float:
    """Reduce ``angle`` into ``[0, 360)``.

    Python's modulo already returns a non-negative result for negative input;
    the extra check catches ``-1e-14 % 360 == 360.0`` from float rounding.
    """
    result = angle % 360.0
    if result >= 360.0:
        return 0.0
    return result


def angular_distance(a: float, b: float) -> float:
    """Shortest separation between two longitudes, in ``[0, 180]``."""
    diff = abs(normalize(a) - normalize(b))
    return min(diff, 360.0 - diff)


def signed_delta(from_angle: float, to_angle: float) -> float:
    """Shortest signed arc from ``from_angle`` to ``to_angle``, in ``(-180, 180]``."""
    delta = normalize(to_angle - from_angle)
    if delta > 180.0:
        delta -= 360.0
    return delta


def opposite(angle: float) -> float:
    return normalize(angle + 180.0)
