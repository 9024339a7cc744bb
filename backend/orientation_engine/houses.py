"""House placement for a longitude given a set of cusps."""
from __future__ import annotations

from typing import List, Mapping, Tuple, Union

from .angles import normalize
from .resolver import NOT_FOUND, _NotFound


def sorted_cusps(cusps: Mapping[int, float]) -> List[Tuple[int, float]]:
    """Return ``(house, cusp)`` pairs with normalised cusps in ascending order."""
    return sorted(
        ((int(house), normalize(cusp)) for house, cusp in cusps.items()),
        key=lambda pair: pair[1],
    )


def house_of(longitude: float, cusps: Mapping[int, float]) -> Union[int, _NotFound]:
    """Return the house (1-12) containing ``longitude``.

    Each house runs from its own cusp up to, but excluding, the next cusp in
    sorted order; the house with the highest cusp wraps through 0 degrees.
    Only an empty cusp set yields ``NOT_FOUND``. Cusps are not validated, so
    duplicated or overlapping cusps fall back to the lowest-cusp house.
    """
    if not cusps:
        return NOT_FOUND

    lon = normalize(longitude)
    ordered = sorted_cusps(cusps)
    count = len(ordered)

    for i, (house, cusp) in enumerate(ordered):
        next_cusp = ordered[(i + 1) % count][1]
        if next_cusp <= cusp:
            # Wrap house (or the only house)
            if lon >= cusp or lon < next_cusp:
                return house
        elif cusp <= lon < next_cusp:
            return house

    return ordered[0][0]
