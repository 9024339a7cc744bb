"""Longitude lookups against a chart snapshot."""
from __future__ import annotations

from typing import Optional, Union

from chart_models import Anchor, AngleType, ChartSnapshot, ElementId, ElementKind, Sign


class _NotFound:
    """Sentinel returned when a snapshot lacks the requested element."""

    _instance: Optional["_NotFound"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self):
        return (_NotFound, ())


NOT_FOUND = _NotFound()

Longitude = Union[float, _NotFound]


class LongitudeResolver:
    """Answers "where is element X" for one snapshot.

    Every lookup returns ``NOT_FOUND`` instead of raising when the element
    is absent. Sign starts are closed-form and always resolve.
    """

    def __init__(self, snapshot: ChartSnapshot):
        self.snapshot = snapshot

    def object_longitude(self, object_id: ElementId) -> Longitude:
        objects = self.snapshot.objects
        if object_id in objects:
            return objects[object_id]
        # JSON payloads turn numeric ids into strings and vice versa
        alt = str(object_id) if not isinstance(object_id, str) else _as_int(object_id)
        if alt is not None and alt in objects:
            return objects[alt]
        return NOT_FOUND

    def house_cusp(self, house: int) -> Longitude:
        try:
            return self.snapshot.house_cusps.get(int(house), NOT_FOUND)
        except (TypeError, ValueError):
            return NOT_FOUND

    def sign_start(self, sign: Union[int, Sign]) -> float:
        if not isinstance(sign, Sign):
            sign = Sign(int(sign) % 12)
        return sign.start_degree

    def angle_longitude(self, angle: Union[AngleType, str]) -> Longitude:
        key = angle.value if isinstance(angle, AngleType) else str(angle)
        return self.snapshot.angles.get(key, NOT_FOUND)

    def anchor_longitude(self, anchor: Optional[Anchor]) -> Longitude:
        if anchor is None:
            return NOT_FOUND
        kind = ElementKind(anchor.kind)
        if kind is ElementKind.OBJECT:
            return self.object_longitude(anchor.id)
        if kind is ElementKind.HOUSE:
            return self.house_cusp(anchor.id)
        if kind is ElementKind.SIGN:
            try:
                return self.sign_start(anchor.id)
            except (TypeError, ValueError):
                return NOT_FOUND
        return self.angle_longitude(anchor.id)


def _as_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None
