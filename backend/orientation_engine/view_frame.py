"""Convert world longitudes into screen angles for a ViewFrame."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from chart_models import (
    ChartSnapshot,
    ElementId,
    ElementKind,
    FrameEncoding,
    LockFrame,
    LockRule,
    ViewFrame,
)
from orientation_config import setting

from .angles import normalize
from .locks import lock_frame_for
from .resolver import NOT_FOUND, LongitudeResolver, _NotFound


@dataclass(frozen=True)
class _Mapping:
    """Single internal form of both frame encodings: ``world_ref`` shows at ``screen_ref``."""

    world_ref: float
    screen_ref: float
    sign: int

    def apply(self, longitude: float) -> float:
        return normalize(self.screen_ref + self.sign * (longitude - self.world_ref))


def _mapping_for(frame: ViewFrame, anchor_longitude: float) -> _Mapping:
    if frame.encoding is FrameEncoding.ZERO_POINT:
        return _Mapping(frame.world_zero, frame.screen_zero, frame.direction)
    return _Mapping(anchor_longitude, frame.screen_angle, frame.direction)


def fallback_screen_angle(world_longitude: float, frame: ViewFrame) -> float:
    """Rotation-only placement used when a frame's anchor cannot be resolved."""
    pivot = float(setting("fallback.pivot_deg", 180.0))
    offset = frame.screen_angle - pivot
    return normalize(pivot - world_longitude + offset)


def resolve_screen_angle(
    world_longitude: float,
    frame: ViewFrame,
    anchor_longitude: Union[float, _NotFound],
) -> float:
    """Return the screen angle for ``world_longitude`` under ``frame``.

    With a resolved anchor the legacy encoding places the anchor exactly at
    ``frame.screen_angle``; the zero-point encoding places ``world_zero`` at
    ``screen_zero``. Progression follows ``frame.direction`` in both cases.
    An unresolved anchor never raises and falls back to
    :func:`fallback_screen_angle`.
    """
    if anchor_longitude is NOT_FOUND or anchor_longitude is None:
        return fallback_screen_angle(world_longitude, frame)
    return _mapping_for(frame, float(anchor_longitude)).apply(world_longitude)


def convert_to_screen_angle(
    world_longitude: float, frame: ViewFrame, snapshot: ChartSnapshot
) -> float:
    """Resolve the frame's anchor against ``snapshot`` and transform."""
    anchor_lon = LongitudeResolver(snapshot).anchor_longitude(frame.anchor)
    return resolve_screen_angle(world_longitude, frame, anchor_lon)


def effective_longitude(
    world_longitude: float,
    kind: ElementKind,
    element_id: ElementId,
    frame: ViewFrame,
    snapshot: ChartSnapshot,
    locks: Iterable[LockRule],
) -> float:
    """World longitude to feed into the transform for a possibly locked element.

    Locks change which frame an element is placed with (see
    :func:`locked_screen_angle`), not its longitude, so every case returns
    the world longitude unchanged.
    """
    return world_longitude


def locked_screen_angle(
    world_longitude: float,
    kind: ElementKind,
    element_id: ElementId,
    frame: ViewFrame,
    reference_frame: ViewFrame,
    snapshot: ChartSnapshot,
    locks: Iterable[LockRule],
) -> float:
    """Screen angle for an element, honouring a ``screen`` lock.

    An element locked to the screen keeps the angle it had under
    ``reference_frame`` (normally the program's base frame) while the rest
    of the chart moves with ``frame``.
    """
    lock: Optional[LockFrame] = lock_frame_for(kind, element_id, locks)
    lon = effective_longitude(world_longitude, kind, element_id, frame, snapshot, locks)
    if lock is LockFrame.SCREEN:
        return convert_to_screen_angle(lon, reference_frame, snapshot)
    return convert_to_screen_angle(lon, frame, snapshot)
