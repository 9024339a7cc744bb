"""Orientation engine for circular chart rendering."""

from .angles import angular_distance, normalize
from .engine import OrientationResult, evaluate_program, track_house_positions
from .houses import house_of
from .locks import applies_to, lock_frame_for, should_lock
from .resolver import NOT_FOUND, LongitudeResolver
from .view_frame import convert_to_screen_angle, resolve_screen_angle

__all__ = [
    "NOT_FOUND",
    "LongitudeResolver",
    "OrientationResult",
    "angular_distance",
    "applies_to",
    "convert_to_screen_angle",
    "evaluate_program",
    "house_of",
    "lock_frame_for",
    "normalize",
    "resolve_screen_angle",
    "should_lock",
    "track_house_positions",
]
