from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union


ElementId = Union[int, str]


class ElementKind(str, Enum):
    """Kinds of chart element a frame can anchor to or a lock can select."""
    OBJECT = "object"
    HOUSE = "house"
    SIGN = "sign"
    ANGLE = "angle"


class AngleType(str, Enum):
    """Chart angles; plain strings like ``"ASC"`` compare equal to members."""
    ASC = "ASC"
    MC = "MC"
    DESC = "DESC"
    IC = "IC"


class LockFrame(str, Enum):
    """Reference frame an element is held fixed against."""
    WORLD = "world"
    SCREEN = "screen"
    HOUSES = "houses"
    SIGNS = "signs"


class FrameEncoding(Enum):
    LEGACY = "legacy"  # screen_angle only
    ZERO_POINT = "zero_point"  # world_zero -> screen_zero


class Sign(Enum):
    """Zodiac signs numbered from Aries = 0."""
    ARIES = 0
    TAURUS = 1
    GEMINI = 2
    CANCER = 3
    LEO = 4
    VIRGO = 5
    LIBRA = 6
    SCORPIO = 7
    SAGITTARIUS = 8
    CAPRICORN = 9
    AQUARIUS = 10
    PISCES = 11

    @property
    def number(self) -> int:
        return self.value

    @property
    def start_degree(self) -> float:
        return self.value * 30.0


# Legacy direction encoding used by older chart configurations
LEGACY_DIRECTIONS: Dict[str, int] = {"cw": 1, "ccw": -1}


def normalize_direction(value: Union[int, float, str]) -> int:
    """Translate ``+1``/``-1`` or ``"cw"``/``"ccw"`` into ``+1``/``-1``."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in LEGACY_DIRECTIONS:
            return LEGACY_DIRECTIONS[key]
        raise ValueError(f"Unknown direction: {value!r}")
    if value in (1, -1):
        return int(value)
    raise ValueError(f"Direction must be +1 or -1, got {value!r}")


@dataclass(frozen=True)
class Anchor:
    kind: ElementKind
    id: ElementId


@dataclass(frozen=True)
class ViewFrame:
    """How world longitudes map to screen angles.

    A frame either pins its ``anchor`` at ``screen_angle`` (legacy encoding)
    or carries an explicit ``world_zero`` -> ``screen_zero`` mapping. The
    encoding is chosen by whether both zero-point fields are set.
    ``direction`` is always stored as ``+1`` or ``-1``.
    """
    screen_angle: float = 180.0
    direction: int = 1
    anchor: Optional[Anchor] = None
    world_zero: Optional[float] = None
    screen_zero: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "direction", normalize_direction(self.direction))

    @property
    def encoding(self) -> FrameEncoding:
        if self.world_zero is not None and self.screen_zero is not None:
            return FrameEncoding.ZERO_POINT
        return FrameEncoding.LEGACY

    @property
    def effective_zero(self) -> float:
        """The screen value that rotations act on."""
        if self.encoding is FrameEncoding.ZERO_POINT:
            return self.screen_zero
        return self.screen_angle

    @property
    def legacy_direction(self) -> str:
        return "cw" if self.direction == 1 else "ccw"

    def mirrored(self) -> "ViewFrame":
        return replace(self, direction=-self.direction)


@dataclass(frozen=True)
class LockRule:
    """Binds one element (kind + id) to a reference frame."""
    kind: ElementKind
    id: ElementId
    frame: LockFrame


def _angle_key(key: Any) -> str:
    return key.value if isinstance(key, Enum) else str(key)


def _frozen_mapping(values: Optional[Mapping[Any, float]]) -> Mapping[Any, float]:
    return MappingProxyType({k: float(v) for k, v in (values or {}).items()})


@dataclass(frozen=True)
class ChartSnapshot:
    """Read-only longitudes for a single evaluation."""
    objects: Mapping[ElementId, float] = field(default_factory=dict)
    house_cusps: Mapping[int, float] = field(default_factory=dict)
    angles: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "objects", _frozen_mapping(self.objects))
        object.__setattr__(
            self, "house_cusps",
            MappingProxyType({int(k): float(v) for k, v in (self.house_cusps or {}).items()}),
        )
        object.__setattr__(
            self, "angles",
            MappingProxyType({_angle_key(k): float(v) for k, v in (self.angles or {}).items()}),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChartSnapshot":
        """Build a snapshot from ``objects``/``houseCusps``/``angles`` keys."""
        return cls(
            objects=data.get("objects") or data.get("planetLongitudes") or {},
            house_cusps=data.get("houseCusps") or data.get("house_cusps") or {},
            angles=data.get("angles") or data.get("angleLongitudes") or {},
        )

    @classmethod
    def from_render_data(cls, render_data: Mapping[str, Any]) -> "ChartSnapshot":
        """Convert a renderer payload (``planets``/``houses`` lists).

        Houses arrive with a 0-11 index and become houses 1-12. The ASC and MC
        are read from the 1st and 10th cusps; DESC and IC are their opposites.
        """
        objects: Dict[ElementId, float] = {}
        for planet in render_data.get("planets") or []:
            objects[planet["planet"]] = planet["degree"]

        cusps: Dict[int, float] = {}
        for house in render_data.get("houses") or []:
            cusps[int(house["house"]) + 1] = house["cuspDegree"]

        angles: Dict[AngleType, float] = {}
        if 1 in cusps:
            angles[AngleType.ASC] = cusps[1]
            angles[AngleType.DESC] = (cusps[1] + 180.0) % 360.0
        if 10 in cusps:
            angles[AngleType.MC] = cusps[10]
            angles[AngleType.IC] = (cusps[10] + 180.0) % 360.0

        return cls(objects=objects, house_cusps=cusps, angles=angles)


@dataclass(frozen=True)
class OrientationRuntimeState:
    """State carried between evaluations of one chart session.

    ``applied_rule_ids`` records rules that fired; ``previous_house_positions``
    maps ``"{subject}:{target_house}"`` to the house the subject was last seen
    in. Every helper returns a new state.
    """
    applied_rule_ids: FrozenSet[str] = frozenset()
    previous_house_positions: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "applied_rule_ids", frozenset(self.applied_rule_ids))
        object.__setattr__(
            self, "previous_house_positions",
            MappingProxyType(dict(self.previous_house_positions)),
        )

    @classmethod
    def empty(cls) -> "OrientationRuntimeState":
        return cls()

    def clone(self) -> "OrientationRuntimeState":
        return OrientationRuntimeState(
            applied_rule_ids=set(self.applied_rule_ids),
            previous_house_positions=dict(self.previous_house_positions),
        )

    def with_applied(self, rule_id: str) -> "OrientationRuntimeState":
        return OrientationRuntimeState(
            applied_rule_ids=self.applied_rule_ids | {rule_id},
            previous_house_positions=self.previous_house_positions,
        )

    def with_positions(self, positions: Mapping[str, int]) -> "OrientationRuntimeState":
        merged = dict(self.previous_house_positions)
        merged.update(positions)
        return OrientationRuntimeState(
            applied_rule_ids=self.applied_rule_ids,
            previous_house_positions=merged,
        )

    def without_rules(self, rule_ids: Iterable[str]) -> "OrientationRuntimeState":
        """Forget that ``rule_ids`` fired so at-most-once rules can fire again."""
        return OrientationRuntimeState(
            applied_rule_ids=self.applied_rule_ids - set(rule_ids),
            previous_house_positions=self.previous_house_positions,
        )
