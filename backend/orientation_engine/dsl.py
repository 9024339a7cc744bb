"""Domain-specific language primitives for orientation programs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from chart_models import AngleType, ElementId, LockRule, ViewFrame


# ---------------------------------------------------------------------------
# Variant tags
# ---------------------------------------------------------------------------


class TriggerKind(str, Enum):
    ASC_LEAVES_HOUSE = "ascLeavesHouse"
    PLANET_CROSSES_HOUSE = "planetCrossesHouse"
    PLANET_CROSSES_ANGLE = "planetCrossesAngle"
    CUSTOM = "custom"


class EffectKind(str, Enum):
    ROTATE = "rotate"
    SET_VIEW_FRAME = "setViewFrame"
    MIRROR = "mirror"


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AscLeavesHouse:
    """The Ascendant moves out of ``house`` (at most once per rule)."""

    house: int
    kind: ClassVar[TriggerKind] = TriggerKind.ASC_LEAVES_HOUSE


@dataclass(frozen=True)
class PlanetCrossesHouse:
    """``planet`` enters ``house`` (edge-triggered)."""

    planet: ElementId
    house: int
    kind: ClassVar[TriggerKind] = TriggerKind.PLANET_CROSSES_HOUSE


@dataclass(frozen=True)
class PlanetCrossesAngle:
    """``planet`` is within orb of ``angle`` (level-triggered)."""

    planet: ElementId
    angle: AngleType
    kind: ClassVar[TriggerKind] = TriggerKind.PLANET_CROSSES_ANGLE


@dataclass(frozen=True)
class CustomTrigger:
    """Never fires on its own; the caller decides when to apply the rule."""

    name: Optional[str] = None
    kind: ClassVar[TriggerKind] = TriggerKind.CUSTOM


Trigger = Union[AscLeavesHouse, PlanetCrossesHouse, PlanetCrossesAngle, CustomTrigger]


def asc_leaves_house(house: int) -> AscLeavesHouse:
    return AscLeavesHouse(int(house))


def planet_crosses_house(planet: ElementId, house: int) -> PlanetCrossesHouse:
    return PlanetCrossesHouse(planet, int(house))


def planet_crosses_angle(planet: ElementId, angle: Union[AngleType, str]) -> PlanetCrossesAngle:
    return PlanetCrossesAngle(planet, AngleType(angle))


def custom(name: Optional[str] = None) -> CustomTrigger:
    return CustomTrigger(name)


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rotate:
    """Shift the frame's zero point by ``delta`` degrees."""

    delta: float
    kind: ClassVar[EffectKind] = EffectKind.ROTATE


@dataclass(frozen=True)
class SetViewFrame:
    """Replace the frame wholesale."""

    frame: ViewFrame
    kind: ClassVar[EffectKind] = EffectKind.SET_VIEW_FRAME


@dataclass(frozen=True)
class Mirror:
    """Flip the frame's direction."""

    kind: ClassVar[EffectKind] = EffectKind.MIRROR


Effect = Union[Rotate, SetViewFrame, Mirror]


def rotate(delta: float) -> Rotate:
    return Rotate(float(delta))


def set_view_frame(frame: ViewFrame) -> SetViewFrame:
    return SetViewFrame(frame)


def mirror() -> Mirror:
    return Mirror()


# ---------------------------------------------------------------------------
# Rules and programs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrientationRule:
    """A trigger/effect pair; ``id`` must be unique within a program."""

    id: str
    trigger: Trigger
    effect: Effect
    locks: Tuple[LockRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "locks", tuple(self.locks))


@dataclass(frozen=True)
class OrientationProgram:
    """Base frame, static locks and ordered rules."""

    base_frame: ViewFrame
    locks: Tuple[LockRule, ...] = ()
    rules: Tuple[OrientationRule, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "locks", tuple(self.locks))
        object.__setattr__(self, "rules", tuple(self.rules))


def rule(rule_id: str, trigger: Trigger, effect: Effect, locks=()) -> OrientationRule:
    return OrientationRule(rule_id, trigger, effect, tuple(locks))


def program(base_frame: ViewFrame, locks=(), rules=()) -> OrientationProgram:
    return OrientationProgram(base_frame, tuple(locks), tuple(rules))


__all__ = [
    "TriggerKind",
    "EffectKind",
    "AscLeavesHouse",
    "PlanetCrossesHouse",
    "PlanetCrossesAngle",
    "CustomTrigger",
    "Trigger",
    "Rotate",
    "SetViewFrame",
    "Mirror",
    "Effect",
    "OrientationRule",
    "OrientationProgram",
    "asc_leaves_house",
    "planet_crosses_house",
    "planet_crosses_angle",
    "custom",
    "rotate",
    "set_view_frame",
    "mirror",
    "rule",
    "program",
]
