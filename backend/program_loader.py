"""Load orientation programs from dicts and YAML preset packs."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from chart_models import (
    Anchor,
    ElementKind,
    FrameEncoding,
    LockFrame,
    LockRule,
    OrientationRuntimeState,
    ViewFrame,
)
from orientation_engine.dsl import (
    AscLeavesHouse,
    CustomTrigger,
    Effect,
    EffectKind,
    Mirror,
    OrientationProgram,
    OrientationRule,
    PlanetCrossesAngle,
    PlanetCrossesHouse,
    Rotate,
    SetViewFrame,
    Trigger,
    TriggerKind,
    asc_leaves_house,
    custom,
    planet_crosses_angle,
    planet_crosses_house,
)


# Default preset pack selection
PRESET_PACK = "default_v1"


# ---------------------------------------------------------------------------
# Frames and locks
# ---------------------------------------------------------------------------


def anchor_from_dict(data: Optional[Mapping[str, Any]]) -> Optional[Anchor]:
    if not data:
        return None
    return Anchor(ElementKind(data["type"]), data["id"])


def frame_from_dict(data: Mapping[str, Any]) -> ViewFrame:
    """Build a frame from either the legacy or the zero-point encoding.

    Accepts the renderer's camelCase keys (``screenAngleDeg``, ``worldZero``,
    ``screenZero``) as well as snake_case ones.
    """
    screen_angle = data.get("screenAngleDeg", data.get("screen_angle", 180.0))
    world_zero = data.get("worldZero", data.get("world_zero"))
    screen_zero = data.get("screenZero", data.get("screen_zero"))
    return ViewFrame(
        screen_angle=float(screen_angle),
        direction=data.get("direction", 1),
        anchor=anchor_from_dict(data.get("anchor")),
        world_zero=None if world_zero is None else float(world_zero),
        screen_zero=None if screen_zero is None else float(screen_zero),
    )


def frame_to_dict(frame: ViewFrame) -> Dict[str, Any]:
    result: Dict[str, Any] = {"screenAngleDeg": frame.screen_angle}
    if frame.anchor is not None:
        result["anchor"] = {"type": frame.anchor.kind.value, "id": frame.anchor.id}
    if frame.encoding is FrameEncoding.ZERO_POINT:
        result["worldZero"] = frame.world_zero
        result["screenZero"] = frame.screen_zero
        result["direction"] = frame.direction
    else:
        result["direction"] = frame.legacy_direction
    return result


def lock_from_dict(data: Mapping[str, Any]) -> LockRule:
    target = data.get("target", data)
    return LockRule(ElementKind(target["type"]), target["id"], LockFrame(data["frame"]))


def lock_to_dict(lock: LockRule) -> Dict[str, Any]:
    return {"target": {"type": lock.kind.value, "id": lock.id}, "frame": lock.frame.value}


# ---------------------------------------------------------------------------
# Triggers, effects and rules
# ---------------------------------------------------------------------------


def trigger_from_dict(data: Mapping[str, Any]) -> Trigger:
    try:
        kind = TriggerKind(data["type"])
    except (KeyError, ValueError):
        raise ValueError(f"Unknown trigger type: {data.get('type')!r}") from None
    if kind is TriggerKind.ASC_LEAVES_HOUSE:
        return asc_leaves_house(data["house"])
    if kind is TriggerKind.PLANET_CROSSES_HOUSE:
        return planet_crosses_house(data["planet"], data["house"])
    if kind is TriggerKind.PLANET_CROSSES_ANGLE:
        return planet_crosses_angle(data["planet"], data["angle"])
    return custom(data.get("name"))


def trigger_to_dict(trigger: Trigger) -> Dict[str, Any]:
    result: Dict[str, Any] = {"type": trigger.kind.value}
    if isinstance(trigger, AscLeavesHouse):
        result["house"] = trigger.house
    elif isinstance(trigger, PlanetCrossesHouse):
        result.update(planet=trigger.planet, house=trigger.house)
    elif isinstance(trigger, PlanetCrossesAngle):
        result.update(planet=trigger.planet, angle=trigger.angle.value)
    elif isinstance(trigger, CustomTrigger) and trigger.name is not None:
        result["name"] = trigger.name
    return result


def effect_from_dict(data: Mapping[str, Any]) -> Effect:
    try:
        kind = EffectKind(data["type"])
    except (KeyError, ValueError):
        raise ValueError(f"Unknown effect type: {data.get('type')!r}") from None
    if kind is EffectKind.ROTATE:
        return Rotate(float(data["delta"]))
    if kind is EffectKind.SET_VIEW_FRAME:
        return SetViewFrame(frame_from_dict(data["viewFrame"]))
    return Mirror()


def effect_to_dict(effect: Effect) -> Dict[str, Any]:
    result: Dict[str, Any] = {"type": effect.kind.value}
    if isinstance(effect, Rotate):
        result["delta"] = effect.delta
    elif isinstance(effect, SetViewFrame):
        result["viewFrame"] = frame_to_dict(effect.frame)
    return result


def rule_from_dict(data: Mapping[str, Any]) -> OrientationRule:
    rule_id = str(data.get("id") or "")
    if not rule_id:
        raise ValueError("Orientation rules require a non-empty id")
    return OrientationRule(
        id=rule_id,
        trigger=trigger_from_dict(data["trigger"]),
        effect=effect_from_dict(data["effect"]),
        locks=tuple(lock_from_dict(lock) for lock in data.get("locks") or []),
    )


def rule_to_dict(rule: OrientationRule) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "id": rule.id,
        "trigger": trigger_to_dict(rule.trigger),
        "effect": effect_to_dict(rule.effect),
    }
    if rule.locks:
        result["locks"] = [lock_to_dict(lock) for lock in rule.locks]
    return result


def program_from_dict(data: Mapping[str, Any]) -> OrientationProgram:
    base = data.get("baseFrame", data.get("base_frame"))
    if base is None:
        raise ValueError("Orientation program requires a baseFrame")
    return OrientationProgram(
        base_frame=frame_from_dict(base),
        locks=tuple(lock_from_dict(lock) for lock in data.get("locks") or []),
        rules=tuple(rule_from_dict(rule) for rule in data.get("rules") or []),
    )


def program_to_dict(program: OrientationProgram) -> Dict[str, Any]:
    return {
        "baseFrame": frame_to_dict(program.base_frame),
        "locks": [lock_to_dict(lock) for lock in program.locks],
        "rules": [rule_to_dict(rule) for rule in program.rules],
    }


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------


def state_from_dict(data: Optional[Mapping[str, Any]]) -> OrientationRuntimeState:
    if not data:
        return OrientationRuntimeState.empty()
    return OrientationRuntimeState(
        applied_rule_ids=frozenset(str(r) for r in data.get("appliedRuleIds") or []),
        previous_house_positions={
            str(k): int(v) for k, v in (data.get("previousHousePositions") or {}).items()
        },
    )


def state_to_dict(state: OrientationRuntimeState) -> Dict[str, Any]:
    return {
        "appliedRuleIds": sorted(state.applied_rule_ids),
        "previousHousePositions": dict(sorted(state.previous_house_positions.items())),
    }


# ---------------------------------------------------------------------------
# Preset packs
# ---------------------------------------------------------------------------


def load_presets(pack: str = PRESET_PACK) -> Dict[str, OrientationProgram]:
    """Load named orientation programs from a YAML preset pack."""
    path = Path(__file__).with_name(f"presets_{pack}.yaml")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return {
        str(entry["name"]): program_from_dict(entry["program"])
        for entry in data.get("presets", [])
    }


# Loaded preset set used by the evaluation pipeline
PRESETS = load_presets()


def preset_names() -> List[str]:
    """Names of the loaded presets, sorted."""
    return sorted(PRESETS)


def get_preset(name: str) -> OrientationProgram:
    """Return the named preset program."""
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown orientation preset: {name}") from None
