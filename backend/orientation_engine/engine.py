"""Rule-driven orientation state machine.

``evaluate_program`` walks a program's rules against a chart snapshot and the
state left by the previous evaluation, and returns the resulting frame, the
combined locks and a new state. It keeps nothing between calls, so separate
chart sessions can evaluate concurrently as long as each owns its state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from chart_models import (
    AngleType,
    ChartSnapshot,
    FrameEncoding,
    LockRule,
    OrientationRuntimeState,
    ViewFrame,
)
from orientation_config import setting

from .angles import angular_distance, normalize
from .dsl import (
    AscLeavesHouse,
    CustomTrigger,
    Effect,
    Mirror,
    OrientationProgram,
    OrientationRule,
    PlanetCrossesAngle,
    PlanetCrossesHouse,
    Rotate,
    SetViewFrame,
)
from .houses import house_of
from .resolver import NOT_FOUND, LongitudeResolver
from .utils import house_key

logger = logging.getLogger(__name__)


class OrientationResult(NamedTuple):
    frame: ViewFrame
    locks: Tuple[LockRule, ...]
    state: OrientationRuntimeState


# ---------------------------------------------------------------------------
# House tracking
# ---------------------------------------------------------------------------


def current_house_positions(snapshot: ChartSnapshot) -> Dict[str, int]:
    """Tracking entries for every object and the ASC in ``snapshot``.

    Each subject gets one ``"{subject}:{h}"`` entry per house number ``h``
    present in the cusp set, all holding the subject's current house.
    """
    cusps = snapshot.house_cusps
    if not cusps:
        return {}

    subjects: List[Tuple[object, float]] = list(snapshot.objects.items())
    asc_lon = LongitudeResolver(snapshot).angle_longitude(AngleType.ASC)
    if asc_lon is not NOT_FOUND:
        subjects.append((AngleType.ASC, asc_lon))

    positions: Dict[str, int] = {}
    for subject, lon in subjects:
        house = house_of(lon, cusps)
        if house is NOT_FOUND:
            continue
        for target in cusps:
            positions[house_key(subject, target)] = house
    return positions


def track_house_positions(
    state: OrientationRuntimeState, snapshot: ChartSnapshot
) -> OrientationRuntimeState:
    """Return a copy of ``state`` whose house tracking reflects ``snapshot``.

    The engine calls this whenever a rule fires. Callers that need to detect
    transitions on ticks where nothing fires can call it themselves.
    """
    return state.with_positions(current_house_positions(snapshot))


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


def rule_triggered(
    rule: OrientationRule, snapshot: ChartSnapshot, state: OrientationRuntimeState
) -> bool:
    """Evaluate ``rule.trigger`` against the snapshot and the previous state.

    Missing snapshot data means the trigger does not fire.
    """
    trigger = rule.trigger
    resolver = LongitudeResolver(snapshot)
    previous = state.previous_house_positions

    if isinstance(trigger, AscLeavesHouse):
        if rule.id in state.applied_rule_ids:
            return False
        asc_lon = resolver.angle_longitude(AngleType.ASC)
        if asc_lon is NOT_FOUND:
            return False
        current = house_of(asc_lon, snapshot.house_cusps)
        if current is NOT_FOUND:
            return False
        was = previous.get(house_key(AngleType.ASC, trigger.house))
        return was == trigger.house and current != trigger.house

    if isinstance(trigger, PlanetCrossesHouse):
        planet_lon = resolver.object_longitude(trigger.planet)
        if planet_lon is NOT_FOUND:
            return False
        current = house_of(planet_lon, snapshot.house_cusps)
        if current is NOT_FOUND:
            return False
        was = previous.get(house_key(trigger.planet, trigger.house))
        return current == trigger.house and was != trigger.house

    if isinstance(trigger, PlanetCrossesAngle):
        planet_lon = resolver.object_longitude(trigger.planet)
        angle_lon = resolver.angle_longitude(trigger.angle)
        if planet_lon is NOT_FOUND or angle_lon is NOT_FOUND:
            return False
        orb = float(setting("orbs.angle_crossing", 1.0))
        return angular_distance(planet_lon, angle_lon) <= orb

    if isinstance(trigger, CustomTrigger):
        return False

    raise TypeError(f"Unsupported trigger: {trigger!r}")


def fired_rules(
    program: OrientationProgram,
    snapshot: ChartSnapshot,
    previous_state: Optional[OrientationRuntimeState] = None,
) -> Iterator[OrientationRule]:
    """Yield, in program order, the rules whose triggers fire."""
    prior = previous_state or OrientationRuntimeState.empty()
    for rule in program.rules:
        if rule_triggered(rule, snapshot, prior):
            yield rule


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


def apply_effect(effect: Effect, frame: ViewFrame) -> ViewFrame:
    """Return a new frame with ``effect`` applied; ``frame`` is left untouched."""
    if isinstance(effect, Rotate):
        if frame.encoding is FrameEncoding.ZERO_POINT:
            return replace(frame, screen_zero=normalize(frame.screen_zero + effect.delta))
        return replace(frame, screen_angle=normalize(frame.screen_angle + effect.delta))

    if isinstance(effect, SetViewFrame):
        return effect.frame

    if isinstance(effect, Mirror):
        return frame.mirrored()

    raise TypeError(f"Unsupported effect: {effect!r}")


def apply_rule(
    rule: OrientationRule,
    frame: ViewFrame,
    snapshot: ChartSnapshot,
    state: OrientationRuntimeState,
) -> Tuple[ViewFrame, Tuple[LockRule, ...], OrientationRuntimeState]:
    """Apply one rule unconditionally.

    Used by :func:`evaluate_program` for rules whose trigger fired, and by
    callers that orchestrate ``custom`` triggers themselves.
    """
    new_frame = apply_effect(rule.effect, frame)
    new_state = track_house_positions(state.with_applied(rule.id), snapshot)
    logger.debug(
        "Rule %s fired: %s via %s -> effective zero %.3f",
        rule.id,
        rule.trigger.kind.value,
        rule.effect.kind.value,
        new_frame.effective_zero,
    )
    return new_frame, rule.locks, new_state


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_program_traced(
    program: OrientationProgram,
    snapshot: ChartSnapshot,
    previous_state: Optional[OrientationRuntimeState] = None,
) -> Tuple[OrientationResult, Tuple[str, ...]]:
    """Like :func:`evaluate_program`, also returning the ids of the rules that
    fired in this pass, in program order.
    """
    prior = previous_state or OrientationRuntimeState.empty()
    frame = program.base_frame
    extra_locks: List[LockRule] = []
    fired: List[str] = []
    state = prior.clone()

    for rule in fired_rules(program, snapshot, prior):
        frame, rule_locks, state = apply_rule(rule, frame, snapshot, state)
        extra_locks.extend(rule_locks)
        fired.append(rule.id)

    result = OrientationResult(frame, tuple(program.locks) + tuple(extra_locks), state)
    return result, tuple(fired)


def evaluate_program(
    program: OrientationProgram,
    snapshot: ChartSnapshot,
    previous_state: Optional[OrientationRuntimeState] = None,
) -> OrientationResult:
    """Evaluate ``program`` once for ``snapshot``.

    Every trigger is checked against ``previous_state`` (or an empty state),
    never against changes made earlier in the same pass. Effects compose in
    rule order. The returned state is always a new object; ``previous_state``
    is never modified.
    """
    result, _ = evaluate_program_traced(program, snapshot, previous_state)
    return result
