import logging
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT))
sys.path.append(str(ROOT / "backend"))

from chart_models import (
    Anchor,
    ChartSnapshot,
    ElementKind,
    FrameEncoding,
    LockFrame,
    LockRule,
    OrientationRuntimeState,
    ViewFrame,
)
from orientation_config import cfg
from orientation_engine.dsl import (
    asc_leaves_house,
    custom,
    mirror,
    planet_crosses_angle,
    planet_crosses_house,
    program,
    rotate,
    rule,
    set_view_frame,
)
from orientation_engine import engine
from orientation_engine.engine import (
    apply_effect,
    apply_rule,
    evaluate_program,
    evaluate_program_traced,
    track_house_positions,
)

EVEN_CUSPS = {h: (h - 1) * 30.0 for h in range(1, 13)}
BASE = ViewFrame(screen_angle=180.0, direction="cw", anchor=Anchor(ElementKind.ANGLE, "ASC"))


def _snapshot(asc=100.0, **objects) -> ChartSnapshot:
    return ChartSnapshot(objects=objects, house_cusps=EVEN_CUSPS, angles={"ASC": asc})


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_rotate_on_mars_conjunct_asc():
    prog = program(BASE, rules=[rule("r1", planet_crosses_angle("mars", "ASC"), rotate(30))])
    frame, locks, state = evaluate_program(prog, _snapshot(asc=100.0, mars=100.0))
    assert frame.effective_zero == pytest.approx(BASE.effective_zero + 30)
    assert frame.direction == BASE.direction
    assert "r1" in state.applied_rule_ids
    assert locks == ()


def test_no_rules_returns_base_frame_and_fresh_state():
    prior = OrientationRuntimeState()
    static = [LockRule(ElementKind.HOUSE, 1, LockFrame.HOUSES)]
    result = evaluate_program(program(BASE, locks=static), _snapshot(), prior)
    assert result.frame == BASE
    assert result.locks == tuple(static)
    assert result.state == prior
    assert result.state is not prior


# ---------------------------------------------------------------------------
# planetCrossesAngle
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("mars, fires", [(101.0, True), (99.0, True), (101.01, False), (98.99, False)])
def test_angle_orb_boundary(mars, fires):
    prog = program(BASE, rules=[rule("r1", planet_crosses_angle("mars", "ASC"), mirror())])
    result = evaluate_program(prog, _snapshot(asc=100.0, mars=mars))
    assert ("r1" in result.state.applied_rule_ids) is fires


def test_angle_orb_wraps_through_zero():
    prog = program(BASE, rules=[rule("r1", planet_crosses_angle("mars", "ASC"), mirror())])
    result = evaluate_program(prog, _snapshot(asc=359.5, mars=0.4))
    assert "r1" in result.state.applied_rule_ids


def test_angle_crossing_is_level_triggered():
    prog = program(BASE, rules=[rule("r1", planet_crosses_angle("mars", "ASC"), rotate(10))])
    snap = _snapshot(asc=100.0, mars=100.5)
    first = evaluate_program(prog, snap)
    second = evaluate_program(prog, snap, first.state)
    assert second.frame.screen_angle == pytest.approx(190)


def test_angle_orb_is_configurable(monkeypatch):
    monkeypatch.setattr(cfg().orbs, "angle_crossing", 3.0)
    prog = program(BASE, rules=[rule("r1", planet_crosses_angle("mars", "ASC"), mirror())])
    result = evaluate_program(prog, _snapshot(asc=100.0, mars=102.5))
    assert "r1" in result.state.applied_rule_ids


# ---------------------------------------------------------------------------
# ascLeavesHouse
# ---------------------------------------------------------------------------


def test_asc_leaves_house_fires_once():
    prog = program(BASE, rules=[rule("leave-1", asc_leaves_house(1), rotate(30))])
    seeded = OrientationRuntimeState(previous_house_positions={"ASC:1": 1})
    snap = _snapshot(asc=45.0)  # house 2

    first = evaluate_program(prog, snap, seeded)
    assert first.frame.screen_angle == pytest.approx(210)
    assert first.state.applied_rule_ids == {"leave-1"}

    second = evaluate_program(prog, snap, first.state)
    assert second.frame == BASE
    assert second.state.applied_rule_ids == {"leave-1"}


def test_asc_leaves_house_requires_previous_position():
    prog = program(BASE, rules=[rule("leave-1", asc_leaves_house(1), rotate(30))])
    assert evaluate_program(prog, _snapshot(asc=45.0)).frame == BASE
    still_inside = OrientationRuntimeState(previous_house_positions={"ASC:1": 1})
    assert evaluate_program(prog, _snapshot(asc=15.0), still_inside).frame == BASE


def test_asc_leaves_house_respects_applied_ids_and_reset():
    prog = program(BASE, rules=[rule("leave-1", asc_leaves_house(1), rotate(30))])
    applied = OrientationRuntimeState(
        applied_rule_ids={"leave-1"}, previous_house_positions={"ASC:1": 1}
    )
    assert evaluate_program(prog, _snapshot(asc=45.0), applied).frame == BASE

    reset = applied.without_rules(["leave-1"])
    assert evaluate_program(prog, _snapshot(asc=45.0), reset).frame.screen_angle == pytest.approx(210)


# ---------------------------------------------------------------------------
# planetCrossesHouse
# ---------------------------------------------------------------------------


def test_planet_crosses_house_is_edge_triggered():
    prog = program(BASE, rules=[rule("sun-10", planet_crosses_house("sun", 10), mirror())])
    inside = _snapshot(sun=275.0)

    first = evaluate_program(prog, inside)
    assert first.frame.direction == -BASE.direction
    assert first.state.previous_house_positions["sun:10"] == 10

    second = evaluate_program(prog, inside, first.state)
    assert second.frame == BASE

    # Sun observed leaving, then entering again
    outside = track_house_positions(second.state, _snapshot(sun=305.0))
    assert outside.previous_house_positions["sun:10"] == 11
    third = evaluate_program(prog, inside, outside)
    assert third.frame.direction == -BASE.direction


def test_triggers_see_previous_state_not_partial_state():
    prog = program(
        BASE,
        rules=[
            rule("a", planet_crosses_house("sun", 10), rotate(10)),
            rule("b", planet_crosses_house("sun", 10), rotate(5)),
        ],
    )
    result = evaluate_program(prog, _snapshot(sun=275.0))
    assert result.frame.screen_angle == pytest.approx(195)
    assert result.state.applied_rule_ids == {"a", "b"}


def test_traced_evaluation_reports_fired_rules_in_order(monkeypatch):
    calls = []
    checked = engine.rule_triggered

    def counting(rule_, snapshot, state):
        calls.append(rule_.id)
        return checked(rule_, snapshot, state)

    monkeypatch.setattr(engine, "rule_triggered", counting)
    prog = program(
        BASE,
        rules=[
            rule("sun-10", planet_crosses_house("sun", 10), rotate(10)),
            rule("never", custom(), rotate(90)),
            rule("mars-asc", planet_crosses_angle("mars", "ASC"), mirror()),
        ],
    )
    snap = _snapshot(asc=100.0, sun=275.0, mars=100.5)

    first, fired = evaluate_program_traced(prog, snap)
    assert fired == ("sun-10", "mars-asc")
    assert calls == ["sun-10", "never", "mars-asc"]

    # Level-triggered rules report again even though their id is already applied
    second, fired = evaluate_program_traced(prog, snap, first.state)
    assert fired == ("mars-asc",)
    assert second.state.applied_rule_ids == first.state.applied_rule_ids
    assert evaluate_program(prog, snap, first.state) == second


def test_tracking_covers_objects_and_asc():
    result = evaluate_program(
        program(BASE, rules=[rule("r", planet_crosses_house("sun", 10), mirror())]),
        _snapshot(asc=45.0, sun=275.0, moon=5.0),
    )
    positions = result.state.previous_house_positions
    assert positions["ASC:1"] == 2
    assert positions["moon:7"] == 1
    assert len(positions) == 3 * 12


def test_asc_tracking_key_is_fixed(monkeypatch):
    monkeypatch.setattr(cfg()._ns, "tracking", SimpleNamespace(asc_subject="Ascendant"), raising=False)
    prog = program(BASE, rules=[rule("leave-1", asc_leaves_house(1), rotate(30))])
    seeded = OrientationRuntimeState(previous_house_positions={"ASC:1": 1})
    result = evaluate_program(prog, _snapshot(asc=45.0), seeded)
    assert result.state.applied_rule_ids == {"leave-1"}
    assert result.state.previous_house_positions["ASC:1"] == 2
    assert not any(key.startswith("Ascendant") for key in result.state.previous_house_positions)


# ---------------------------------------------------------------------------
# Missing data and purity
# ---------------------------------------------------------------------------


def test_missing_data_never_fires():
    prog = program(
        BASE,
        rules=[
            rule("a", asc_leaves_house(1), rotate(10)),
            rule("b", planet_crosses_house("sun", 10), rotate(10)),
            rule("c", planet_crosses_angle("mars", "MC"), rotate(10)),
            rule("d", custom("manual"), rotate(10)),
        ],
    )
    seeded = OrientationRuntimeState(previous_house_positions={"ASC:1": 1})
    bare = ChartSnapshot(objects={"mars": 10.0})
    result = evaluate_program(prog, bare, seeded)
    assert result.frame == BASE
    assert result.state.applied_rule_ids == frozenset()


def test_previous_state_is_not_modified():
    prior = OrientationRuntimeState(previous_house_positions={"ASC:1": 1})
    prog = program(BASE, rules=[rule("leave-1", asc_leaves_house(1), rotate(30))])
    result = evaluate_program(prog, _snapshot(asc=45.0, sun=10.0), prior)
    assert dict(prior.previous_house_positions) == {"ASC:1": 1}
    assert prior.applied_rule_ids == frozenset()
    assert result.state is not prior


def test_rule_locks_follow_static_locks_in_order():
    static = LockRule(ElementKind.ANGLE, "ASC", LockFrame.SCREEN)
    lock_a = LockRule(ElementKind.HOUSE, 1, LockFrame.HOUSES)
    lock_b = LockRule(ElementKind.SIGN, 0, LockFrame.SIGNS)
    prog = program(
        BASE,
        locks=[static],
        rules=[
            rule("a", planet_crosses_angle("mars", "ASC"), rotate(1), locks=[lock_a]),
            rule("b", planet_crosses_angle("venus", "ASC"), rotate(1), locks=[lock_b]),
        ],
    )
    result = evaluate_program(prog, _snapshot(asc=100.0, mars=100.0, venus=100.0))
    assert result.locks == (static, lock_a, lock_b)


def test_custom_rule_applied_by_caller(caplog):
    manual = rule("manual", custom("button"), rotate(90))
    assert evaluate_program(program(BASE, rules=[manual]), _snapshot()).frame == BASE

    with caplog.at_level(logging.DEBUG, logger="orientation_engine.engine"):
        frame, locks, state = apply_rule(manual, BASE, _snapshot(), OrientationRuntimeState())
    assert frame.screen_angle == pytest.approx(270)
    assert "manual" in state.applied_rule_ids
    assert "Rule manual fired" in caplog.text


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


def test_rotate_normalizes_legacy_screen_angle():
    frame = ViewFrame(screen_angle=350.0, direction="ccw")
    rotated = apply_effect(rotate(30), frame)
    assert rotated.screen_angle == pytest.approx(20)
    assert frame.screen_angle == 350.0


def test_rotate_moves_screen_zero_for_zero_point_frames():
    frame = ViewFrame(screen_angle=180.0, direction=1, world_zero=0.0, screen_zero=90.0)
    rotated = apply_effect(rotate(-120), frame)
    assert rotated.encoding is FrameEncoding.ZERO_POINT
    assert rotated.screen_zero == pytest.approx(330)
    assert rotated.screen_angle == 180.0


def test_mirror_toggles_either_encoding():
    legacy = ViewFrame(direction="cw")
    assert apply_effect(mirror(), legacy).legacy_direction == "ccw"
    assert apply_effect(mirror(), apply_effect(mirror(), legacy)) == legacy

    zero_point = ViewFrame(direction=-1, world_zero=0.0, screen_zero=0.0)
    assert apply_effect(mirror(), zero_point).direction == 1


def test_set_view_frame_replaces_frame():
    replacement = ViewFrame(screen_angle=0.0, direction="ccw", anchor=Anchor(ElementKind.ANGLE, "MC"))
    assert apply_effect(set_view_frame(replacement), BASE) is replacement
