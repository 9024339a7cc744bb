import pickle
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT))
sys.path.append(str(ROOT / "backend"))

from chart_models import Anchor, AngleType, ChartSnapshot, ElementKind, Sign
from orientation_engine.resolver import NOT_FOUND, LongitudeResolver


def _resolver() -> LongitudeResolver:
    snapshot = ChartSnapshot(
        objects={"mars": 101.5, 4: 250.0},
        house_cusps={1: 100.0, 10: 10.0},
        angles={AngleType.ASC: 100.0, "MC": 10.0},
    )
    return LongitudeResolver(snapshot)


def test_not_found_is_falsy_singleton():
    assert not NOT_FOUND
    assert repr(NOT_FOUND) == "NOT_FOUND"
    assert pickle.loads(pickle.dumps(NOT_FOUND)) is NOT_FOUND


def test_object_lookup_tolerates_id_type():
    resolver = _resolver()
    assert resolver.object_longitude("mars") == 101.5
    assert resolver.object_longitude(4) == 250.0
    assert resolver.object_longitude("4") == 250.0
    assert resolver.object_longitude("venus") is NOT_FOUND


def test_house_and_angle_lookups():
    resolver = _resolver()
    assert resolver.house_cusp(1) == 100.0
    assert resolver.house_cusp(7) is NOT_FOUND
    assert resolver.angle_longitude("ASC") == 100.0
    assert resolver.angle_longitude(AngleType.MC) == 10.0
    assert resolver.angle_longitude(AngleType.IC) is NOT_FOUND


def test_sign_start_is_closed_form():
    resolver = LongitudeResolver(ChartSnapshot())
    assert resolver.sign_start(0) == 0
    assert resolver.sign_start(3) == 90
    assert resolver.sign_start(Sign.PISCES) == 330
    assert resolver.sign_start(12) == resolver.sign_start(Sign.ARIES) == Sign.ARIES.start_degree
    assert Sign(3).start_degree == 90


def test_anchor_longitude_dispatch():
    resolver = _resolver()
    assert resolver.anchor_longitude(Anchor(ElementKind.OBJECT, "mars")) == 101.5
    assert resolver.anchor_longitude(Anchor(ElementKind.HOUSE, 10)) == 10.0
    assert resolver.anchor_longitude(Anchor(ElementKind.SIGN, 2)) == 60.0
    assert resolver.anchor_longitude(Anchor(ElementKind.ANGLE, "ASC")) == 100.0
    assert resolver.anchor_longitude(Anchor(ElementKind.ANGLE, "DESC")) is NOT_FOUND
    assert resolver.anchor_longitude(None) is NOT_FOUND
