"""Evaluation pipeline turning chart payloads into an orientation result."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union
from pathlib import Path
import sys

# Ensure repository root on path when executed directly
sys.path.append(str(Path(__file__).resolve().parent))

from chart_models import ChartSnapshot
from orientation_engine.dsl import OrientationProgram
from orientation_engine.engine import evaluate_program_traced
from program_loader import (
    frame_to_dict,
    get_preset,
    lock_to_dict,
    preset_names,
    program_from_dict,
    state_from_dict,
    state_to_dict,
)

logger = logging.getLogger(__name__)


def snapshot_from_payload(chart: Mapping[str, Any]) -> ChartSnapshot:
    """Accept either a renderer payload (``planets``/``houses``) or a snapshot dict."""
    if "planets" in chart or "houses" in chart:
        return ChartSnapshot.from_render_data(chart)
    return ChartSnapshot.from_dict(chart)


def evaluate_orientation(
    chart: Mapping[str, Any],
    program: Union[str, Mapping[str, Any], OrientationProgram],
    state: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Evaluate an orientation program for one chart update.

    The function performs the following steps:

    1. Build a :class:`ChartSnapshot` from the chart payload.
    2. Resolve the program: a preset name, a program dict, or a ready
       :class:`OrientationProgram`.
    3. Evaluate the program against the snapshot and the previous state.
    4. Serialise frame, locks and the new state for the caller to persist.

    Args:
        chart: Renderer payload or snapshot dict.
        program: Preset name, program dict, or program object.
        state: State dict returned by a previous call, if any.
    """
    snapshot = snapshot_from_payload(chart)
    if isinstance(program, str):
        program_obj = get_preset(program)
    elif isinstance(program, OrientationProgram):
        program_obj = program
    else:
        program_obj = program_from_dict(program)

    previous = state_from_dict(state)
    result, fired = evaluate_program_traced(program_obj, snapshot, previous)

    logger.info(
        "Orientation evaluated: fired=%s effective_zero=%.3f locks=%d",
        fired,
        result.frame.effective_zero,
        len(result.locks),
    )
    return {
        "frame": frame_to_dict(result.frame),
        "locks": [lock_to_dict(lock) for lock in result.locks],
        "state": state_to_dict(result.state),
        "fired": list(fired),
    }


if __name__ == "__main__":
    """Evaluate a chart JSON file against a preset or program file.

    The resulting frame, locks and state are printed as JSON; pass the printed
    ``state`` back through ``--state`` on the next tick.
    """
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Evaluate chart orientation")
    parser.add_argument("chart_path", help="Path to chart JSON file")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--preset", default="ascendant_left", choices=preset_names(), help="Preset name"
    )
    group.add_argument("--program", help="Path to program JSON file")
    parser.add_argument("--state", help="Path to state JSON from a previous run")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    chart_data = json.loads(Path(args.chart_path).read_text(encoding="utf-8"))
    program_arg: Union[str, Dict[str, Any]] = args.preset
    if args.program:
        program_arg = json.loads(Path(args.program).read_text(encoding="utf-8"))
    state_data = None
    if args.state:
        state_data = json.loads(Path(args.state).read_text(encoding="utf-8"))

    print(json.dumps(evaluate_orientation(chart_data, program_arg, state_data), indent=2))
