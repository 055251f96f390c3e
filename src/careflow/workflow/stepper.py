"""
Stepwise execution over a linearized workflow.

The stepper is a pure reducer: `advance(state, steps, node_id, outcome)`
returns a new RunState and never mutates its input. Events that cannot be
applied (a node that is not the active step, an outcome with no matching
edge, a finished run) return the input state unchanged so a caller can
simply retry.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .linearizer import Step, StepList, index_of
from .models import TERNARY_KINDS, NodeKind, Ternary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedStep:
    node_id: str
    label: str
    result: Any
    timestamp_logical: int


@dataclass(frozen=True)
class RunState:
    cursor_index: int = 0
    history: Tuple[CompletedStep, ...] = ()
    outputs: Dict[str, Any] = field(default_factory=dict)
    completed: bool = False


# Sentinel: the outcome selects no outgoing edge
_NO_MATCH = object()


def start_run() -> RunState:
    return RunState()


def reset(run_state: RunState) -> RunState:
    """Start over. The step list and workflow are untouched."""
    return RunState()


def current_step(run_state: RunState, steps: StepList) -> Optional[Step]:
    if run_state.completed or not 0 <= run_state.cursor_index < len(steps):
        return None
    return steps[run_state.cursor_index]


def advance(run_state: RunState, steps: StepList, node_id: str, outcome: Any = None) -> RunState:
    step = current_step(run_state, steps)
    if step is None:
        logger.debug("Ignoring step %s: run is finished", node_id)
        return run_state
    if step.node_id != node_id:
        logger.debug("Ignoring step %s: active step is %s", node_id, step.node_id)
        return run_state

    result, next_index = _resolve(step, steps, outcome)
    if next_index is _NO_MATCH:
        logger.debug("No edge from %s matches outcome %r", node_id, outcome)
        return run_state

    completed = CompletedStep(
        node_id=step.node_id,
        label=step.label,
        result=result,
        timestamp_logical=len(run_state.history),
    )
    outputs = dict(run_state.outputs)
    outputs[step.node_id] = result

    if next_index is None:
        return replace(run_state, history=run_state.history + (completed,), outputs=outputs, completed=True)
    return replace(run_state, cursor_index=next_index, history=run_state.history + (completed,), outputs=outputs)


def _resolve(step: Step, steps: StepList, outcome: Any):
    """
    Return (recorded result, next index). The index is None when the run
    finishes here and _NO_MATCH when the outcome selects no edge.
    """
    if not step.next_steps:
        return outcome, None

    if step.node_kind in TERNARY_KINDS:
        ternary = Ternary.parse(outcome)
        if ternary is None:
            return outcome, _NO_MATCH
        if ternary == Ternary.UNKNOWN:
            # only an explicitly wired "unknown" edge routes an unknown outcome
            target = next((n for n in step.next_steps if n.outcome == Ternary.UNKNOWN.value), None)
        else:
            wanted = ternary == Ternary.TRUE
            target = next((n for n in step.next_steps if n.condition is wanted), None)
        return ternary, _index(steps, target)

    if step.node_kind == NodeKind.BRANCH:
        target = next((n for n in step.next_steps if outcome is not None and n.outcome == outcome), None)
        return outcome, _index(steps, target)

    return outcome, _index(steps, step.next_steps[0])


def _index(steps: StepList, target):
    if target is None:
        return _NO_MATCH
    index = index_of(steps, target.target_id)
    return _NO_MATCH if index is None else index
