""" Flatten a validated Workflow into the ordered step list the stepper walks. """

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import TERNARY_KINDS, NodeKind, Workflow

logger = logging.getLogger(__name__)

_BOOLEAN_OUTCOMES = {"true": True, "false": False}


@dataclass(frozen=True)
class NextStep:
    target_id: str
    label: str
    condition: Optional[bool] = None  # set for "true"/"false" edges of decision nodes
    outcome: Optional[str] = None     # raw outcome for any other labelled edge


@dataclass(frozen=True)
class Step:
    node_id: str
    node_kind: NodeKind
    label: str
    next_steps: Tuple[NextStep, ...] = ()


StepList = Tuple[Step, ...]


def linearize(workflow: Workflow) -> StepList:
    """
    Depth-first pre-order walk from the start node. A node with several
    incoming edges is emitted once, at its first visit; children are visited
    in edge declaration order, so the result is deterministic.

    The workflow must already have passed `validate`.
    """
    start = next(iter(workflow.nodes_of_kind(NodeKind.START)), None)
    if start is None:
        raise ValueError(f"Workflow {workflow.name!r} has no start node")

    steps = []
    visited = set()
    pending = [start.id]
    while pending:
        node_id = pending.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        node = workflow.by_id(node_id)

        next_steps = []
        for edge in workflow.outgoing(node_id):
            target = workflow.by_id(edge.target)
            if target is None:
                continue
            if node.kind in TERNARY_KINDS and edge.outcome in _BOOLEAN_OUTCOMES:
                next_steps.append(NextStep(target.id, target.label, condition=_BOOLEAN_OUTCOMES[edge.outcome]))
            else:
                next_steps.append(NextStep(target.id, target.label, outcome=edge.outcome))

        steps.append(Step(node.id, node.kind, node.label, tuple(next_steps)))
        # reversed so the first declared edge is popped first
        pending.extend(step.target_id for step in reversed(next_steps))

    logger.debug("Linearized workflow %r into %d steps", workflow.name, len(steps))
    return tuple(steps)


def index_of(steps: StepList, node_id: str) -> Optional[int]:
    for index, step in enumerate(steps):
        if step.node_id == node_id:
            return index
    return None
