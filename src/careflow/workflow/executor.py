import logging
from typing import Any, Mapping, Optional

from ..observability.logging import workflow_context
from .errors import WorkflowValidationError
from .guards import evaluate_condition, evaluate_expression
from .linearizer import linearize
from .models import TERNARY_KINDS, Node, NodeKind, Workflow
from .stepper import RunState, advance, current_step, start_run
from .validator import validate

logger = logging.getLogger(__name__)


def run_workflow(workflow: Workflow, context: Optional[Mapping[str, Any]] = None, *,
                 outcomes: Optional[Mapping[str, Any]] = None) -> RunState:
    """
    Replay a workflow against mock data, the way the test workbench does.

    Each active step gets its outcome from `outcomes[node_id]` when given,
    otherwise from evaluating the node's condition against `context`.
    Stops when the run completes or an outcome matches no edge.
    """
    report = validate(workflow)
    if not report.valid:
        raise WorkflowValidationError(report.errors)

    context = context or {}
    outcomes = outcomes or {}
    steps = linearize(workflow)
    state = start_run()
    logger.info("Replaying workflow %r (%d steps)", workflow.name, len(steps),
                extra=workflow_context(workflow.name))

    # acyclic: each step can be completed at most once
    for _ in range(len(steps)):
        step = current_step(state, steps)
        if step is None:
            break
        node = workflow.by_id(step.node_id)
        outcome = outcomes[node.id] if node.id in outcomes else _derive_outcome(node, context)

        next_state = advance(state, steps, node.id, outcome)
        if next_state is state:
            logger.info("Replay stalled at %s with outcome %r", node.id, outcome,
                        extra=workflow_context(workflow.name, node.id))
            break
        state = next_state

    logger.info("Replay of %r finished after %d steps (completed=%s)",
                workflow.name, len(state.history), state.completed,
                extra=workflow_context(workflow.name))
    return state


def _derive_outcome(node: Node, context: Mapping[str, Any]) -> Any:
    if node.kind in TERNARY_KINDS:
        return evaluate_condition(node.condition, context)
    if node.kind == NodeKind.BRANCH:
        value = evaluate_expression(node.condition, context)
        if value is None:
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    return None

