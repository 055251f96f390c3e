"""
Structural validation of decision graphs.

`validate` never raises: every problem is returned as data so an editor can
show the complete list in one pass. Errors make a workflow non-runnable,
warnings are advisory.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..config import get_settings
from .lint import lint
from .models import (
    ACTION_KINDS,
    CONDITION_KINDS,
    TERNARY_KINDS,
    NodeKind,
    Ternary,
    Workflow,
    WorkflowType,
)

logger = logging.getLogger(__name__)

ACTION_NAME_PATTERN = re.compile(r"^[a-z][a-zA-Z0-9]*$")
CONDITION_PATTERN = re.compile(r"^[a-zA-Z0-9_.\s>=<+\-!()&|'\"]+$")

CYCLE_ERROR = "Workflow contains cycles"
_TERNARY_OUTCOMES = tuple(t.value for t in Ternary)


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def warn(self, message: str) -> None:
        self.warnings.append(message)


def validate(workflow: Workflow) -> ValidationResult:
    result = ValidationResult()

    node_ids = _check_unique_ids(workflow, result)
    _check_references(workflow, node_ids, result)
    start_ids = _check_cardinality(workflow, result)
    _check_required_fields(workflow, result)
    _check_outcomes(workflow, result)

    adjacency = _adjacency(workflow, node_ids)
    if any(_has_cycle(start_id, adjacency) for start_id in start_ids):
        result.error(CYCLE_ERROR)

    _check_connectivity(workflow, adjacency, start_ids, result)

    conditions = workflow.nodes_of_kind(*CONDITION_KINDS)
    actions = workflow.nodes_of_kind(*ACTION_KINDS)
    if conditions and not actions:
        result.warn("Workflow has conditions but no corresponding actions")

    logger.debug("Validated workflow %r: %d errors, %d warnings",
                 workflow.name, len(result.errors), len(result.warnings))
    return result


def check_workflow(workflow: Workflow, *, clinical_lint: Optional[bool] = None) -> ValidationResult:
    """
    Structural validation with the clinical heuristics appended to the
    warnings for clinical workflows. `clinical_lint` defaults to the
    `clinical_lint` setting.
    """
    if clinical_lint is None:
        clinical_lint = get_settings().clinical_lint

    result = validate(workflow)
    if clinical_lint and workflow.type == WorkflowType.CLINICAL:
        result.warnings.extend(lint(workflow).warnings)
    return result


def _check_unique_ids(workflow: Workflow, result: ValidationResult) -> Set[str]:
    node_ids: Set[str] = set()
    for node in workflow.nodes:
        if node.id in node_ids:
            result.error(f"Duplicate node ID found: {node.id}")
        node_ids.add(node.id)

    edge_ids: Set[str] = set()
    for edge in workflow.edges:
        if edge.id in edge_ids:
            result.error(f"Duplicate edge ID found: {edge.id}")
        edge_ids.add(edge.id)
    return node_ids


def _check_references(workflow: Workflow, node_ids: Set[str], result: ValidationResult) -> None:
    for edge in workflow.edges:
        if edge.source not in node_ids:
            result.error(f"Edge {edge.id} references non-existent source node: {edge.source}")
        if edge.target not in node_ids:
            result.error(f"Edge {edge.id} references non-existent target node: {edge.target}")


def _check_cardinality(workflow: Workflow, result: ValidationResult) -> List[str]:
    start_ids = [node.id for node in workflow.nodes_of_kind(NodeKind.START)]
    if len(start_ids) != 1:
        result.error("Workflow must have exactly one start node")
    if not workflow.nodes_of_kind(NodeKind.END):
        result.error("Workflow must have at least one end node")
    return start_ids


def _check_required_fields(workflow: Workflow, result: ValidationResult) -> None:
    for node in workflow.nodes:
        if not node.label or not node.label.strip():
            result.error(f"Node {node.id} must have a label")

        if node.kind in ACTION_KINDS:
            action = node.action
            if not action:
                result.error(f"Action node {node.id} must have an action")
            elif not ACTION_NAME_PATTERN.match(str(action)):
                result.warn(f"Action name in node {node.id} should follow camelCase convention")

        if node.kind in CONDITION_KINDS and node.condition:
            if not CONDITION_PATTERN.match(str(node.condition)):
                result.warn(f"Condition in node {node.id} contains unsupported characters")


def _check_outcomes(workflow: Workflow, result: ValidationResult) -> None:
    for node in workflow.nodes:
        edges = workflow.outgoing(node.id)
        if node.kind in TERNARY_KINDS:
            for edge in edges:
                if edge.outcome is None:
                    result.warn(f"Edge {edge.id} from decision node {node.id} has no outcome")
                elif edge.outcome not in _TERNARY_OUTCOMES:
                    result.warn(f"Edge {edge.id} from decision node {node.id} has outcome "
                                f"'{edge.outcome}'; expected true, false or unknown")
        elif node.kind == NodeKind.BRANCH:
            declared = node.branches
            for edge in edges:
                if edge.outcome is None:
                    result.warn(f"Edge {edge.id} from branch node {node.id} has no outcome")
                elif edge.outcome not in declared:
                    result.warn(f"Edge {edge.id} from branch node {node.id} has outcome "
                                f"'{edge.outcome}' which is not a declared branch")
        elif len(edges) > 1:
            result.warn(f"Node {node.id} has {len(edges)} outgoing edges; only the first is followed")


def _adjacency(workflow: Workflow, node_ids: Set[str]) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
    for edge in workflow.edges:
        if edge.source in node_ids and edge.target in node_ids:
            adjacency[edge.source].append(edge.target)
    return adjacency


_WHITE, _GRAY, _BLACK = 0, 1, 2


def _has_cycle(start_id: str, adjacency: Dict[str, List[str]]) -> bool:
    """
    Three-color DFS from `start_id`. Re-entering a gray node (still on the
    stack) is a cycle; reaching a black node is DAG reuse.
    """
    color = {start_id: _GRAY}
    stack = [(start_id, iter(adjacency.get(start_id, ())))]
    while stack:
        node_id, targets = stack[-1]
        for target in targets:
            state = color.get(target, _WHITE)
            if state == _GRAY:
                return True
            if state == _WHITE:
                color[target] = _GRAY
                stack.append((target, iter(adjacency.get(target, ()))))
                break
        else:
            color[node_id] = _BLACK
            stack.pop()
    return False


def _reachable(roots: Iterable[str], adjacency: Dict[str, List[str]]) -> Set[str]:
    seen: Set[str] = set()
    pending = [root for root in roots if root in adjacency]
    while pending:
        node_id = pending.pop()
        if node_id in seen:
            continue
        seen.add(node_id)
        pending.extend(adjacency[node_id])
    return seen


def _check_connectivity(workflow: Workflow, adjacency: Dict[str, List[str]],
                        start_ids: List[str], result: ValidationResult) -> None:
    connected: Set[str] = set()
    for edge in workflow.edges:
        connected.add(edge.source)
        connected.add(edge.target)

    reverse: Dict[str, List[str]] = {node_id: [] for node_id in adjacency}
    for source, targets in adjacency.items():
        for target in targets:
            reverse[target].append(source)

    from_start = _reachable(start_ids, adjacency)
    to_end = _reachable((node.id for node in workflow.nodes_of_kind(NodeKind.END)), reverse)

    reported: Set[str] = set()
    for node in workflow.nodes:
        if node.id in reported:
            continue
        reported.add(node.id)
        if node.id not in connected:
            result.warn(f"Node {node.id} is not connected to any other node")
        elif start_ids and node.id not in from_start and node.id not in to_end:
            result.warn(f"Node {node.id} is not reachable from the start node "
                        f"and does not lead to an end node")
