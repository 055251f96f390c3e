"""Tests for structural validation."""

import pytest

from builders import edge, node, workflow
from careflow.config import get_settings
from careflow.workflow.models import NodeKind, WorkflowType
from careflow.workflow.validator import CYCLE_ERROR, check_workflow, validate


def _with(base, nodes=(), edges=()):
    return base.replace(nodes=base.nodes + tuple(nodes), edges=base.edges + tuple(edges))


def test_valid_decision_workflow(decision_workflow):
    """A single start, decision and two ends validates without errors."""
    result = validate(decision_workflow)

    assert result.valid is True
    assert result.errors == []


def test_minimal_workflow_is_valid(linear_workflow):
    """Exactly one start and one end and nothing else passes cleanly."""
    result = validate(linear_workflow)

    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []


def test_duplicate_node_ids_are_errors(linear_workflow):
    """A repeated node id is reported by name."""
    wf = _with(linear_workflow, nodes=[node("n1", NodeKind.NARRATIVE), node("n1", NodeKind.NARRATIVE)])

    result = validate(wf)

    assert result.valid is False
    assert "Duplicate node ID found: n1" in result.errors


def test_duplicate_edge_ids_are_errors(linear_workflow):
    wf = _with(linear_workflow, edges=[edge("e1", "Start", "End")])

    result = validate(wf)

    assert result.valid is False
    assert "Duplicate edge ID found: e1" in result.errors


def test_dangling_edge_references(linear_workflow):
    """Edges must point at known nodes on both ends."""
    wf = _with(linear_workflow, edges=[edge("e9", "ghost", "End"), edge("e10", "Start", "nowhere")])

    result = validate(wf)

    assert result.valid is False
    assert "Edge e9 references non-existent source node: ghost" in result.errors
    assert "Edge e10 references non-existent target node: nowhere" in result.errors


@pytest.mark.parametrize("starts", [0, 2])
def test_start_cardinality(starts):
    """Zero or two start nodes always fail validation."""
    nodes = [node(f"s{i}", NodeKind.START) for i in range(starts)] + [node("end", NodeKind.END)]
    edges = [edge(f"e{i}", f"s{i}", "end") for i in range(starts)]

    result = validate(workflow(nodes, edges))

    assert result.valid is False
    assert "Workflow must have exactly one start node" in result.errors


def test_end_required():
    result = validate(workflow([node("s", NodeKind.START)], []))

    assert result.valid is False
    assert "Workflow must have at least one end node" in result.errors


def test_several_end_nodes_are_allowed(decision_workflow):
    assert validate(decision_workflow).valid is True


def test_missing_label_is_an_error(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("n", NodeKind.NARRATIVE, label="  ")],
               edges=[edge("e2", "Start", "n")])

    result = validate(wf)

    assert "Node n must have a label" in result.errors


def test_action_node_requires_action(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("act", NodeKind.TAKE_ACTION)],
               edges=[edge("e2", "Start", "act")])

    result = validate(wf)

    assert result.valid is False
    assert "Action node act must have an action" in result.errors


def test_action_naming_is_only_a_warning(linear_workflow):
    """Identifiers outside camelCase downgrade to a warning."""
    wf = _with(linear_workflow,
               nodes=[node("act", NodeKind.TAKE_ACTION, action="Schedule-Followup")],
               edges=[edge("e2", "Start", "act"), edge("e3", "act", "End")])

    result = validate(wf)

    assert "Action name in node act should follow camelCase convention" in result.warnings
    assert not any("act" in e for e in result.errors)


def test_condition_with_odd_characters_warns(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("d", NodeKind.DECISION, condition="patient.age >= 45; drop()")],
               edges=[edge("e2", "Start", "d"), edge("e3", "d", "End", "true")])

    result = validate(wf)

    assert "Condition in node d contains unsupported characters" in result.warnings


def test_decision_without_condition_is_valid(decision_workflow):
    """Conditions are opaque and optional for structural validation."""
    nodes = [n if n.id != "A" else node("A", NodeKind.DECISION) for n in decision_workflow.nodes]

    assert validate(decision_workflow.replace(nodes=nodes)).valid is True


def test_cycle_is_detected():
    """Start -> A -> B -> A is rejected."""
    wf = workflow(
        [node("Start", NodeKind.START), node("A", NodeKind.NARRATIVE), node("B", NodeKind.NARRATIVE)],
        [edge("e1", "Start", "A"), edge("e2", "A", "B"), edge("e3", "B", "A")],
    )

    result = validate(wf)

    assert result.valid is False
    assert CYCLE_ERROR in result.errors


def test_self_loop_is_a_cycle(linear_workflow):
    wf = _with(linear_workflow, edges=[edge("loop", "Start", "Start")])

    assert CYCLE_ERROR in validate(wf).errors


def test_shared_successor_is_not_a_cycle():
    """Several incoming edges to one node (a diamond) is legal reuse."""
    wf = workflow(
        [
            node("Start", NodeKind.START),
            node("D", NodeKind.DECISION),
            node("L", NodeKind.NARRATIVE),
            node("R", NodeKind.NARRATIVE),
            node("M", NodeKind.NARRATIVE),
            node("End", NodeKind.END),
        ],
        [
            edge("e1", "Start", "D"),
            edge("e2", "D", "L", "true"),
            edge("e3", "D", "R", "false"),
            edge("e4", "L", "M"),
            edge("e5", "R", "M"),
            edge("e6", "M", "End"),
        ],
    )

    result = validate(wf)

    assert result.valid is True
    assert CYCLE_ERROR not in result.errors


def test_cycle_not_reachable_from_start_is_not_reported(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("X", NodeKind.NARRATIVE), node("Y", NodeKind.NARRATIVE)],
               edges=[edge("e2", "X", "Y"), edge("e3", "Y", "X")])

    result = validate(wf)

    assert CYCLE_ERROR not in result.errors
    assert "Node X is not reachable from the start node and does not lead to an end node" in result.warnings


def test_isolated_node_is_a_warning(linear_workflow):
    """Start -> End plus an isolated node C stays valid but names C."""
    wf = _with(linear_workflow, nodes=[node("C", NodeKind.NARRATIVE)])

    result = validate(wf)

    assert result.valid is True
    assert "Node C is not connected to any other node" in result.warnings


def test_connecting_isolated_node_removes_warning(linear_workflow):
    """Wiring up an isolated node clears its warning and adds no errors."""
    before = validate(_with(linear_workflow, nodes=[node("C", NodeKind.NARRATIVE)]))
    after = validate(_with(linear_workflow,
                           nodes=[node("C", NodeKind.NARRATIVE)],
                           edges=[edge("e2", "C", "End")]))

    assert any("Node C" in w for w in before.warnings)
    assert not any("Node C" in w for w in after.warnings)
    assert after.errors == before.errors


def test_conditions_without_actions_warns(decision_workflow):
    result = validate(decision_workflow)

    assert "Workflow has conditions but no corresponding actions" in result.warnings


def test_conditions_with_actions_do_not_warn(decision_workflow):
    wf = _with(decision_workflow,
               nodes=[node("act", NodeKind.TAKE_ACTION, action="recordNote")],
               edges=[edge("e4", "act", "End1")])

    result = validate(wf)

    assert "Workflow has conditions but no corresponding actions" not in result.warnings


def test_decision_edge_outcomes(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("d", NodeKind.DECISION)],
               edges=[edge("e2", "Start", "d"), edge("e3", "d", "End"), edge("e4", "d", "End", "maybe")])

    result = validate(wf)

    assert "Edge e3 from decision node d has no outcome" in result.warnings
    assert ("Edge e4 from decision node d has outcome 'maybe'; expected true, false or unknown"
            in result.warnings)


def test_branch_edges_must_use_declared_branches(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("b", NodeKind.BRANCH, branches=["low", "high"])],
               edges=[edge("e2", "Start", "b"), edge("e3", "b", "End", "low"), edge("e4", "b", "End", "mid")])

    result = validate(wf)

    assert "Edge e4 from branch node b has outcome 'mid' which is not a declared branch" in result.warnings
    assert not any("Edge e3" in w for w in result.warnings)


def test_branch_edge_without_outcome_warns(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("b", NodeKind.BRANCH, branches=["low"])],
               edges=[edge("e2", "Start", "b"), edge("e3", "b", "End")])

    result = validate(wf)

    assert "Edge e3 from branch node b has no outcome" in result.warnings
    assert not any("not a declared branch" in w for w in result.warnings)


def test_fan_out_from_plain_node_warns(linear_workflow):
    wf = _with(linear_workflow,
               nodes=[node("End2", NodeKind.END)],
               edges=[edge("e2", "Start", "End2")])

    result = validate(wf)

    assert "Node Start has 2 outgoing edges; only the first is followed" in result.warnings


def test_all_checks_run_in_one_pass():
    """Independent defects are all reported together."""
    wf = workflow(
        [node("n1", NodeKind.NARRATIVE), node("n1", NodeKind.NARRATIVE, label="")],
        [edge("e1", "n1", "ghost")],
    )

    result = validate(wf)

    assert "Duplicate node ID found: n1" in result.errors
    assert "Edge e1 references non-existent target node: ghost" in result.errors
    assert "Workflow must have exactly one start node" in result.errors
    assert "Workflow must have at least one end node" in result.errors
    assert "Node n1 must have a label" in result.errors


def test_validate_is_deterministic(decision_workflow):
    assert validate(decision_workflow) == validate(decision_workflow)


def test_check_workflow_appends_clinical_warnings(decision_workflow):
    clinical = decision_workflow.replace(type=WorkflowType.CLINICAL)

    structural = validate(clinical)
    checked = check_workflow(clinical)

    assert checked.warnings[:len(structural.warnings)] == structural.warnings
    assert any("should include clinical actions" in w for w in checked.warnings)
    assert checked.valid is True


def test_check_workflow_skips_lint_for_other_types(decision_workflow):
    assert check_workflow(decision_workflow) == validate(decision_workflow)


def test_check_workflow_honours_setting(decision_workflow, monkeypatch):
    monkeypatch.setenv("CAREFLOW_CLINICAL_LINT", "false")
    clinical = decision_workflow.replace(type=WorkflowType.CLINICAL)

    assert get_settings().clinical_lint is False
    assert check_workflow(clinical) == validate(clinical)
