"""Pytest configuration and fixtures."""
import os

import pytest

from builders import edge, node, workflow
from careflow.config import reset_settings
from careflow.workflow.models import NodeKind

os.environ["CAREFLOW_ENV"] = "test"


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def decision_workflow():
    """Start -> A(decision) -[true]-> End1, A -[false]-> End2."""
    return workflow(
        nodes=[
            node("Start", NodeKind.START),
            node("A", NodeKind.DECISION, condition="patient.age >= 45"),
            node("End1", NodeKind.END),
            node("End2", NodeKind.END),
        ],
        edges=[
            edge("e1", "Start", "A"),
            edge("e2", "A", "End1", "true"),
            edge("e3", "A", "End2", "false"),
        ],
        name="decision",
    )


@pytest.fixture
def linear_workflow():
    """Start -> End."""
    return workflow(
        nodes=[node("Start", NodeKind.START), node("End", NodeKind.END)],
        edges=[edge("e1", "Start", "End")],
        name="linear",
    )
