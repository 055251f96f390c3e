""" Holds one workflow, its validation report, step list and current run. """

import logging
from typing import Any, Optional

from ..observability.logging import workflow_context
from .errors import WorkflowValidationError
from .linearizer import Step, StepList, linearize
from .models import Workflow
from .stepper import RunState, advance, current_step, reset, start_run
from .validator import ValidationResult, check_workflow

logger = logging.getLogger(__name__)


class WorkflowSession:
    """
    Runtime view of a workflow being authored or tested. Edits arrive as a
    whole new Workflow through `replace_workflow`; the session never mutates
    the workflow it holds.
    """

    def __init__(self, workflow: Workflow):
        self.replace_workflow(workflow)

    def replace_workflow(self, workflow: Workflow) -> ValidationResult:
        """
        Swap in a new workflow: re-validate, re-linearize and restart the run.
        """
        self.workflow = workflow
        self.report = check_workflow(workflow)
        self.steps: StepList = linearize(workflow) if self.report.valid else ()
        self.run_state: RunState = start_run()
        logger.info("Loaded workflow %r (valid=%s, %d steps)",
                    workflow.name, self.report.valid, len(self.steps),
                    extra=workflow_context(workflow.name))
        return self.report

    @property
    def runnable(self) -> bool:
        return self.report.valid

    @property
    def completed(self) -> bool:
        return self.run_state.completed

    @property
    def current_step(self) -> Optional[Step]:
        return current_step(self.run_state, self.steps)

    def advance(self, node_id: str, outcome: Any = None) -> RunState:
        if not self.runnable:
            raise WorkflowValidationError(self.report.errors)
        self.run_state = advance(self.run_state, self.steps, node_id, outcome)
        return self.run_state

    def reset(self) -> RunState:
        self.run_state = reset(self.run_state)
        return self.run_state
