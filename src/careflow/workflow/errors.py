""" Exceptions raised at the boundaries of the workflow core. """
from typing import List, Optional


class WorkflowFormatError(ValueError):
    """A workflow document could not be parsed into a Workflow."""


class WorkflowValidationError(ValueError):
    """A workflow with structural errors was asked to run."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "Workflow is not runnable: " + "; ".join(self.errors))
