"""
Clinical heuristics layered on top of structural validation.

Each check is a keyword-presence test over node text (case-insensitive
substring match). All checks run and their warnings are reported in
declaration order. Linting never produces errors.
"""

from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple

from .models import ACTION_KINDS, CONDITION_KINDS, Workflow, WorkflowType

CRITICAL_DATA = ("vitalSigns", "allergies", "medications", "labResults")
MEDICATION_SAFETY = ("allergy", "interaction", "contraindication")
GUIDELINE_WORDS = ("guideline", "protocol")
SAFETY_WORDS = ("alert", "warning", "caution", "emergency", "critical")
DOCUMENTATION_WORDS = ("document", "record", "note", "chart")
DECISION_SUPPORT_WORDS = ("calculate", "assess", "evaluate", "score")


@dataclass
class LintResult:
    warnings: List[str] = field(default_factory=list)


def _conditions(workflow: Workflow) -> List[str]:
    return [str(node.condition).lower() for node in workflow.nodes_of_kind(*CONDITION_KINDS) if node.condition]


def _actions(workflow: Workflow) -> List[str]:
    return [str(node.action).lower() for node in workflow.nodes_of_kind(*ACTION_KINDS) if node.action]


def _texts(workflow: Workflow) -> List[str]:
    texts = []
    for node in workflow.nodes:
        texts.append((node.label or "").lower())
        if node.description:
            texts.append(node.description.lower())
    return texts


def _mentions(haystacks: List[str], *words: str) -> bool:
    needles = [word.lower() for word in words]
    return any(needle in text for text in haystacks for needle in needles)


def _has_patient_condition(workflow: Workflow) -> bool:
    return _mentions(_conditions(workflow), "patient.")


def _has_clinical_action(workflow: Workflow) -> bool:
    return _mentions(_actions(workflow), "recommend", "schedule", "adjust")


def _has_followup(workflow: Workflow) -> bool:
    return _mentions(_actions(workflow), "schedule")


def _has_critical_data_check(workflow: Workflow) -> bool:
    return _mentions(_conditions(workflow), *CRITICAL_DATA)


def _medication_is_safe(workflow: Workflow) -> bool:
    if not _mentions(_actions(workflow), "medication"):
        return True
    return _mentions(_conditions(workflow), *MEDICATION_SAFETY)


def _has_guideline_reference(workflow: Workflow) -> bool:
    return _mentions(_texts(workflow), *GUIDELINE_WORDS)


def _has_safety_measures(workflow: Workflow) -> bool:
    return _mentions(_texts(workflow), *SAFETY_WORDS)


def _has_documentation(workflow: Workflow) -> bool:
    return _mentions(_actions(workflow), *DOCUMENTATION_WORDS)


def _has_decision_support(workflow: Workflow) -> bool:
    return _mentions(_actions(workflow), *DECISION_SUPPORT_WORDS)


class ClinicalCheck(NamedTuple):
    name: str
    passes: Callable[[Workflow], bool]
    message: str


CLINICAL_CHECKS = (
    ClinicalCheck("patient_conditions", _has_patient_condition,
                  "Clinical workflow should include patient-specific conditions"),
    ClinicalCheck("clinical_actions", _has_clinical_action,
                  "Clinical workflow should include clinical actions (recommendations, scheduling, or adjustments)"),
    ClinicalCheck("followup", _has_followup,
                  "Clinical workflow should include follow-up scheduling"),
    ClinicalCheck("critical_data", _has_critical_data_check,
                  "Clinical workflow should include checks for critical patient data "
                  "(vitals, allergies, medications, lab results)"),
    ClinicalCheck("medication_safety", _medication_is_safe,
                  "Medication-related actions should include safety checks "
                  "(allergies, interactions, contraindications)"),
    ClinicalCheck("guidelines", _has_guideline_reference,
                  "Clinical workflow should reference clinical guidelines or protocols"),
    ClinicalCheck("safety_alerts", _has_safety_measures,
                  "Clinical workflow should include patient safety measures and alerts"),
    ClinicalCheck("documentation", _has_documentation,
                  "Clinical workflow should include documentation actions"),
    ClinicalCheck("decision_support", _has_decision_support,
                  "Clinical workflow should include clinical decision support features"),
)


def lint(workflow: Workflow) -> LintResult:
    """Run the clinical checks. Non-clinical workflows produce no warnings."""
    result = LintResult()
    if workflow.type != WorkflowType.CLINICAL:
        return result
    for check in CLINICAL_CHECKS:
        if not check.passes(workflow):
            result.warnings.append(check.message)
    return result
