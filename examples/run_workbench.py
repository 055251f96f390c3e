""" Example: validate a clinical workflow and replay it for two mock patients. """
from pathlib import Path

from careflow.observability.logging import setup_logging
from careflow.workflow.compiler import load_workflow
from careflow.workflow.executor import run_workflow
from careflow.workflow.validator import check_workflow

PATIENTS = {
    "hypertensive": {"patient": {"vitalSigns": {"systolic": 162}, "allergy": {"aceInhibitor": False}}},
    "normotensive": {"patient": {"vitalSigns": {"systolic": 118}}},
    "incomplete": {"patient": {"vitalSigns": {"systolic": 150}}},
}


def main():
    setup_logging()
    workflow = load_workflow((Path(__file__).parent / "hypertension_management.yaml").read_text())

    report = check_workflow(workflow)
    print(f"valid={report.valid}")
    for message in report.errors:
        print(f"  error: {message}")
    for message in report.warnings:
        print(f"  warning: {message}")

    for name, context in PATIENTS.items():
        state = run_workflow(workflow, context)
        path = " -> ".join(entry.label for entry in state.history)
        status = "completed" if state.completed else "waiting for input"
        print(f"{name}: {path} [{status}]")


if __name__ == '__main__':
    main()
