""" Load Workflows from YAML/JSON documents and dump them back. """

import json
import logging
from typing import Any, Dict

import yaml

from .errors import WorkflowFormatError
from .models import Edge, Node, Workflow
from .schema import validate_document

logger = logging.getLogger(__name__)


def load_workflow(text: str) -> Workflow:
    """
    Load a Workflow from a YAML (or JSON) string.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowFormatError(f"Invalid workflow document: {e}") from e

    if not isinstance(data, dict):
        raise WorkflowFormatError("Workflow document must be a mapping at the top level")

    return workflow_from_dict(data)


def workflow_from_dict(raw: Dict[str, Any]) -> Workflow:
    spec, _ = validate_document(raw)

    nodes = []
    for node_spec in spec.nodes:
        label, description, params = node_spec.merged()
        nodes.append(Node(
            id=node_spec.id,
            kind=node_spec.kind,
            label=label,
            description=description,
            params=params,
        ))

    edges = []
    for position, edge_spec in enumerate(spec.edges, start=1):
        edges.append(Edge(
            id=edge_spec.id if edge_spec.id is not None else f"e{position}",
            source=edge_spec.source,
            target=edge_spec.target,
            outcome=edge_spec.resolved_outcome(),
        ))

    metadata = dict(spec.metadata)
    if spec.id is not None:
        metadata.setdefault("id", spec.id)

    workflow = Workflow(
        name=spec.name,
        description=spec.description or "",
        type=spec.type,
        nodes=nodes,
        edges=edges,
        metadata=metadata,
    )
    logger.debug("Loaded workflow %r with %d nodes and %d edges",
                 workflow.name, len(nodes), len(edges))
    return workflow


def workflow_to_dict(workflow: Workflow) -> Dict[str, Any]:
    return {
        "name": workflow.name,
        "description": workflow.description,
        "type": workflow.type.value,
        "nodes": [
            {
                "id": node.id,
                "type": node.kind.value,
                "label": node.label,
                "description": node.description,
                "params": dict(node.params),
            }
            for node in workflow.nodes
        ],
        "edges": [
            {
                "id": edge.id,
                "source": edge.source,
                "target": edge.target,
                "outcome": edge.outcome,
            }
            for edge in workflow.edges
        ],
        "metadata": dict(workflow.metadata),
    }


def dump_workflow(workflow: Workflow, fmt: str = "yaml") -> str:
    """
    Serialize a Workflow so that `load_workflow` restores it unchanged.
    """
    data = workflow_to_dict(workflow)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    if fmt == "json":
        return json.dumps(data, indent=2)
    raise ValueError(f"Unsupported workflow format: {fmt}")
