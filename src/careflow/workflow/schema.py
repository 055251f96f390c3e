from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from .errors import WorkflowFormatError
from .models import NodeKind, WorkflowType

# Node type names used by the original flow editor and its templates
_KIND_ALIASES: Dict[str, NodeKind] = {
    "trueFalse": NodeKind.DECISION,
    "condition": NodeKind.DECISION,
    "action": NodeKind.TAKE_ACTION,
    "customForm": NodeKind.FORM_INPUT,
    "formField": NodeKind.FORM_INPUT,
}

# Keys under an editor node's `data` that map onto Node fields, not params
_DATA_FIELDS = ("label", "description")


class NodeSpec(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    kind: NodeKind = Field(validation_alias=AliasChoices("type", "kind"))
    label: str = ""
    description: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    data: Optional[Dict[str, Any]] = None  # editor shape: { data: { label, condition, ... } }

    @field_validator("kind", mode="before")
    @classmethod
    def _resolve_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and value in _KIND_ALIASES:
            return _KIND_ALIASES[value]
        return value

    @field_validator("params")
    @classmethod
    def _check_branches(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        branches = value.get("branches")
        if branches is not None:
            if not isinstance(branches, list) or not all(isinstance(b, str) for b in branches):
                raise ValueError("params.branches must be a list of strings")
        return value

    def merged(self) -> Tuple[str, Optional[str], Dict[str, Any]]:
        """Fold the editor `data` block into (label, description, params)."""
        label, description, params = self.label, self.description, dict(self.params)
        if self.data:
            label = label or str(self.data.get("label") or "")
            if description is None and self.data.get("description") is not None:
                description = str(self.data["description"])
            for key, value in self.data.items():
                if key not in _DATA_FIELDS:
                    params.setdefault(key, value)
        return label, description, params


class EdgeSpec(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    source: str = Field(validation_alias=AliasChoices("source", "from"))
    target: str = Field(validation_alias=AliasChoices("target", "to"))
    outcome: Optional[str] = Field(default=None, validation_alias=AliasChoices("outcome", "when"))
    data: Optional[Dict[str, Any]] = None

    @field_validator("outcome", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # YAML reads bare true/false as booleans
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    def resolved_outcome(self) -> Optional[str]:
        if self.outcome is not None:
            return self.outcome
        if self.data and "condition" in self.data:
            condition = self.data["condition"]
            if isinstance(condition, bool):
                return "true" if condition else "false"
            return str(condition)
        return None


class WorkflowSpec(BaseModel):
    # Unknown root keys (viewport, editor state) are dropped
    model_config = ConfigDict(extra="ignore")

    name: str
    id: Optional[str] = None
    description: Optional[str] = None
    type: WorkflowType = WorkflowType.CLINICAL

    nodes: List[NodeSpec] = Field(default_factory=list)
    edges: List[EdgeSpec] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("nodes", "edges", "metadata", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "metadata" else []
        return value


def validate_document(raw: Dict[str, Any]) -> Tuple[WorkflowSpec, Dict[str, Any]]:
    """Validate a raw document dict against WorkflowSpec."""
    try:
        spec = WorkflowSpec.model_validate(raw)
    except ValidationError as e:
        raise WorkflowFormatError(f"Workflow document validation error: {e}") from e
    return spec, spec.model_dump()
