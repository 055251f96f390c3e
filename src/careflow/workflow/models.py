""" Data models for decision graph representation """

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class NodeKind(str, Enum):
    START = "start"
    END = "end"
    DECISION = "decision"
    BRANCH = "branch"
    LOGIC_TREE = "logicTree"
    FORM_INPUT = "formInput"
    EMIT_DATA = "emitData"
    TAKE_ACTION = "takeAction"
    SUB_FLOW = "subFlow"
    NARRATIVE = "narrative"


# Kinds whose outgoing edges are chosen by a three-valued outcome
TERNARY_KINDS = frozenset({NodeKind.DECISION, NodeKind.LOGIC_TREE})
CONDITION_KINDS = frozenset({NodeKind.DECISION, NodeKind.LOGIC_TREE, NodeKind.BRANCH})
ACTION_KINDS = frozenset({NodeKind.TAKE_ACTION})


class WorkflowType(str, Enum):
    CLINICAL = "clinical"
    DATA = "data"
    INTEGRATION = "integration"


class Ternary(str, Enum):
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> Optional["Ternary"]:
        """
        Interpret a caller-supplied outcome. Returns None when the value
        is not a recognisable truth value.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> "Ternary":
        if value is None:
            return cls.UNKNOWN
        return cls.TRUE if value else cls.FALSE


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    outcome: Optional[str] = None  # "true"/"false" for decisions, a branch name for branches


@dataclass(frozen=True)
class Node:
    id: str
    kind: NodeKind
    label: str = ""
    description: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def condition(self) -> Optional[str]:
        return self.params.get("condition")

    @property
    def action(self) -> Optional[str]:
        return self.params.get("action")

    @property
    def branches(self) -> Tuple[str, ...]:
        return tuple(self.params.get("branches") or ())


@dataclass(frozen=True)
class Workflow:
    """
    A decision graph. Treated as an immutable value: editors produce a new
    Workflow (see `replace`) rather than mutating nodes or edges in place.
    """
    name: str
    description: str = ""
    type: WorkflowType = WorkflowType.CLINICAL
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # accept lists from callers, store tuples
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))

    def outgoing(self, node_id: str) -> List[Edge]:
        """All edges leaving `node_id`, in declaration order."""
        return [edge for edge in self.edges if edge.source == node_id]

    def by_id(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of_kind(self, *kinds: NodeKind) -> List[Node]:
        return [node for node in self.nodes if node.kind in kinds]

    def replace(self, **changes: Any) -> "Workflow":
        return replace(self, **changes)
