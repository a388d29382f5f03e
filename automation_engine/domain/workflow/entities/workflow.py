from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from automation_engine.domain.workflow.exceptions import InvalidStatusTransitionError


class NodeType(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CONDITION = "condition"
    LOGIC = "logic"

    @property
    def is_condition(self) -> bool:
        return self in (NodeType.CONDITION, NodeType.LOGIC)


class WorkflowStatus(str, Enum):
    """
    Lifecycle of an authored workflow.

    States:
        DRAFT: Being authored, never receives events.
        ACTIVE: Validated; the event router starts runs for it.
        PAUSED: Temporarily stopped; in-flight runs finish normally.
        ARCHIVED: Retired for good.
    """

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"

    def can_transition_to(self, target: "WorkflowStatus") -> bool:
        valid_transitions = {
            WorkflowStatus.DRAFT: {WorkflowStatus.ACTIVE, WorkflowStatus.ARCHIVED},
            WorkflowStatus.ACTIVE: {WorkflowStatus.PAUSED, WorkflowStatus.ARCHIVED},
            WorkflowStatus.PAUSED: {WorkflowStatus.ACTIVE, WorkflowStatus.ARCHIVED},
            WorkflowStatus.ARCHIVED: set(),
        }
        return target in valid_transitions[self]


@dataclass
class Node:
    """
    A single step in a workflow graph.

    Attributes:
        id (str): Unique identifier within the definition.
        type (NodeType): trigger, action or condition/logic.
        subtype (str): Behaviour tag, e.g. "new_follower", "send_email", "if_else".
        config (dict): Subtype parameters; string values may hold {{template}} tokens.
    """

    id: str
    type: NodeType
    subtype: str
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        return cls(
            id=str(data["id"]),
            type=NodeType(data["type"]),
            subtype=data["subtype"],
            config=dict(data.get("config") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "subtype": self.subtype,
            "config": self.config,
        }


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        return cls(id=str(data["id"]), source=str(data["source"]), target=str(data["target"]))

    def to_dict(self) -> dict:
        return {"id": self.id, "source": self.source, "target": self.target}


@dataclass
class WorkflowDefinition:
    """
    Root aggregate for an artist-authored automation.

    Only the owning artist's events can start runs for it, and only while it is
    ACTIVE. Run statistics are kept on the definition for the dashboard.
    """

    owner_id: str
    name: str
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid4()))
    status: WorkflowStatus = WorkflowStatus.DRAFT
    description: str | None = None
    category: str = "custom"
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    last_run_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status == WorkflowStatus.ACTIVE

    def trigger_nodes(self) -> list[Node]:
        return [node for node in self.nodes if node.type == NodeType.TRIGGER]

    def transition_to(self, target: WorkflowStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidStatusTransitionError(self.id, self.status.value, target.value)
        self.status = target
        self.updated_at = datetime.now(timezone.utc)

    def record_run_result(self, succeeded: bool) -> None:
        self.total_runs += 1
        if succeeded:
            self.successful_runs += 1
        else:
            self.failed_runs += 1
        self.last_run_at = datetime.now(timezone.utc)
