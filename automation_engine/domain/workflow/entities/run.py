from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from automation_engine.domain.workflow.exceptions import InvalidStatusTransitionError

NODES_KEY = "nodes"
TRIGGER_KEY = "trigger"


class RunStatus(str, Enum):
    """
    States:
        RUNNING: Traversal in progress.
        WAITING: Every live branch finished or is parked on a `wait` action.
        COMPLETED: All branches terminated without a halting failure.
        FAILED: At least one branch hit a halting failure.
        CANCELLED: Stopped explicitly by run id.
    """

    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)

    def can_transition_to(self, target: "RunStatus") -> bool:
        valid_transitions = {
            RunStatus.RUNNING: {
                RunStatus.WAITING,
                RunStatus.COMPLETED,
                RunStatus.FAILED,
                RunStatus.CANCELLED,
            },
            RunStatus.WAITING: {RunStatus.RUNNING, RunStatus.CANCELLED},
            RunStatus.COMPLETED: set(),
            RunStatus.FAILED: set(),
            RunStatus.CANCELLED: set(),
        }
        return target in valid_transitions[self]


@dataclass(frozen=True)
class Event:
    """Immutable domain fact fed in by an external event source."""

    event_type: str
    occurred_for: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"eventType": self.event_type, "occurredFor": self.occurred_for, "data": self.data}

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            event_type=data["eventType"],
            occurred_for=str(data["occurredFor"]),
            data=dict(data.get("data") or {}),
        )


@dataclass
class SuspendedBranch:
    """A branch parked on a `wait` node, resumed from the node's outgoing edges."""

    node_id: str
    resume_at: datetime
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "resume_at": self.resume_at.isoformat(),
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SuspendedBranch":
        return cls(
            node_id=data["node_id"],
            resume_at=datetime.fromisoformat(data["resume_at"]),
            context=dict(data.get("context") or {}),
        )


@dataclass
class NodeLog:
    node_id: str
    node_type: str
    subtype: str
    status: str
    input: dict[str, Any] = field(default_factory=dict)
    output: dict[str, Any] | None = None
    error: str | None = None
    duration_ms: int = 0
    executed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "node_type": self.node_type,
            "subtype": self.subtype,
            "status": self.status,
            "input": self.input,
            "output": self.output,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "executed_at": self.executed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NodeLog":
        return cls(
            node_id=data["node_id"],
            node_type=data["node_type"],
            subtype=data["subtype"],
            status=data["status"],
            input=data.get("input") or {},
            output=data.get("output"),
            error=data.get("error"),
            duration_ms=data.get("duration_ms", 0),
            executed_at=datetime.fromisoformat(data["executed_at"]),
        )


def build_initial_context(event: Event) -> dict[str, Any]:
    """Event data sits at the top level so `{{fan.email}}` resolves directly."""
    context = dict(event.data)
    context[TRIGGER_KEY] = event.to_dict()
    context[NODES_KEY] = {}
    return context


@dataclass
class WorkflowRun:
    """
    Aggregate for one execution of a workflow, started by one event.

    The run record is the single source of truth for resumption: while WAITING
    it carries every parked branch, and `current_node_id`/`scheduled_resume_at`
    point at the earliest of them.
    """

    workflow_id: str
    owner_id: str
    triggering_event: Event
    id: str = field(default_factory=lambda: str(uuid4()))
    status: RunStatus = RunStatus.RUNNING
    context: dict[str, Any] = field(default_factory=dict)
    trigger_node_id: str | None = None
    current_node_id: str | None = None
    scheduled_resume_at: datetime | None = None
    suspended_branches: list[SuspendedBranch] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    node_logs: list[NodeLog] = field(default_factory=list)
    halted: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    def __post_init__(self):
        if not self.context:
            self.context = build_initial_context(self.triggering_event)
        self.context.setdefault(NODES_KEY, {})

    def transition_to(self, target: RunStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidStatusTransitionError(self.id, self.status.value, target.value)
        self.status = target
        if target.is_terminal:
            self.completed_at = datetime.now(timezone.utc)
            self.current_node_id = None
            self.scheduled_resume_at = None

    def record_output(self, node_id: str, output: dict[str, Any]) -> None:
        self.context[NODES_KEY][node_id] = output

    def record_log(self, log: NodeLog) -> None:
        self.node_logs.append(log)

    def record_error(self, node_id: str, subtype: str, error: str, fatal: bool) -> None:
        self.errors.append(
            {"node_id": node_id, "subtype": subtype, "error": error, "fatal": fatal}
        )
        if fatal:
            self.halted = True

    def suspend_branch(self, node_id: str, resume_at: datetime, context: dict[str, Any]) -> None:
        branch_context = {k: v for k, v in context.items() if k != NODES_KEY}
        self.suspended_branches.append(
            SuspendedBranch(node_id=node_id, resume_at=resume_at, context=branch_context)
        )

    def pop_due_branches(self, now: datetime) -> list[SuspendedBranch]:
        due = [b for b in self.suspended_branches if b.resume_at <= now]
        self.suspended_branches = [b for b in self.suspended_branches if b.resume_at > now]
        return due

    def branch_context(self, branch: SuspendedBranch) -> dict[str, Any]:
        context = dict(branch.context)
        context[NODES_KEY] = self.context[NODES_KEY]
        return context

    def settle(self) -> None:
        """Move out of RUNNING once every live branch has terminated or parked."""
        if self.status != RunStatus.RUNNING:
            return
        if self.suspended_branches:
            earliest = min(self.suspended_branches, key=lambda b: b.resume_at)
            self.transition_to(RunStatus.WAITING)
            self.current_node_id = earliest.node_id
            self.scheduled_resume_at = earliest.resume_at
        elif self.halted:
            self.transition_to(RunStatus.FAILED)
        else:
            self.transition_to(RunStatus.COMPLETED)

    def cancel(self) -> None:
        self.transition_to(RunStatus.CANCELLED)
        self.suspended_branches = []
