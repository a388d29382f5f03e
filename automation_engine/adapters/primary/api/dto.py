from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from automation_engine.domain.workflow.entities.run import WorkflowRun
from automation_engine.domain.workflow.entities.workflow import WorkflowDefinition


class NodeDTO(BaseModel):
    id: str
    type: str = Field(..., pattern="^(trigger|action|condition|logic)$")
    subtype: str
    config: dict[str, Any] = Field(default_factory=dict)


class EdgeDTO(BaseModel):
    id: str
    source: str
    target: str


class WorkflowCreateRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category: str = "custom"
    nodes: list[NodeDTO] = Field(default_factory=list)
    edges: list[EdgeDTO] = Field(default_factory=list)


class WorkflowValidateRequest(BaseModel):
    nodes: list[NodeDTO] = Field(default_factory=list)
    edges: list[EdgeDTO] = Field(default_factory=list)


class WorkflowValidateResponse(BaseModel):
    valid: bool
    issues: list[str]


class WorkflowResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    description: str | None
    category: str
    status: str
    nodes: list[NodeDTO]
    edges: list[EdgeDTO]
    total_runs: int
    successful_runs: int
    failed_runs: int
    last_run_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, workflow: WorkflowDefinition) -> "WorkflowResponse":
        return cls(
            id=workflow.id,
            owner_id=workflow.owner_id,
            name=workflow.name,
            description=workflow.description,
            category=workflow.category,
            status=workflow.status.value,
            nodes=[NodeDTO(**node.to_dict()) for node in workflow.nodes],
            edges=[EdgeDTO(**edge.to_dict()) for edge in workflow.edges],
            total_runs=workflow.total_runs,
            successful_runs=workflow.successful_runs,
            failed_runs=workflow.failed_runs,
            last_run_at=workflow.last_run_at,
            created_at=workflow.created_at,
            updated_at=workflow.updated_at,
        )


class EventRequest(BaseModel):
    # actor ids arrive as numbers from some event sources
    model_config = ConfigDict(coerce_numbers_to_str=True)

    eventType: str = Field(..., min_length=1)
    occurredFor: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class EventResponse(BaseModel):
    run_ids: list[str]


class ManualRunRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class ManualRunResponse(BaseModel):
    run_id: str
    message: str = "Workflow run started"


class NodeLogDTO(BaseModel):
    node_id: str
    node_type: str
    subtype: str
    status: str
    input: dict[str, Any]
    output: dict[str, Any] | None
    error: str | None
    duration_ms: int
    executed_at: datetime


class RunResponse(BaseModel):
    id: str
    workflow_id: str
    status: str
    triggering_event: dict[str, Any]
    context: dict[str, Any]
    current_node_id: str | None
    scheduled_resume_at: datetime | None
    errors: list[dict[str, Any]]
    node_logs: list[NodeLogDTO]
    created_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_entity(cls, run: WorkflowRun) -> "RunResponse":
        return cls(
            id=run.id,
            workflow_id=run.workflow_id,
            status=run.status.value,
            triggering_event=run.triggering_event.to_dict(),
            context=run.context,
            current_node_id=run.current_node_id,
            scheduled_resume_at=run.scheduled_resume_at,
            errors=run.errors,
            node_logs=[NodeLogDTO(**log.to_dict()) for log in run.node_logs],
            created_at=run.created_at,
            completed_at=run.completed_at,
        )


class ErrorBody(BaseModel):
    message: str
    error_code: str
    context: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: ErrorBody
