from fastapi import APIRouter, Depends

from automation_engine.adapters.primary.api.dependencies import (
    get_cancel_run_use_case,
    get_fire_workflow_event_use_case,
    get_run_status_use_case,
)
from automation_engine.adapters.primary.api.dto import (
    ErrorResponse,
    EventRequest,
    EventResponse,
    RunResponse,
)
from automation_engine.application.workflow.use_cases.fire_workflow_event import FireWorkflowEventUseCase
from automation_engine.application.workflow.use_cases.run_status import (
    CancelRunUseCase,
    GetRunStatusUseCase,
)
from automation_engine.domain.workflow.entities.run import Event

API_VERSION = "v1"
router = APIRouter(prefix=f"/api/{API_VERSION}", tags=["Runs"])


@router.post(
    "/events",
    response_model=EventResponse,
    summary="Fire a domain event",
    description="Start a run for every active workflow of the actor whose trigger matches the event.",
)
async def fire_event(
    request: EventRequest,
    use_case: FireWorkflowEventUseCase = Depends(get_fire_workflow_event_use_case),
) -> EventResponse:
    """
    Entry point for event sources (sales, tips, follows, milestones).

    Never fails because of a broken workflow: runtime errors are recorded on
    the affected runs.
    """
    event = Event(event_type=request.eventType, occurred_for=request.occurredFor, data=request.data)
    run_ids = await use_case.execute(event)
    return EventResponse(run_ids=run_ids)


@router.get(
    "/runs/{run_id}",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get run status",
)
async def get_run(
    run_id: str,
    use_case: GetRunStatusUseCase = Depends(get_run_status_use_case),
) -> RunResponse:
    return RunResponse.from_entity(await use_case.execute(run_id))


@router.delete(
    "/runs/{run_id}",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Cancel a run",
    description="Stop a running or waiting run. Finished runs cannot be cancelled.",
)
async def cancel_run(
    run_id: str,
    use_case: CancelRunUseCase = Depends(get_cancel_run_use_case),
) -> RunResponse:
    return RunResponse.from_entity(await use_case.execute(run_id))
