from fastapi import APIRouter, Depends, status

from automation_engine.adapters.primary.api.dependencies import (
    get_activate_workflow_use_case,
    get_archive_workflow_use_case,
    get_create_workflow_use_case,
    get_manual_run_use_case,
    get_pause_workflow_use_case,
    get_validate_workflow_use_case,
    get_workflow_use_case,
)
from automation_engine.adapters.primary.api.dto import (
    ErrorResponse,
    ManualRunRequest,
    ManualRunResponse,
    WorkflowCreateRequest,
    WorkflowResponse,
    WorkflowValidateRequest,
    WorkflowValidateResponse,
)
from automation_engine.application.workflow.use_cases.manage_workflow import (
    ActivateWorkflowUseCase,
    ArchiveWorkflowUseCase,
    CreateWorkflowUseCase,
    GetWorkflowUseCase,
    PauseWorkflowUseCase,
    ValidateWorkflowUseCase,
)
from automation_engine.application.workflow.use_cases.manual_run import ManualRunUseCase

# API versioning for forward compatibility
API_VERSION = "v1"
router = APIRouter(prefix=f"/api/{API_VERSION}/workflows", tags=["Workflows"])


@router.post(
    "",
    response_model=WorkflowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a workflow",
    description="Store a new workflow definition as a draft.",
)
async def create_workflow(
    request: WorkflowCreateRequest,
    use_case: CreateWorkflowUseCase = Depends(get_create_workflow_use_case),
) -> WorkflowResponse:
    workflow = await use_case.execute(
        owner_id=request.owner_id,
        name=request.name,
        nodes=[node.model_dump() for node in request.nodes],
        edges=[edge.model_dump() for edge in request.edges],
        description=request.description,
        category=request.category,
    )
    return WorkflowResponse.from_entity(workflow)


@router.post(
    "/validate",
    response_model=WorkflowValidateResponse,
    summary="Validate a workflow graph",
    description="Run the activation checks without storing anything.",
)
async def validate_workflow(
    request: WorkflowValidateRequest,
    use_case: ValidateWorkflowUseCase = Depends(get_validate_workflow_use_case),
) -> WorkflowValidateResponse:
    issues = use_case.execute(
        nodes=[node.model_dump() for node in request.nodes],
        edges=[edge.model_dump() for edge in request.edges],
    )
    return WorkflowValidateResponse(valid=not issues, issues=issues)


@router.get(
    "/{workflow_id}",
    response_model=WorkflowResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a workflow",
)
async def get_workflow(
    workflow_id: str,
    use_case: GetWorkflowUseCase = Depends(get_workflow_use_case),
) -> WorkflowResponse:
    return WorkflowResponse.from_entity(await use_case.execute(workflow_id))


@router.post(
    "/{workflow_id}/activate",
    response_model=WorkflowResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Activate a workflow",
    description="Validate the definition and start routing events to it.",
)
async def activate_workflow(
    workflow_id: str,
    use_case: ActivateWorkflowUseCase = Depends(get_activate_workflow_use_case),
) -> WorkflowResponse:
    return WorkflowResponse.from_entity(await use_case.execute(workflow_id))


@router.post(
    "/{workflow_id}/pause",
    response_model=WorkflowResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Pause a workflow",
    description="Stop starting new runs. Runs already in flight are not aborted.",
)
async def pause_workflow(
    workflow_id: str,
    use_case: PauseWorkflowUseCase = Depends(get_pause_workflow_use_case),
) -> WorkflowResponse:
    return WorkflowResponse.from_entity(await use_case.execute(workflow_id))


@router.post(
    "/{workflow_id}/archive",
    response_model=WorkflowResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Archive a workflow",
)
async def archive_workflow(
    workflow_id: str,
    use_case: ArchiveWorkflowUseCase = Depends(get_archive_workflow_use_case),
) -> WorkflowResponse:
    return WorkflowResponse.from_entity(await use_case.execute(workflow_id))


@router.post(
    "/{workflow_id}/run",
    response_model=ManualRunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Run a workflow manually",
    description="Start an active workflow with the given trigger data, bypassing trigger matching.",
)
async def run_workflow(
    workflow_id: str,
    request: ManualRunRequest = ManualRunRequest(),
    use_case: ManualRunUseCase = Depends(get_manual_run_use_case),
) -> ManualRunResponse:
    run_id = await use_case.execute(workflow_id, request.data)
    return ManualRunResponse(run_id=run_id)
