from automation_engine.adapters.secondary.persistence.pg_run_repository import PostgresRunRepository
from automation_engine.adapters.secondary.persistence.pg_workflow_repository import PostgresWorkflowRepository
from automation_engine.application.workflow.use_cases.fire_workflow_event import FireWorkflowEventUseCase
from automation_engine.application.workflow.use_cases.manage_workflow import (
    ActivateWorkflowUseCase,
    ArchiveWorkflowUseCase,
    CreateWorkflowUseCase,
    GetWorkflowUseCase,
    PauseWorkflowUseCase,
    ValidateWorkflowUseCase,
)
from automation_engine.application.workflow.use_cases.manual_run import ManualRunUseCase
from automation_engine.application.workflow.use_cases.run_status import (
    CancelRunUseCase,
    GetRunStatusUseCase,
)
from automation_engine.bootstrap import build_launcher
from automation_engine.shared.database import async_session_factory


async def get_create_workflow_use_case() -> CreateWorkflowUseCase:
    async with async_session_factory() as session:
        yield CreateWorkflowUseCase(workflow_repository=PostgresWorkflowRepository(session))


async def get_workflow_use_case() -> GetWorkflowUseCase:
    async with async_session_factory() as session:
        yield GetWorkflowUseCase(workflow_repository=PostgresWorkflowRepository(session))


def get_validate_workflow_use_case() -> ValidateWorkflowUseCase:
    return ValidateWorkflowUseCase()


async def get_activate_workflow_use_case() -> ActivateWorkflowUseCase:
    async with async_session_factory() as session:
        yield ActivateWorkflowUseCase(workflow_repository=PostgresWorkflowRepository(session))


async def get_pause_workflow_use_case() -> PauseWorkflowUseCase:
    async with async_session_factory() as session:
        yield PauseWorkflowUseCase(workflow_repository=PostgresWorkflowRepository(session))


async def get_archive_workflow_use_case() -> ArchiveWorkflowUseCase:
    async with async_session_factory() as session:
        yield ArchiveWorkflowUseCase(workflow_repository=PostgresWorkflowRepository(session))


async def get_manual_run_use_case() -> ManualRunUseCase:
    async with async_session_factory() as session:
        yield ManualRunUseCase(
            workflow_repository=PostgresWorkflowRepository(session),
            launcher=build_launcher(session),
        )


async def get_fire_workflow_event_use_case() -> FireWorkflowEventUseCase:
    async with async_session_factory() as session:
        yield FireWorkflowEventUseCase(
            workflow_repository=PostgresWorkflowRepository(session),
            launcher=build_launcher(session),
        )


async def get_run_status_use_case() -> GetRunStatusUseCase:
    async with async_session_factory() as session:
        yield GetRunStatusUseCase(run_repository=PostgresRunRepository(session))


async def get_cancel_run_use_case() -> CancelRunUseCase:
    async with async_session_factory() as session:
        yield CancelRunUseCase(run_repository=PostgresRunRepository(session))
