from automation_engine.application.workflow.launcher import RunLauncher
from automation_engine.domain.workflow.entities.run import Event
from automation_engine.domain.workflow.exceptions import (
    WorkflowNotActiveError,
    WorkflowNotFoundError,
    WorkflowValidationError,
)
from automation_engine.domain.workflow.services.validator import MISSING_TRIGGER
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository

MANUAL_EVENT_TYPE = "manual"


class ManualRunUseCase:
    """Starts an active workflow by hand, skipping trigger matching."""

    def __init__(self, workflow_repository: IWorkflowRepository, launcher: RunLauncher):
        self._workflow_repository = workflow_repository
        self._launcher = launcher

    async def execute(self, workflow_id: str, data: dict | None = None) -> str:
        workflow = await self._workflow_repository.get_by_id(workflow_id)
        if not workflow:
            raise WorkflowNotFoundError(workflow_id)

        if not workflow.is_active:
            raise WorkflowNotActiveError(workflow.id, workflow.status.value)

        triggers = workflow.trigger_nodes()
        if not triggers:
            raise WorkflowValidationError([MISSING_TRIGGER])

        event = Event(event_type=MANUAL_EVENT_TYPE, occurred_for=workflow.owner_id, data=data or {})
        runs = await self._launcher.launch([(workflow, triggers[0])], event)
        return runs[0].id
