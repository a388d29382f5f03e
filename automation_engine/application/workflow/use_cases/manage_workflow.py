from automation_engine.domain.workflow.entities.workflow import (
    Edge,
    Node,
    WorkflowDefinition,
    WorkflowStatus,
)
from automation_engine.domain.workflow.exceptions import WorkflowNotFoundError
from automation_engine.domain.workflow.services.validator import WorkflowValidator
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


class CreateWorkflowUseCase:
    def __init__(self, workflow_repository: IWorkflowRepository):
        self._workflow_repository = workflow_repository

    async def execute(
        self,
        owner_id: str,
        name: str,
        nodes: list[dict],
        edges: list[dict],
        description: str | None = None,
        category: str = "custom",
    ) -> WorkflowDefinition:
        """
        Stores a new definition as a draft.

        Drafts are not validated; the graph only has to pass the validator when
        the author activates it.
        """
        workflow = WorkflowDefinition(
            owner_id=owner_id,
            name=name,
            nodes=[Node.from_dict(n) for n in nodes],
            edges=[Edge.from_dict(e) for e in edges],
            description=description,
            category=category,
        )
        await self._workflow_repository.save(workflow)
        logger.info("workflow_created", workflow_id=workflow.id, owner_id=owner_id)
        return workflow


class GetWorkflowUseCase:
    def __init__(self, workflow_repository: IWorkflowRepository):
        self._workflow_repository = workflow_repository

    async def execute(self, workflow_id: str) -> WorkflowDefinition:
        workflow = await self._workflow_repository.get_by_id(workflow_id)
        if not workflow:
            raise WorkflowNotFoundError(workflow_id)
        return workflow


class ValidateWorkflowUseCase:
    def execute(self, nodes: list[dict], edges: list[dict]) -> list[str]:
        return WorkflowValidator.validate(
            [Node.from_dict(n) for n in nodes], [Edge.from_dict(e) for e in edges]
        )


class _ChangeWorkflowStatusUseCase:
    target_status: WorkflowStatus

    def __init__(self, workflow_repository: IWorkflowRepository):
        self._workflow_repository = workflow_repository

    async def execute(self, workflow_id: str) -> WorkflowDefinition:
        workflow = await GetWorkflowUseCase(self._workflow_repository).execute(workflow_id)
        self._check(workflow)
        previous = workflow.status
        workflow.transition_to(self.target_status)
        await self._workflow_repository.update(workflow)
        logger.info(
            "workflow_status_changed",
            workflow_id=workflow.id,
            from_status=previous.value,
            to_status=workflow.status.value,
        )
        return workflow

    def _check(self, workflow: WorkflowDefinition) -> None:
        pass


class ActivateWorkflowUseCase(_ChangeWorkflowStatusUseCase):
    """
    Puts a definition live. It must pass the validator with zero issues and be
    a well-formed acyclic graph, otherwise it stays in its current status.
    """

    target_status = WorkflowStatus.ACTIVE

    def _check(self, workflow: WorkflowDefinition) -> None:
        WorkflowValidator.ensure_activatable(workflow)


class PauseWorkflowUseCase(_ChangeWorkflowStatusUseCase):
    """Stops new runs immediately; runs already in flight carry on."""

    target_status = WorkflowStatus.PAUSED


class ArchiveWorkflowUseCase(_ChangeWorkflowStatusUseCase):
    target_status = WorkflowStatus.ARCHIVED
