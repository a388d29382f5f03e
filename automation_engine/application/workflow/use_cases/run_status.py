from automation_engine.domain.workflow.entities.run import WorkflowRun
from automation_engine.domain.workflow.exceptions import RunNotFoundError
from automation_engine.ports.secondary.run_repository import IRunRepository
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


class GetRunStatusUseCase:
    def __init__(self, run_repository: IRunRepository):
        self._run_repository = run_repository

    async def execute(self, run_id: str) -> WorkflowRun:
        run = await self._run_repository.get_by_id(run_id)
        if not run:
            raise RunNotFoundError(run_id)
        return run


class CancelRunUseCase:
    def __init__(self, run_repository: IRunRepository):
        self._run_repository = run_repository

    async def execute(self, run_id: str) -> WorkflowRun:
        """
        Cancels a running or waiting run.

        The cancelled row is final: a traversal still in flight cannot write
        over it, and the resume sweep never picks it up again.
        """
        run = await GetRunStatusUseCase(self._run_repository).execute(run_id)
        run.cancel()
        await self._run_repository.update(run)
        logger.info("run_cancelled", run_id=run.id, workflow_id=run.workflow_id)
        return run
