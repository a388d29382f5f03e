import asyncio
from datetime import datetime, timezone

from automation_engine.application.workflow.runner import WorkflowRunner
from automation_engine.domain.workflow.entities.run import Event, RunStatus, WorkflowRun
from automation_engine.domain.workflow.entities.workflow import Node, WorkflowDefinition
from automation_engine.ports.secondary.metrics import IMetrics
from automation_engine.ports.secondary.run_repository import IRunRepository
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


class RunLauncher:
    """
    Creates runs, drives them through the runner and writes the results back.

    Runs for different workflows traverse concurrently. Storage access stays
    sequential because the repositories share one database session.
    """

    def __init__(
        self,
        workflow_repository: IWorkflowRepository,
        run_repository: IRunRepository,
        runner: WorkflowRunner,
        metrics: IMetrics | None = None,
    ):
        self._workflow_repository = workflow_repository
        self._run_repository = run_repository
        self._runner = runner
        self._metrics = metrics

    async def launch(
        self, matches: list[tuple[WorkflowDefinition, Node]], event: Event
    ) -> list[WorkflowRun]:
        runs = []
        for definition, trigger in matches:
            run = WorkflowRun(
                workflow_id=definition.id,
                owner_id=definition.owner_id,
                triggering_event=event,
                trigger_node_id=trigger.id,
            )
            await self._run_repository.save(run)
            if self._metrics:
                self._metrics.record_run_started(trigger.subtype)
            logger.info(
                "run_started",
                run_id=run.id,
                workflow_id=definition.id,
                trigger_node_id=trigger.id,
                event_type=event.event_type,
            )
            runs.append(run)

        await asyncio.gather(
            *[
                self._start_safely(run, definition, trigger.id)
                for run, (definition, trigger) in zip(runs, matches)
            ]
        )

        for run, (definition, _) in zip(runs, matches):
            await self.persist(run, definition)
        return runs

    async def resume(self, run: WorkflowRun, definition: WorkflowDefinition, now: datetime) -> WorkflowRun:
        try:
            await self._runner.resume(run, definition, now)
        except Exception as e:
            self._mark_crashed(run, e)
        await self.persist(run, definition)
        return run

    async def persist(self, run: WorkflowRun, definition: WorkflowDefinition) -> None:
        applied = await self._run_repository.update(run)
        if not applied:
            logger.info("run_cancelled_during_traversal", run_id=run.id)
            return
        if run.status in (RunStatus.COMPLETED, RunStatus.FAILED):
            succeeded = run.status == RunStatus.COMPLETED
            definition.record_run_result(succeeded)
            await self._workflow_repository.record_run_result(
                definition.id, succeeded, run.completed_at or datetime.now(timezone.utc)
            )

    async def _start_safely(self, run: WorkflowRun, definition: WorkflowDefinition, trigger_node_id: str) -> None:
        try:
            await self._runner.start(run, definition, trigger_node_id)
        except Exception as e:
            self._mark_crashed(run, e)

    @staticmethod
    def _mark_crashed(run: WorkflowRun, error: Exception) -> None:
        logger.error("run_traversal_crashed", run_id=run.id, error=str(error), exc_info=True)
        run.record_error(run.current_node_id or "", "", str(error) or type(error).__name__, fatal=True)
        if run.status == RunStatus.RUNNING:
            run.settle()
