from datetime import datetime

from automation_engine.application.workflow.launcher import RunLauncher
from automation_engine.domain.workflow.entities.run import Event, RunStatus
from automation_engine.domain.workflow.value_objects.cron import CronExpression
from automation_engine.domain.workflow.value_objects.trigger import SCHEDULE_SUBTYPE
from automation_engine.ports.secondary.lock_manager import ILockManager
from automation_engine.ports.secondary.metrics import IMetrics
from automation_engine.ports.secondary.run_repository import IRunRepository
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository
from automation_engine.shared.config import settings
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


class ResumeWaitingRunsUseCase:
    """
    Resumes waiting runs whose scheduled time has passed.

    Driven by the scheduler loop rather than in-process timers, so runs parked
    before a restart are picked up afterwards. A run that cannot be advanced is
    logged and left waiting; the next sweep retries it.
    """

    def __init__(
        self,
        workflow_repository: IWorkflowRepository,
        run_repository: IRunRepository,
        launcher: RunLauncher,
        lock_manager: ILockManager,
        metrics: IMetrics | None = None,
    ):
        self._workflow_repository = workflow_repository
        self._run_repository = run_repository
        self._launcher = launcher
        self._lock_manager = lock_manager
        self._metrics = metrics

    async def execute(self, now: datetime) -> int:
        due_runs = await self._run_repository.list_due_waiting(
            now, settings.SCHEDULER_RESUME_BATCH_SIZE
        )
        resumed = 0

        for candidate in due_runs:
            lock_key = f"resume:{candidate.id}"
            if not await self._lock_manager.acquire_lock(lock_key, settings.LOCK_TTL_SECONDS):
                continue
            try:
                # Re-read under the lock; another replica may have advanced it
                run = await self._run_repository.get_by_id(candidate.id)
                if run is None or run.status != RunStatus.WAITING:
                    continue

                definition = await self._workflow_repository.get_by_id(run.workflow_id)
                if definition is None:
                    logger.error(
                        "run_resume_failed",
                        run_id=run.id,
                        workflow_id=run.workflow_id,
                        error="workflow definition not found",
                    )
                    continue

                await self._launcher.resume(run, definition, now)
                resumed += 1
                logger.info("run_resumed", run_id=run.id, status=run.status.value)
            except Exception as e:
                logger.error("run_resume_failed", run_id=candidate.id, error=str(e), exc_info=True)
            finally:
                await self._lock_manager.release_lock(lock_key)

        if self._metrics and resumed:
            self._metrics.record_resumed_runs(resumed)
        return resumed


class RunScheduledWorkflowsUseCase:
    """
    Fires `schedule` triggers whose cron expression matches the current minute.

    A (workflow, trigger, minute) lock that is left to expire keeps several
    scheduler replicas, or several sweeps within one minute, from firing twice.
    """

    def __init__(
        self,
        workflow_repository: IWorkflowRepository,
        launcher: RunLauncher,
        lock_manager: ILockManager,
    ):
        self._workflow_repository = workflow_repository
        self._launcher = launcher
        self._lock_manager = lock_manager

    async def execute(self, now: datetime) -> list[str]:
        minute = now.replace(second=0, microsecond=0)
        run_ids: list[str] = []

        for definition in await self._workflow_repository.list_active():
            for node in definition.trigger_nodes():
                if node.subtype != SCHEDULE_SUBTYPE:
                    continue

                expression = str(node.config.get("cron") or "")
                try:
                    cron = CronExpression.parse(expression)
                except ValueError as e:
                    logger.warning(
                        "invalid_cron_expression",
                        workflow_id=definition.id,
                        node_id=node.id,
                        cron=expression,
                        error=str(e),
                    )
                    continue

                if not cron.matches(minute):
                    continue

                lock_key = f"schedule:{definition.id}:{node.id}:{minute:%Y%m%d%H%M}"
                if not await self._lock_manager.acquire_lock(lock_key, settings.SCHEDULE_LOCK_TTL_SECONDS):
                    continue

                event = Event(
                    event_type=SCHEDULE_SUBTYPE,
                    occurred_for=definition.owner_id,
                    data={"triggeredAt": minute.isoformat(), "triggerNodeId": node.id, "cron": expression},
                )
                runs = await self._launcher.launch([(definition, node)], event)
                run_ids.extend(run.id for run in runs)

        if run_ids:
            logger.info("scheduled_runs_started", count=len(run_ids))
        return run_ids
