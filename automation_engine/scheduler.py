import asyncio
import signal
from datetime import datetime, timezone
from uuid import uuid4

from automation_engine.adapters.secondary.persistence.pg_run_repository import PostgresRunRepository
from automation_engine.adapters.secondary.persistence.pg_workflow_repository import PostgresWorkflowRepository
from automation_engine.adapters.secondary.redis.redis_lock_manager import RedisLockManager
from automation_engine.application.workflow.use_cases.sweeps import (
    ResumeWaitingRunsUseCase,
    RunScheduledWorkflowsUseCase,
)
from automation_engine.bootstrap import build_launcher, webhook_caller
from automation_engine.shared.config import settings
from automation_engine.shared.database import async_session_factory, engine
from automation_engine.shared.logger import configure_logging, get_logger
from automation_engine.shared.metrics import metrics_registry
from automation_engine.shared.redis_client import redis_client

logger = get_logger(__name__)


class SchedulerRunner:
    """
    Periodic sweep that resumes due waiting runs and fires cron triggers.

    Each sweep works in its own database session. Errors are logged and the
    loop carries on; anything left waiting is picked up on the next sweep.
    """

    def __init__(self, sweep_interval_seconds: float | None = None):
        self._lock_manager = RedisLockManager(redis_client)
        self._sweep_interval = (
            sweep_interval_seconds
            if sweep_interval_seconds is not None
            else settings.SCHEDULER_SWEEP_INTERVAL_SECONDS
        )
        self._name = f"scheduler-{uuid4().hex[:8]}"

    async def sweep(self, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)

        async with async_session_factory() as session:
            launcher = build_launcher(session)
            workflow_repository = PostgresWorkflowRepository(session)

            resumed = await ResumeWaitingRunsUseCase(
                workflow_repository=workflow_repository,
                run_repository=PostgresRunRepository(session),
                launcher=launcher,
                lock_manager=self._lock_manager,
                metrics=metrics_registry,
            ).execute(now)

            started = await RunScheduledWorkflowsUseCase(
                workflow_repository=workflow_repository,
                launcher=launcher,
                lock_manager=self._lock_manager,
            ).execute(now)

        if resumed or started:
            logger.info("sweep_completed", resumed=resumed, scheduled=len(started))

    async def run(self) -> None:
        logger.info("scheduler_starting", name=self._name, sweep_interval=self._sweep_interval)

        loop = asyncio.get_running_loop()
        shutdown_event = asyncio.Event()

        def signal_handler():
            logger.info("shutdown_signal_received")
            shutdown_event.set()

        try:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            pass

        while not shutdown_event.is_set():
            try:
                await self.sweep()
            except Exception as e:
                logger.error("scheduler_sweep_error", error=str(e), exc_info=True)
                if not shutdown_event.is_set():
                    await asyncio.sleep(settings.SCHEDULER_ERROR_PAUSE_SECONDS)

            if not shutdown_event.is_set():
                try:
                    await asyncio.wait_for(shutdown_event.wait(), timeout=self._sweep_interval)
                except asyncio.TimeoutError:
                    pass

        await webhook_caller.aclose()
        await redis_client.close()
        await engine.dispose()
        logger.info("scheduler_shutdown_complete")


async def main():
    await SchedulerRunner().run()


if __name__ == "__main__":
    configure_logging(process="scheduler")
    asyncio.run(main())
