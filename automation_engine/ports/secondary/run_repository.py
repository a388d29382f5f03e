from abc import ABC, abstractmethod
from datetime import datetime

from automation_engine.domain.workflow.entities.run import WorkflowRun


class IRunRepository(ABC):
    """
    Interface for durable run state.

    A waiting run's persisted record is what the resume sweep reads back, so it
    must survive process restarts.
    """

    @abstractmethod
    async def save(self, run: WorkflowRun) -> None:
        pass

    @abstractmethod
    async def get_by_id(self, run_id: str) -> WorkflowRun | None:
        pass

    @abstractmethod
    async def update(self, run: WorkflowRun) -> bool:
        """
        Persists run progress and appends new node logs.

        A row already marked cancelled is left untouched and False is returned.
        """
        pass

    @abstractmethod
    async def list_due_waiting(self, now: datetime, limit: int) -> list[WorkflowRun]:
        """Waiting runs whose scheduled_resume_at is at or before `now`, oldest first."""
        pass
