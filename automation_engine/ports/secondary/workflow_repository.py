from abc import ABC, abstractmethod
from datetime import datetime

from automation_engine.domain.workflow.entities.workflow import WorkflowDefinition


class IWorkflowRepository(ABC):
    """
    Interface for persistence of workflow definitions.

    Stores the authored graph, lifecycle status and run statistics.
    """

    @abstractmethod
    async def save(self, workflow: WorkflowDefinition) -> None:
        """Persists a new workflow definition."""
        pass

    @abstractmethod
    async def get_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        """Retrieves a workflow definition by its unique ID."""
        pass

    @abstractmethod
    async def update(self, workflow: WorkflowDefinition) -> None:
        """Writes back status, graph and statistics of an existing definition."""
        pass

    @abstractmethod
    async def record_run_result(self, workflow_id: str, succeeded: bool, finished_at: datetime) -> None:
        """Atomically bumps the run counters without rewriting the rest of the row."""
        pass

    @abstractmethod
    async def list_active_by_owner(self, owner_id: str) -> list[WorkflowDefinition]:
        """Active definitions owned by one artist, the candidates for an incoming event."""
        pass

    @abstractmethod
    async def list_active(self) -> list[WorkflowDefinition]:
        """All active definitions; used by the schedule sweep."""
        pass
