import json
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from automation_engine.adapters.secondary.persistence.models import WorkflowModel
from automation_engine.domain.workflow.entities.workflow import (
    Edge,
    Node,
    WorkflowDefinition,
    WorkflowStatus,
)
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository


class PostgresWorkflowRepository(IWorkflowRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, workflow: WorkflowDefinition) -> None:
        model = WorkflowModel(
            id=workflow.id,
            owner_id=workflow.owner_id,
            name=workflow.name,
            description=workflow.description,
            category=workflow.category,
            status=workflow.status.value,
            nodes_json=json.dumps([node.to_dict() for node in workflow.nodes]),
            edges_json=json.dumps([edge.to_dict() for edge in workflow.edges]),
            total_runs=workflow.total_runs,
            successful_runs=workflow.successful_runs,
            failed_runs=workflow.failed_runs,
            last_run_at=workflow.last_run_at,
            created_at=workflow.created_at,
            updated_at=workflow.updated_at,
        )
        self._session.add(model)
        await self._session.commit()

    async def get_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        result = await self._session.execute(
            select(WorkflowModel).where(WorkflowModel.id == workflow_id)
        )
        model = result.scalar_one_or_none()

        if not model:
            return None
        return self._to_entity(model)

    async def update(self, workflow: WorkflowDefinition) -> None:
        result = await self._session.execute(
            select(WorkflowModel).where(WorkflowModel.id == workflow.id)
        )
        model = result.scalar_one_or_none()

        if model:
            model.name = workflow.name
            model.description = workflow.description
            model.category = workflow.category
            model.status = workflow.status.value
            model.nodes_json = json.dumps([node.to_dict() for node in workflow.nodes])
            model.edges_json = json.dumps([edge.to_dict() for edge in workflow.edges])
            model.updated_at = workflow.updated_at
            await self._session.commit()

    async def record_run_result(self, workflow_id: str, succeeded: bool, finished_at: datetime) -> None:
        values = {
            "total_runs": WorkflowModel.total_runs + 1,
            "last_run_at": finished_at,
        }
        if succeeded:
            values["successful_runs"] = WorkflowModel.successful_runs + 1
        else:
            values["failed_runs"] = WorkflowModel.failed_runs + 1

        await self._session.execute(
            update(WorkflowModel).where(WorkflowModel.id == workflow_id).values(**values)
        )
        await self._session.commit()

    async def list_active_by_owner(self, owner_id: str) -> list[WorkflowDefinition]:
        result = await self._session.execute(
            select(WorkflowModel)
            .where(WorkflowModel.owner_id == str(owner_id))
            .where(WorkflowModel.status == WorkflowStatus.ACTIVE.value)
            .order_by(WorkflowModel.created_at)
        )
        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_active(self) -> list[WorkflowDefinition]:
        result = await self._session.execute(
            select(WorkflowModel)
            .where(WorkflowModel.status == WorkflowStatus.ACTIVE.value)
            .order_by(WorkflowModel.created_at)
        )
        return [self._to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _to_entity(model: WorkflowModel) -> WorkflowDefinition:
        return WorkflowDefinition(
            id=model.id,
            owner_id=model.owner_id,
            name=model.name,
            description=model.description,
            category=model.category,
            status=WorkflowStatus(model.status),
            nodes=[Node.from_dict(n) for n in json.loads(model.nodes_json)],
            edges=[Edge.from_dict(e) for e in json.loads(model.edges_json)],
            total_runs=model.total_runs,
            successful_runs=model.successful_runs,
            failed_runs=model.failed_runs,
            last_run_at=model.last_run_at,
            created_at=model.created_at or datetime.now(timezone.utc),
            updated_at=model.updated_at or datetime.now(timezone.utc),
        )
