import json
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from automation_engine.adapters.secondary.persistence.models import (
    WorkflowRunLogModel,
    WorkflowRunModel,
)
from automation_engine.domain.workflow.entities.run import (
    Event,
    NodeLog,
    RunStatus,
    SuspendedBranch,
    WorkflowRun,
)
from automation_engine.ports.secondary.run_repository import IRunRepository


class PostgresRunRepository(IRunRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, run: WorkflowRun) -> None:
        model = WorkflowRunModel(id=run.id, workflow_id=run.workflow_id, owner_id=run.owner_id)
        self._apply(model, run)
        self._session.add(model)
        await self._session.commit()

    async def get_by_id(self, run_id: str) -> WorkflowRun | None:
        result = await self._session.execute(
            select(WorkflowRunModel).where(WorkflowRunModel.id == run_id)
        )
        model = result.scalar_one_or_none()

        if not model:
            return None

        logs = await self._session.execute(
            select(WorkflowRunLogModel)
            .where(WorkflowRunLogModel.run_id == run_id)
            .order_by(WorkflowRunLogModel.id)
        )
        return self._to_entity(model, [self._log_to_entity(log) for log in logs.scalars().all()])

    async def update(self, run: WorkflowRun) -> bool:
        result = await self._session.execute(
            select(WorkflowRunModel).where(WorkflowRunModel.id == run.id).with_for_update()
        )
        model = result.scalar_one_or_none()

        if not model:
            return False
        if model.status == RunStatus.CANCELLED.value:
            await self._session.rollback()
            return False

        self._apply(model, run)

        persisted = await self._session.execute(
            select(func.count()).select_from(WorkflowRunLogModel).where(WorkflowRunLogModel.run_id == run.id)
        )
        for log in run.node_logs[persisted.scalar_one():]:
            self._session.add(
                WorkflowRunLogModel(
                    run_id=run.id,
                    node_id=log.node_id,
                    node_type=log.node_type,
                    subtype=log.subtype,
                    status=log.status,
                    input_json=json.dumps(log.input, default=str),
                    output_json=json.dumps(log.output, default=str) if log.output is not None else None,
                    error=log.error,
                    duration_ms=log.duration_ms,
                    executed_at=log.executed_at,
                )
            )
        await self._session.commit()
        return True

    async def list_due_waiting(self, now: datetime, limit: int) -> list[WorkflowRun]:
        result = await self._session.execute(
            select(WorkflowRunModel)
            .where(WorkflowRunModel.status == RunStatus.WAITING.value)
            .where(WorkflowRunModel.scheduled_resume_at <= now)
            .order_by(WorkflowRunModel.scheduled_resume_at)
            .limit(limit)
        )
        return [self._to_entity(model, []) for model in result.scalars().all()]

    @staticmethod
    def _apply(model: WorkflowRunModel, run: WorkflowRun) -> None:
        model.status = run.status.value
        model.event_json = json.dumps(run.triggering_event.to_dict(), default=str)
        model.context_json = json.dumps(run.context, default=str)
        model.trigger_node_id = run.trigger_node_id
        model.current_node_id = run.current_node_id
        model.scheduled_resume_at = run.scheduled_resume_at
        model.suspended_json = json.dumps(
            [branch.to_dict() for branch in run.suspended_branches], default=str
        )
        model.errors_json = json.dumps(run.errors, default=str)
        model.halted = run.halted
        model.created_at = run.created_at
        model.completed_at = run.completed_at

    @staticmethod
    def _to_entity(model: WorkflowRunModel, logs: list[NodeLog]) -> WorkflowRun:
        return WorkflowRun(
            id=model.id,
            workflow_id=model.workflow_id,
            owner_id=model.owner_id,
            triggering_event=Event.from_dict(json.loads(model.event_json)),
            status=RunStatus(model.status),
            context=json.loads(model.context_json),
            trigger_node_id=model.trigger_node_id,
            current_node_id=model.current_node_id,
            scheduled_resume_at=model.scheduled_resume_at,
            suspended_branches=[
                SuspendedBranch.from_dict(b) for b in json.loads(model.suspended_json)
            ],
            errors=json.loads(model.errors_json),
            node_logs=logs,
            halted=model.halted,
            created_at=model.created_at,
            completed_at=model.completed_at,
        )

    @staticmethod
    def _log_to_entity(model: WorkflowRunLogModel) -> NodeLog:
        return NodeLog(
            node_id=model.node_id,
            node_type=model.node_type,
            subtype=model.subtype,
            status=model.status,
            input=json.loads(model.input_json),
            output=json.loads(model.output_json) if model.output_json else None,
            error=model.error,
            duration_ms=model.duration_ms,
            executed_at=model.executed_at,
        )
