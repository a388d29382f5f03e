import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from cachetools import TTLCache

from automation_engine.application.workflow.actions.base import ActionContext
from automation_engine.application.workflow.dispatcher import ActionDispatcher
from automation_engine.domain.workflow.entities.run import NodeLog, RunStatus, WorkflowRun
from automation_engine.domain.workflow.entities.workflow import Node, NodeType, WorkflowDefinition
from automation_engine.domain.workflow.value_objects.condition import Condition, ConditionEvaluator
from automation_engine.domain.workflow.value_objects.graph import WorkflowGraph
from automation_engine.ports.secondary.metrics import IMetrics
from automation_engine.shared.config import settings
from automation_engine.shared.logger import bind_context, get_logger, unbind_context

logger = get_logger(__name__)

SUCCESS = "success"
FAILED = "failed"
SKIPPED = "skipped"


class _Traversal:
    """Mutable state shared by every branch of one start/resume call."""

    def __init__(self, run: WorkflowRun, graph: WorkflowGraph):
        self.run = run
        self.graph = graph
        # Action nodes already dispatched (this call or an earlier one) never run twice
        self.dispatched: set[str] = {
            log.node_id
            for log in run.node_logs
            if log.node_type == NodeType.ACTION.value and log.status != SKIPPED
        }


class WorkflowRunner:
    """
    Advances one run through its workflow graph.

    Traversal is depth-first from a start node. Sibling branches run concurrently
    and each gets its own copy of the context, so keys added by an action only
    flow downstream on that branch; every node's output is also kept run-wide
    under context["nodes"][node_id]. A `wait` action parks its branch on the run
    record instead of blocking. The runner never touches storage: callers load
    and persist the run around `start`/`resume`.
    """

    _graph_cache = TTLCache(
        maxsize=settings.GRAPH_CACHE_MAX_SIZE, ttl=settings.GRAPH_CACHE_TTL_SECONDS
    )

    def __init__(self, dispatcher: ActionDispatcher, metrics: IMetrics | None = None):
        self._dispatcher = dispatcher
        self._metrics = metrics

    def graph_for(self, definition: WorkflowDefinition) -> WorkflowGraph:
        key = (definition.id, definition.updated_at)
        graph = self._graph_cache.get(key)
        if graph is None:
            graph = WorkflowGraph.from_definition(definition)
            self._graph_cache[key] = graph
        return graph

    async def start(self, run: WorkflowRun, definition: WorkflowDefinition, trigger_node_id: str) -> WorkflowRun:
        graph = self.graph_for(definition)
        run.trigger_node_id = trigger_node_id
        trigger = graph.get_node(trigger_node_id)

        bind_context({"run_id": run.id, "workflow_id": run.workflow_id})
        started = time.perf_counter()
        try:
            if trigger is not None:
                run.record_log(
                    NodeLog(
                        node_id=trigger.id,
                        node_type=trigger.type.value,
                        subtype=trigger.subtype,
                        status=SUCCESS,
                        input=trigger.config,
                        output=run.triggering_event.to_dict(),
                    )
                )
                traversal = _Traversal(run, graph)
                await self._advance(traversal, trigger.id, run.context, frozenset({trigger.id}))
            else:
                run.record_error(trigger_node_id, "", "Trigger node not found in definition", fatal=True)
            run.settle()
        finally:
            self._finish(run, started)
        return run

    async def resume(self, run: WorkflowRun, definition: WorkflowDefinition, now: datetime | None = None) -> WorkflowRun:
        """Continue every parked branch whose resume time has passed."""
        now = now or datetime.now(timezone.utc)
        graph = self.graph_for(definition)

        bind_context({"run_id": run.id, "workflow_id": run.workflow_id})
        started = time.perf_counter()
        try:
            run.transition_to(RunStatus.RUNNING)
            traversal = _Traversal(run, graph)
            due = run.pop_due_branches(now)
            await asyncio.gather(
                *[
                    self._advance(traversal, branch.node_id, run.branch_context(branch), frozenset({branch.node_id}))
                    for branch in due
                ]
            )
            run.settle()
        finally:
            self._finish(run, started)
        return run

    def _finish(self, run: WorkflowRun, started: float) -> None:
        duration = time.perf_counter() - started
        if self._metrics and run.status != RunStatus.RUNNING:
            self._metrics.record_run_finished(run.status.value, duration)
        logger.info(
            "run_traversal_finished",
            status=run.status.value,
            waiting_branches=len(run.suspended_branches),
            errors=len(run.errors),
        )
        unbind_context("run_id", "workflow_id")

    async def _advance(
        self, traversal: _Traversal, node_id: str, context: dict[str, Any], path: frozenset[str]
    ) -> None:
        successors = traversal.graph.successors(node_id)
        if not successors:
            return
        await asyncio.gather(
            *[self._visit(traversal, node, dict(context), path) for node in successors]
        )

    async def _visit(
        self, traversal: _Traversal, node: Node, context: dict[str, Any], path: frozenset[str]
    ) -> None:
        run = traversal.run
        if run.status == RunStatus.CANCELLED:
            return
        if node.id in path:
            logger.warning("cycle_skipped", node_id=node.id)
            return
        path = path | {node.id}

        if node.type.is_condition:
            passed = ConditionEvaluator.evaluate(Condition.from_config(node.config), context)
            run.record_log(
                NodeLog(
                    node_id=node.id,
                    node_type=node.type.value,
                    subtype=node.subtype,
                    status=SUCCESS if passed else SKIPPED,
                    input=node.config,
                    output={"passed": passed},
                )
            )
            if not passed:
                logger.info("branch_pruned", node_id=node.id, subtype=node.subtype)
                return
            await self._advance(traversal, node.id, context, path)
            return

        if node.type == NodeType.TRIGGER:
            await self._advance(traversal, node.id, context, path)
            return

        if node.id in traversal.dispatched:
            return
        traversal.dispatched.add(node.id)

        started = time.perf_counter()
        outcome = await self._dispatcher.execute(
            node.subtype,
            node.config,
            ActionContext(
                run_id=run.id,
                workflow_id=run.workflow_id,
                owner_id=run.owner_id,
                node_id=node.id,
                event=run.triggering_event,
                context=context,
            ),
        )
        run.record_log(
            NodeLog(
                node_id=node.id,
                node_type=node.type.value,
                subtype=node.subtype,
                status=SUCCESS if outcome.success else FAILED,
                input=outcome.input,
                output=outcome.output,
                error=outcome.error,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
        )
        run.record_output(node.id, outcome.output)

        if not outcome.success:
            run.record_error(node.id, node.subtype, outcome.error or "unknown error", outcome.fatal)
            if outcome.fatal:
                return

        context.update(outcome.context_updates)

        if outcome.suspend_ms:
            resume_at = datetime.now(timezone.utc) + timedelta(milliseconds=outcome.suspend_ms)
            run.suspend_branch(node.id, resume_at, context)
            logger.info("branch_suspended", node_id=node.id, resume_at=resume_at.isoformat())
            return

        await self._advance(traversal, node.id, context, path)
