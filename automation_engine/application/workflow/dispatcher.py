import time
from typing import Any

from automation_engine.application.workflow.actions.base import (
    ActionContext,
    ActionOutcome,
    BaseAction,
)
from automation_engine.domain.workflow.value_objects.schemas import NodeConfig, get_schema
from automation_engine.domain.workflow.value_objects.template import TemplateResolver
from automation_engine.ports.secondary.metrics import IMetrics
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


class ActionDispatcher:
    """
    Executes one action node through its registered handler.

    Config values are template-resolved against the branch context and parsed
    into the subtype's typed config before the handler sees them. Any exception
    raised below this point comes back as a failed ActionOutcome; whether the
    failure is fatal is decided by the subtype's schema.
    """

    def __init__(self, metrics: IMetrics, handlers: list[BaseAction] | None = None):
        self._metrics = metrics
        self._handlers: dict[str, BaseAction] = {}
        for handler in handlers or []:
            self.register_handler(handler)

    def register_handler(self, handler: BaseAction) -> None:
        self._handlers[handler.subtype] = handler

    @property
    def subtypes(self) -> set[str]:
        return set(self._handlers)

    async def execute(
        self, subtype: str, config: dict[str, Any], ctx: ActionContext
    ) -> ActionOutcome:
        start = time.perf_counter()
        resolved = TemplateResolver.resolve_config(config, ctx.context)
        schema = get_schema(subtype)
        handler = self._handlers.get(subtype)

        if handler is None:
            outcome = ActionOutcome.failure(f"Unknown action subtype: {subtype}")
        else:
            try:
                model_cls = schema.config_model if schema else NodeConfig
                outcome = await handler.execute(model_cls.model_validate(resolved), ctx)
            except Exception as e:
                outcome = ActionOutcome.failure(str(e) or type(e).__name__)

        outcome.input = resolved
        if not outcome.success:
            outcome.fatal = bool(schema and schema.halts_on_failure)

        duration = time.perf_counter() - start
        self._metrics.record_action(subtype, "success" if outcome.success else "failure", duration)

        if outcome.success:
            logger.info("action_dispatched", node_id=ctx.node_id, subtype=subtype, duration_ms=int(duration * 1000))
        else:
            logger.warning(
                "action_failed",
                node_id=ctx.node_id,
                subtype=subtype,
                error=outcome.error,
                fatal=outcome.fatal,
            )
        return outcome
