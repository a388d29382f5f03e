from automation_engine.application.workflow.launcher import RunLauncher
from automation_engine.domain.workflow.entities.run import Event
from automation_engine.domain.workflow.entities.workflow import Node, WorkflowDefinition
from automation_engine.domain.workflow.value_objects.trigger import SCHEDULE_SUBTYPE, TriggerMatcher
from automation_engine.ports.secondary.workflow_repository import IWorkflowRepository
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


def find_matching_trigger(definition: WorkflowDefinition, event: Event) -> Node | None:
    """First trigger node of the definition that accepts the event, if any."""
    for node in definition.trigger_nodes():
        if node.subtype == SCHEDULE_SUBTYPE:
            continue
        config = TriggerMatcher.effective_config(node.subtype, node.config)
        if TriggerMatcher.matches(config, event):
            return node
    return None


class FireWorkflowEventUseCase:
    """
    Process-wide entry point for domain events.

    Every active workflow owned by the event's actor is checked against the
    event; each match starts one run. Matching, traversal and provider errors
    are recorded on the runs and never raised to the caller. Events are not
    deduplicated: delivering the same event twice creates two runs.
    """

    def __init__(self, workflow_repository: IWorkflowRepository, launcher: RunLauncher):
        self._workflow_repository = workflow_repository
        self._launcher = launcher

    async def execute(self, event: Event) -> list[str]:
        definitions = await self._workflow_repository.list_active_by_owner(event.occurred_for)

        matches = []
        for definition in definitions:
            if not definition.is_active:
                continue
            trigger = find_matching_trigger(definition, event)
            if trigger is not None:
                matches.append((definition, trigger))

        logger.info(
            "event_routed",
            event_type=event.event_type,
            occurred_for=event.occurred_for,
            candidates=len(definitions),
            matched=len(matches),
        )
        if not matches:
            return []

        runs = await self._launcher.launch(matches, event)
        return [run.id for run in runs]
