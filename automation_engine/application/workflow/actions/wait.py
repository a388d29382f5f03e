from automation_engine.application.workflow.actions.base import (
    ActionContext,
    ActionOutcome,
    BaseAction,
)
from automation_engine.domain.workflow.value_objects.schemas import WaitConfig

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000


def compute_delay_ms(minutes: float, hours: float) -> int:
    return int(round(minutes * MS_PER_MINUTE + hours * MS_PER_HOUR))


class WaitAction(BaseAction):
    """Requests suspension of the current branch; the runner persists it and returns."""

    @property
    def subtype(self) -> str:
        return "wait"

    async def execute(self, config: WaitConfig, ctx: ActionContext) -> ActionOutcome:
        delay_ms = max(compute_delay_ms(config.minutes, config.hours), 0)
        return ActionOutcome(output={"waited": True, "delay_ms": delay_ms}, suspend_ms=delay_ms)
