from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from automation_engine.domain.workflow.entities.run import Event
from automation_engine.domain.workflow.value_objects.schemas import NodeConfig


@dataclass(frozen=True)
class ActionContext:
    """Everything an action handler may read besides its own config."""

    run_id: str
    workflow_id: str
    owner_id: str
    node_id: str
    event: Event
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionOutcome:
    """
    Non-throwing result of one dispatch.

    Attributes:
        success: False when the provider call (or config parsing) failed.
        output: Subtype-specific record, e.g. {"sent": True, "to": ...}.
        error: Failure message when success is False.
        fatal: Set by the dispatcher for failures that must halt the branch.
        context_updates: Keys merged into the branch context for downstream nodes.
        suspend_ms: Delay requested by a `wait` action.
        input: The resolved config the handler actually ran with.
    """

    success: bool = True
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    fatal: bool = False
    context_updates: dict[str, Any] = field(default_factory=dict)
    suspend_ms: int | None = None
    input: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str, **kwargs) -> "ActionOutcome":
        return cls(success=False, error=error, output={"success": False, "error": error}, **kwargs)


class BaseAction(ABC):
    @property
    @abstractmethod
    def subtype(self) -> str:
        pass

    @abstractmethod
    async def execute(self, config: NodeConfig, ctx: ActionContext) -> ActionOutcome:
        pass
