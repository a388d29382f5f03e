from automation_engine.application.workflow.actions.base import (
    ActionContext,
    ActionOutcome,
    BaseAction,
)
from automation_engine.domain.resilience.exceptions.resilience_exceptions import ProviderError
from automation_engine.domain.workflow.value_objects.schemas import GenerateAIContentConfig
from automation_engine.ports.secondary.providers import ITextGenerator
from automation_engine.shared.config import settings

# Downstream nodes reference the generated text as {{ai_content}}.
CONTEXT_KEY = "ai_content"


class GenerateAIContentAction(BaseAction):
    def __init__(self, text_generator: ITextGenerator):
        self._text_generator = text_generator

    @property
    def subtype(self) -> str:
        return "generate_ai_content"

    async def execute(self, config: GenerateAIContentConfig, ctx: ActionContext) -> ActionOutcome:
        system_prompt = config.systemPrompt or settings.AI_DEFAULT_SYSTEM_PROMPT
        result = await self._text_generator.generate(system_prompt, config.prompt)

        text = result.get("text")
        if not text:
            raise ProviderError("text_generator", "empty completion")

        return ActionOutcome(
            output={"generated": True, "content": text},
            context_updates={CONTEXT_KEY: text},
        )
