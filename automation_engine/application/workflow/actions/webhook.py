import json
from typing import Any

from automation_engine.application.workflow.actions.base import (
    ActionContext,
    ActionOutcome,
    BaseAction,
)
from automation_engine.domain.resilience.exceptions.resilience_exceptions import ProviderError
from automation_engine.domain.workflow.value_objects.schemas import CallWebhookConfig
from automation_engine.ports.secondary.providers import IWebhookCaller


def build_payload(raw: Any, ctx: ActionContext) -> Any:
    """
    Configured payloads may be a mapping, a JSON document or plain text.
    Without one, the triggering event's data is posted.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return ctx.event.to_dict()
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return {"message": str(raw)}


class CallWebhookAction(BaseAction):
    def __init__(self, webhook_caller: IWebhookCaller):
        self._webhook_caller = webhook_caller

    @property
    def subtype(self) -> str:
        return "call_webhook"

    async def execute(self, config: CallWebhookConfig, ctx: ActionContext) -> ActionOutcome:
        url = config.url.strip()
        if not url:
            return ActionOutcome(output={"called": False, "reason": "no_url"})

        response = await self._webhook_caller.post(url, build_payload(config.payload, ctx))
        status = int(response.get("status", 0))
        if status >= 400:
            raise ProviderError("webhook", f"{url} answered HTTP {status}")

        return ActionOutcome(output={"called": True, "url": url, "status": status})
