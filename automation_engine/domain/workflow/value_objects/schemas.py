from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from automation_engine.domain.workflow.entities.workflow import NodeType


class NodeConfig(BaseModel):
    """Typed view over a node's string-keyed config map."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class ScheduleTriggerConfig(NodeConfig):
    cron: str = ""


class SendEmailConfig(NodeConfig):
    to: str = ""
    subject: str = ""
    body: str = ""


class NotificationConfig(NodeConfig):
    title: str = ""
    body: str = ""


class CallWebhookConfig(NodeConfig):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=False)

    url: str = ""
    payload: Any = None


class GenerateAIContentConfig(NodeConfig):
    prompt: str = ""
    systemPrompt: str | None = None


class WaitConfig(NodeConfig):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=False)

    minutes: float = 0
    hours: float = 0

    @field_validator("minutes", "hours", mode="before")
    @classmethod
    def blank_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value


class InstagramPostConfig(NodeConfig):
    caption: str = ""


class TwitterPostConfig(NodeConfig):
    text: str = ""


@dataclass(frozen=True)
class NodeSchema:
    node_type: NodeType
    required_fields: tuple[str, ...] = ()
    config_model: type[NodeConfig] = NodeConfig
    halts_on_failure: bool = False


NODE_SCHEMAS: dict[str, NodeSchema] = {
    # Triggers
    "new_follower": NodeSchema(NodeType.TRIGGER),
    "stream_milestone": NodeSchema(NodeType.TRIGGER, ("threshold",)),
    "follower_milestone": NodeSchema(NodeType.TRIGGER, ("threshold",)),
    "new_sale": NodeSchema(NodeType.TRIGGER),
    "bopshop_sale": NodeSchema(NodeType.TRIGGER),
    "tip_received": NodeSchema(NodeType.TRIGGER),
    "schedule": NodeSchema(NodeType.TRIGGER, ("cron",), ScheduleTriggerConfig),
    "manual": NodeSchema(NodeType.TRIGGER),
    # Actions
    "send_email": NodeSchema(NodeType.ACTION, ("to", "subject"), SendEmailConfig),
    "send_notification": NodeSchema(NodeType.ACTION, ("title",), NotificationConfig),
    "notify_fans": NodeSchema(NodeType.ACTION, ("title",), NotificationConfig),
    "call_webhook": NodeSchema(NodeType.ACTION, ("url",), CallWebhookConfig),
    "generate_ai_content": NodeSchema(
        NodeType.ACTION, ("prompt",), GenerateAIContentConfig, halts_on_failure=True
    ),
    "wait": NodeSchema(NodeType.ACTION, (), WaitConfig),
    "post_instagram": NodeSchema(NodeType.ACTION, (), InstagramPostConfig),
    "post_twitter": NodeSchema(NodeType.ACTION, (), TwitterPostConfig),
    # Conditions and logic
    "if_else": NodeSchema(NodeType.CONDITION),
    "filter": NodeSchema(NodeType.CONDITION),
    "format": NodeSchema(NodeType.LOGIC),
    "merge": NodeSchema(NodeType.LOGIC),
}


def get_schema(subtype: str) -> NodeSchema | None:
    return NODE_SCHEMAS.get(subtype)


def required_fields(subtype: str) -> tuple[str, ...]:
    schema = NODE_SCHEMAS.get(subtype)
    return schema.required_fields if schema else ()


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()

