from typing import Any, Callable

from automation_engine.domain.workflow.entities.run import Event
from automation_engine.domain.workflow.value_objects.template import is_nullish, to_number

# Trigger subtypes that correspond one-to-one with an incoming event type.
EVENT_TRIGGER_SUBTYPES = frozenset(
    {
        "new_follower",
        "stream_milestone",
        "follower_milestone",
        "new_sale",
        "bopshop_sale",
        "tip_received",
    }
)

SCHEDULE_SUBTYPE = "schedule"


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if not is_nullish(value):
            return value
    return 0


def _threshold_reached(config: dict[str, Any], event: Event) -> bool:
    count = to_number(_first_present(event.data, ("count", "streams", "followers")))
    threshold = config.get("threshold")
    return count >= to_number(0 if is_nullish(threshold) or threshold == "" else threshold)


def _tip_reached(config: dict[str, Any], event: Event) -> bool:
    amount = event.data.get("amount")
    minimum = config.get("minAmount")
    return to_number(0 if is_nullish(amount) else amount) >= to_number(
        0 if is_nullish(minimum) or minimum == "" else minimum
    )


def _has(key: str) -> Callable[[dict[str, Any], Event], bool]:
    return lambda config, event: not is_nullish(event.data.get(key))


REFINEMENTS: dict[str, Callable[[dict[str, Any], Event], bool]] = {
    "stream_milestone": _threshold_reached,
    "follower_milestone": _threshold_reached,
    "new_follower": _has("followerId"),
    "new_sale": _has("orderId"),
    "bopshop_sale": _has("orderId"),
    "tip_received": _tip_reached,
}


class TriggerMatcher:
    """Stateless check of whether an event satisfies a trigger node's config."""

    @staticmethod
    def effective_config(subtype: str, config: dict[str, Any]) -> dict[str, Any]:
        """Event-backed subtypes imply their own eventType when the author left it out."""
        if subtype in EVENT_TRIGGER_SUBTYPES and not config.get("eventType"):
            return {**config, "eventType": subtype}
        return config

    @staticmethod
    def matches(config: dict[str, Any], event: Event) -> bool:
        event_type = config.get("eventType")
        if not event_type:
            return True
        if event_type != event.event_type:
            return False

        refine = REFINEMENTS.get(event_type)
        if refine is None:
            return True
        try:
            return bool(refine(config, event))
        except Exception:
            return False
