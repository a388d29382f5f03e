import operator
from dataclasses import dataclass
from typing import Any, Callable

from automation_engine.domain.workflow.value_objects.template import (
    MISSING,
    is_nullish,
    lookup_path,
    stringify,
    to_number,
)


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    # NaN on either side makes every comparison False
    def evaluate(field_value: Any, expected: Any) -> bool:
        return compare(to_number(field_value), to_number(expected))

    return evaluate


def _as_text(value: Any) -> str:
    # null and missing keep distinct spellings so they never compare equal
    if value is None:
        return "null"
    if value is MISSING:
        return "undefined"
    return stringify(value)


def _equals(field_value: Any, expected: Any) -> bool:
    return _as_text(field_value) == _as_text(expected)


def _contains(field_value: Any, expected: Any) -> bool:
    return _as_text(expected) in _as_text(field_value)


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": _equals,
    "not_equals": lambda field_value, expected: not _equals(field_value, expected),
    "greater_than": _numeric(operator.gt),
    "less_than": _numeric(operator.lt),
    "greater_or_equal": _numeric(operator.ge),
    "less_or_equal": _numeric(operator.le),
    "contains": _contains,
    "exists": lambda field_value, expected: not is_nullish(field_value),
}


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: Any = MISSING

    @classmethod
    def from_config(cls, config: dict | None) -> "Condition | None":
        """Build a condition from a node config; no `field` means no condition."""
        if not config or not config.get("field"):
            return None
        return cls(
            field=str(config["field"]),
            operator=str(config.get("operator") or ""),
            value=config.get("value", MISSING),
        )


class ConditionEvaluator:
    """
    Evaluates a single {field, operator, value} predicate against a context.

    Absent conditions and unknown operators pass. Evaluation never raises.
    """

    @staticmethod
    def evaluate(condition: Condition | None, context: dict[str, Any]) -> bool:
        if condition is None:
            return True

        evaluate = OPERATORS.get(condition.operator)
        if evaluate is None:
            return True

        field_value = lookup_path(context, condition.field)
        try:
            return bool(evaluate(field_value, condition.value))
        except Exception:
            return True
