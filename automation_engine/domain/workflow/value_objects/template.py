import json
import math
import re
from typing import Any


class _Missing:
    """Marker for a path segment that does not exist (distinct from an explicit None)."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def lookup_path(context: Any, path: str) -> Any:
    """
    Walk a dot path through nested mappings and sequences.

    Returns MISSING as soon as a segment is absent or the current value cannot
    be indexed. Never raises.
    """
    current = context
    for segment in path.split("."):
        segment = segment.strip()
        if isinstance(current, dict):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def is_nullish(value: Any) -> bool:
    return value is None or value is MISSING


def stringify(value: Any) -> str:
    """Default string form: lowercase booleans, no trailing '.0' on whole floats."""
    if is_nullish(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion: None and blank strings become 0, missing or unparseable input becomes NaN."""
    if value is None:
        return 0.0
    if value is MISSING:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


class TemplateResolver:
    """
    Interpolates {{ path.to.value }} tokens against a run context tree.

    Tokens whose path does not resolve to a value are left in place untouched,
    so a broken reference stays visible in the rendered output.
    """

    PATTERN = re.compile(r"\{\{([^}]+)\}\}")

    @classmethod
    def resolve(cls, text: str, context: dict[str, Any]) -> str:
        if not text:
            return ""

        def replacer(match: re.Match) -> str:
            value = lookup_path(context, match.group(1))
            if is_nullish(value):
                return match.group(0)
            return stringify(value)

        return cls.PATTERN.sub(replacer, text)

    @classmethod
    def resolve_config(cls, config: dict, context: dict[str, Any]) -> dict:
        """Recursively resolve every string found in a config structure."""
        resolved = {}
        for key, value in config.items():
            resolved[key] = cls._resolve_value(value, context)
        return resolved

    @classmethod
    def _resolve_value(cls, value, context: dict[str, Any]):
        if isinstance(value, str):
            return cls.resolve(value, context)
        elif isinstance(value, dict):
            return cls.resolve_config(value, context)
        elif isinstance(value, list):
            return [cls._resolve_value(item, context) for item in value]
        else:
            return value
