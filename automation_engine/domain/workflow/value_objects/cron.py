from dataclasses import dataclass
from datetime import datetime

ALIASES = {
    "@hourly": "0 * * * *",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@weekly": "0 0 * * 0",
}

# (min, max) per field; day-of-week accepts 7 as a second Sunday
BOUNDS = ((0, 59), (0, 23), (1, 31), (1, 12), (0, 7))


def _number(text: str, field: str, min_value: int, max_value: int) -> int:
    if not text.isdigit():
        raise ValueError(f"Unsupported cron field: {field!r}")
    number = int(text)
    if number < min_value or number > max_value:
        raise ValueError(f"Cron value {number} out of range in {field!r}")
    return number


def _expand(field: str, min_value: int, max_value: int) -> frozenset[int]:
    """
    Expand one cron field into the set of values it allows.

    Each comma-separated part is `*`, `n`, `a-b`, optionally followed by
    `/step`. Steps count from the start of the part, so `*/2` on day-of-month
    means 1, 3, 5 and so on.
    """
    values: set[int] = set()
    for part in field.split(","):
        part = part.strip()
        if not part:
            raise ValueError(f"Unsupported cron field: {field!r}")

        base, _, step_text = part.partition("/")
        step = 1
        if step_text:
            step = _number(step_text, field, 1, max_value)

        if base == "*":
            start, end = min_value, max_value
        elif "-" in base:
            low, _, high = base.partition("-")
            start = _number(low, field, min_value, max_value)
            end = _number(high, field, min_value, max_value)
            if start > end:
                raise ValueError(f"Cron range {base!r} is reversed in {field!r}")
        else:
            start = _number(base, field, min_value, max_value)
            end = max_value if step_text else start

        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    """
    Five-field cron expression (minute hour day-of-month month day-of-week).

    Supports `*`, numbers, `a-b` ranges, `/n` steps, comma lists and the
    @hourly, @daily, @midnight and @weekly aliases. Day-of-week 0 and 7 both
    mean Sunday. All five fields must match.
    """

    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]

    @classmethod
    def parse(cls, expression: str) -> "CronExpression":
        text = ALIASES.get(expression.strip().lower(), expression)
        parts = text.split()
        if len(parts) != 5:
            raise ValueError(f"Cron expression must have 5 fields: {expression!r}")
        minutes, hours, days, months, weekdays = (
            _expand(field, low, high) for field, (low, high) in zip(parts, BOUNDS)
        )
        weekdays = frozenset(day % 7 for day in weekdays)
        return cls(expression, minutes, hours, days, months, weekdays)

    def matches(self, now: datetime) -> bool:
        cron_dow = (now.weekday() + 1) % 7  # Mon=1..Sun=0
        return (
            now.minute in self.minutes
            and now.hour in self.hours
            and now.day in self.days
            and now.month in self.months
            and cron_dow in self.weekdays
        )
