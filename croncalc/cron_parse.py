"""Cron expression parser.

Turns a five-field expression (minute hour day-of-month month day-of-week)
into the set of values each field allows.

Supported syntax per field:
- "*"          -> every value in the field's boundary
- "5"          -> a single value
- "1-5"        -> inclusive range
- "*/15"       -> step over the whole boundary
- "10/15"      -> step from 10 to the end of the boundary
- "1-30/2"     -> step over a range
- "1,5-7,*/20" -> list of any of the above
- JAN..DEC and SUN..SAT (case-insensitive), and 7 for Sunday
- @yearly, @annually, @monthly, @weekly, @daily, @midnight, @hourly
"""

import logging
import re
from dataclasses import dataclass
from enum import IntEnum

logger = logging.getLogger(__name__)


class FieldPosition(IntEnum):
    MINUTE = 0
    HOUR = 1
    DAY_OF_MONTH = 2
    MONTH = 3
    DAY_OF_WEEK = 4

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


BOUNDARIES: dict[FieldPosition, tuple[int, int]] = {
    FieldPosition.MINUTE: (0, 59),
    FieldPosition.HOUR: (0, 23),
    FieldPosition.DAY_OF_MONTH: (1, 31),
    FieldPosition.MONTH: (1, 12),
    FieldPosition.DAY_OF_WEEK: (0, 6),
}

MONTH_NAMES = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]
DAY_NAMES = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]

NAMED_VALUES: dict[FieldPosition, dict[str, int]] = {
    FieldPosition.MONTH: {name: i for i, name in enumerate(MONTH_NAMES, start=1)},
    FieldPosition.DAY_OF_WEEK: {name: i for i, name in enumerate(DAY_NAMES)} | {"7": 0},
}

MACROS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_NUMERIC = re.compile(r"[0-9]+")


class CronParseError(Exception):
    pass


class InvalidExpression(CronParseError):
    def __init__(self, expression: str, count: int):
        self.expression = expression
        self.count = count
        super().__init__(
            f'The expression "{expression}" has an attribute count mismatch. '
            f"Received {count}, but expected {len(FieldPosition)}."
        )


class InvalidFieldValue(CronParseError):
    def __init__(self, position: FieldPosition, token: str, reason: str):
        self.position = position
        self.token = token
        self.boundary = BOUNDARIES[position]
        super().__init__(f'The {position.label} attribute "{token}" {reason}.')


@dataclass(frozen=True)
class ParsedFields:
    """Allowed values for each field of one expression.

    ``dom_wildcard``/``dow_wildcard`` record whether the raw day tokens were a
    bare "*", which decides how the two day fields combine.
    """

    expression: str
    minute: frozenset[int]
    hour: frozenset[int]
    day_of_month: frozenset[int]
    month: frozenset[int]
    day_of_week: frozenset[int]
    dom_wildcard: bool
    dow_wildcard: bool

    def values(self, position: FieldPosition) -> frozenset[int]:
        return getattr(self, position.name.lower())

    @property
    def tokens(self) -> list[str]:
        return self.expression.split()

    def day_matches(self, day_of_month: int, day_of_week: int) -> bool:
        in_dom = day_of_month in self.day_of_month
        in_dow = day_of_week in self.day_of_week
        if not self.dom_wildcard and not self.dow_wildcard:
            return in_dom or in_dow
        return in_dom and in_dow


def _resolve_named(position: FieldPosition, token: str) -> str:
    named = NAMED_VALUES.get(position, {})
    upper = token.upper()
    if upper in named:
        return str(named[upper])
    return token


def _to_number(position: FieldPosition, token: str, named: bool = True) -> int:
    token = token.strip()
    if named:
        token = _resolve_named(position, token)
    if not _NUMERIC.fullmatch(token):
        raise InvalidFieldValue(position, token, "is not numeric")

    value = int(token)
    min_val, max_val = BOUNDARIES[position]
    if value < min_val or value > max_val:
        raise InvalidFieldValue(position, token, f"is not within the valid boundaries of {min_val}-{max_val}")
    return value


def _parse_range(position: FieldPosition, field: str) -> tuple[int, int]:
    parts = field.split("-")
    if len(parts) != 2:
        raise InvalidFieldValue(position, field, "contains a range with more than 2 parts")

    start = _to_number(position, parts[0])
    end = _to_number(position, parts[1])
    if start > end:
        raise InvalidFieldValue(position, field, "cannot have a lower bound that is greater than the higher bound")
    return start, end


def _parse_step(position: FieldPosition, field: str) -> set[int]:
    parts = field.split("/")
    if len(parts) != 2:
        raise InvalidFieldValue(position, field, "contains a step with more than 2 parts")

    base, step_str = parts[0].strip(), parts[1].strip()
    if not base or not step_str:
        raise InvalidFieldValue(position, field, "is missing a step base or step value")

    if base == "*":
        start, end = BOUNDARIES[position]
    elif "-" not in base:
        start = _to_number(position, base)
        end = BOUNDARIES[position][1]
    else:
        start, end = _parse_range(position, base)

    step = _to_number(position, step_str, named=False)
    if step < 1:
        raise InvalidFieldValue(position, field, "must have a step of at least 1")

    values = [start]
    while values[-1] + step <= end:
        values.append(values[-1] + step)
    return set(values)


def evaluate_field(position: FieldPosition, field: str) -> set[int]:
    """Return every value ``field`` allows at ``position``.

    Raises InvalidFieldValue when the token is malformed or out of bounds.
    """
    field = field.strip()
    named = _resolve_named(position, field)
    if named != field:
        return evaluate_field(position, named)

    if "," in field:
        values: set[int] = set()
        for part in field.split(","):
            values |= evaluate_field(position, part)
        return values

    if "/" in field:
        return _parse_step(position, field)

    if "-" in field:
        start, end = _parse_range(position, field)
        return set(range(start, end + 1))

    if _NUMERIC.fullmatch(field):
        return {_to_number(position, field)}

    if field == "*":
        min_val, max_val = BOUNDARIES[position]
        return set(range(min_val, max_val + 1))

    raise InvalidFieldValue(position, field, "is invalid")


def expand_macro(expression: str) -> str:
    expression = expression.strip()
    expanded = MACROS.get(expression, expression)
    if expanded != expression:
        logger.debug("Expanded macro %s to %r", expression, expanded)
    return expanded


def split_expression(expression: str) -> list[str]:
    parts = expression.split()
    if len(parts) != len(FieldPosition):
        raise InvalidExpression(expression, len(parts))
    return parts


def parse_fields(expression: str) -> ParsedFields:
    """Expand macros, split and evaluate all five fields of ``expression``."""
    expression = expand_macro(expression)
    parts = split_expression(expression)

    sets = {}
    for position, token in zip(FieldPosition, parts):
        sets[position] = frozenset(evaluate_field(position, token))
        logger.debug("Field %s %r -> %s", position.label, token, sorted(sets[position]))

    return ParsedFields(
        expression=" ".join(parts),
        minute=sets[FieldPosition.MINUTE],
        hour=sets[FieldPosition.HOUR],
        day_of_month=sets[FieldPosition.DAY_OF_MONTH],
        month=sets[FieldPosition.MONTH],
        day_of_week=sets[FieldPosition.DAY_OF_WEEK],
        dom_wildcard=parts[FieldPosition.DAY_OF_MONTH] == "*",
        dow_wildcard=parts[FieldPosition.DAY_OF_WEEK] == "*",
    )


def _is_full(fields: ParsedFields, position: FieldPosition) -> bool:
    min_val, max_val = BOUNDARIES[position]
    return fields.values(position) == frozenset(range(min_val, max_val + 1))


def _minute_interval(minutes: frozenset[int]) -> int | None:
    ordered = sorted(minutes)
    if len(ordered) < 2 or ordered[0] != 0 or 60 % (ordered[1] - ordered[0]):
        return None
    step = ordered[1] - ordered[0]
    return step if ordered == list(range(0, 60, step)) else None


def format_schedule(fields: ParsedFields) -> str:
    days = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    days_or = not fields.dom_wildcard and not fields.dow_wildcard
    any_month = _is_full(fields, FieldPosition.MONTH)
    full_dom = _is_full(fields, FieldPosition.DAY_OF_MONTH)
    full_dow = _is_full(fields, FieldPosition.DAY_OF_WEEK)
    # a full day-of-month that is not a bare "*" ORs with any weekday into every day
    every_day = any_month and full_dom and (not fields.dom_wildcard or full_dow)
    on_weekdays = any_month and fields.dom_wildcard and not every_day

    if every_day and _is_full(fields, FieldPosition.HOUR):
        if _is_full(fields, FieldPosition.MINUTE):
            return "Every minute"
        mins = _minute_interval(fields.minute)
        if mins:
            return f"Every {mins} minutes"
        if len(fields.minute) == 1:
            return f"Hourly at minute {next(iter(fields.minute))}"

    if (every_day or on_weekdays) and len(fields.minute) == 1:
        minute = next(iter(fields.minute))
        hours = sorted(fields.hour)
        times = ", ".join(f"{h:02d}:{minute:02d}" for h in hours)

        if every_day:
            return f"Daily at {times}"
        weekdays = sorted(fields.day_of_week)
        if len(weekdays) == 1 and len(hours) == 1:
            return f"{days[weekdays[0]]} at {times}"
        day_str = ", ".join(days[w] for w in weekdays)
        return f"At {times} on {day_str}"

    parts = []
    day_parts = []
    for position in FieldPosition:
        if _is_full(fields, position):
            continue
        values = ", ".join(str(v) for v in sorted(fields.values(position)))
        if days_or and position in (FieldPosition.DAY_OF_MONTH, FieldPosition.DAY_OF_WEEK):
            day_parts.append(f"{position.label} {values}")
        else:
            parts.append(f"{position.label} {values}")

    # one full side of an OR leaves every day, so only a pair is worth naming
    if len(day_parts) == 2:
        parts.append(" or ".join(day_parts))
    return "At " + "; ".join(parts)
