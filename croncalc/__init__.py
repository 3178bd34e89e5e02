"""croncalc - next and previous run times for cron expressions."""

__version__ = "0.1.0"

from croncalc.cron_parse import (
    CronParseError,
    FieldPosition,
    InvalidExpression,
    InvalidFieldValue,
    ParsedFields,
    evaluate_field,
    format_schedule,
    parse_fields,
)
from croncalc.expression import Expression, parse
from croncalc.occurrence import ScanLimitExceeded, next_run, prev_run, search

__all__ = [
    "CronParseError",
    "Expression",
    "FieldPosition",
    "InvalidExpression",
    "InvalidFieldValue",
    "ParsedFields",
    "ScanLimitExceeded",
    "evaluate_field",
    "format_schedule",
    "next_run",
    "parse",
    "parse_fields",
    "prev_run",
    "search",
]
