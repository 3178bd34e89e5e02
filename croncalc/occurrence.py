"""Next/previous occurrence search for parsed cron expressions.

The search walks one minute at a time from the reference instant and stops at
the first minute every field accepts. Month lengths, leap years and weekdays
come from ``datetime`` itself; aware instants are stepped in UTC so DST
transitions follow the instant's zone.
"""

import logging
from datetime import datetime, timedelta, timezone

from croncalc.cron_parse import ParsedFields, parse_fields
from croncalc.settings import get_max_scan_minutes

logger = logging.getLogger(__name__)

ONE_MINUTE = timedelta(minutes=1)


class ScanLimitExceeded(RuntimeError):
    def __init__(self, expression: str, start: datetime, limit: int):
        self.expression = expression
        self.start = start
        self.limit = limit
        super().__init__(f'No occurrence of "{expression}" within {limit} minutes of {start.isoformat()}')


def normalize(dt: datetime) -> datetime:
    """Truncate ``dt`` to the minute, keeping its tzinfo."""
    return dt.replace(second=0, microsecond=0)


def step(dt: datetime, delta: timedelta) -> datetime:
    if dt.tzinfo is None:
        return dt + delta
    return (dt.astimezone(timezone.utc) + delta).astimezone(dt.tzinfo)


def matches(fields: ParsedFields, dt: datetime) -> bool:
    return (
        dt.minute in fields.minute
        and dt.hour in fields.hour
        and dt.month in fields.month
        and fields.day_matches(dt.day, dt.isoweekday() % 7)  # 0=Sun, 6=Sat
    )


def _scan(fields: ParsedFields, start: datetime, delta: timedelta, limit: int | None) -> datetime:
    if limit is None:
        limit = get_max_scan_minutes()

    candidate = start
    for i in range(limit):
        if matches(fields, candidate):
            logger.debug("Matched %r at %s after %d steps", fields.expression, candidate.isoformat(), i)
            return candidate
        candidate = step(candidate, delta)

    raise ScanLimitExceeded(fields.expression, start, limit)


def next_run(fields: ParsedFields, reference: datetime, max_minutes: int | None = None) -> datetime:
    """First matching minute at or after ``reference``."""
    return _scan(fields, normalize(reference), ONE_MINUTE, max_minutes)


def prev_run(fields: ParsedFields, reference: datetime, max_minutes: int | None = None) -> datetime:
    """Last matching minute strictly before ``reference`` (truncated to the minute)."""
    return _scan(fields, step(normalize(reference), -ONE_MINUTE), -ONE_MINUTE, max_minutes)


def search(expression: str, reference: datetime, max_minutes: int | None = None) -> tuple[datetime, datetime]:
    """Parse ``expression`` and return its (next, previous) run around ``reference``.

    Raises InvalidExpression or InvalidFieldValue before any scanning happens,
    and ScanLimitExceeded when the schedule never fires within the scan limit.
    """
    fields = parse_fields(expression)
    logger.debug("Searching %r around %s", fields.expression, reference.isoformat())
    return (
        next_run(fields, reference, max_minutes),
        prev_run(fields, reference, max_minutes),
    )
