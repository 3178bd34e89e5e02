"""Parsed schedule with its next and previous run around a reference instant."""

from dataclasses import dataclass
from datetime import datetime

from croncalc import settings
from croncalc.cron_parse import expand_macro, parse_fields
from croncalc.occurrence import ONE_MINUTE, next_run, normalize, prev_run, search, step

_STRICT_FORMAT = "%Y-%m-%d %H:%M:%S"


def _zone_name(dt: datetime) -> str | None:
    if dt.tzinfo is None:
        return None
    return getattr(dt.tzinfo, "key", None) or dt.tzname()


@dataclass(frozen=True)
class Expression:
    expression: str
    next_run: datetime
    prev_run: datetime

    def is_due(self, when: datetime | None = None, strict: bool = False) -> bool:
        """Whether the schedule fires at ``when`` (default: now), to the minute.

        With ``strict`` the wall-clock time and the timezone name must both be
        identical, not just the instant.
        """
        when = normalize(when or settings.now())
        if strict:
            return (
                self.next_run.strftime(_STRICT_FORMAT) == when.strftime(_STRICT_FORMAT)
                and _zone_name(self.next_run) == _zone_name(when)
            )
        return self.next_run == when

    def reparse(self, reference: datetime | None = None) -> "Expression":
        return parse(self.expression, reference)

    def upcoming(self, count: int) -> list[datetime]:
        fields = parse_fields(self.expression)
        runs = [self.next_run]
        while len(runs) < count:
            runs.append(next_run(fields, step(runs[-1], ONE_MINUTE)))
        return runs[:count]

    def preceding(self, count: int) -> list[datetime]:
        fields = parse_fields(self.expression)
        runs = [self.prev_run]
        while len(runs) < count:
            runs.append(prev_run(fields, runs[-1]))
        return runs[:count]


def parse(expression: str, reference: datetime | None = None) -> Expression:
    """Parse ``expression`` and resolve its runs around ``reference`` (default: now)."""
    reference = reference or settings.now()
    nxt, prev = search(expression, reference)
    return Expression(
        expression=" ".join(expand_macro(expression).split()),
        next_run=nxt,
        prev_run=prev,
    )
