"""CLI for croncalc - inspect when a cron expression fires."""

import logging
from datetime import datetime
from typing import Annotated, NoReturn, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from croncalc import __version__
from croncalc.cron_parse import CronParseError, FieldPosition, format_schedule, parse_fields
from croncalc.expression import Expression, parse
from croncalc.occurrence import ScanLimitExceeded
from croncalc.settings import SettingsError, get_timezone, get_zone

app = typer.Typer(name="croncalc", help="Compute next and previous run times of cron expressions.", add_completion=False)
console = Console()

ExprArg = Annotated[str, typer.Argument(help="Cron expression (5 fields or @macro)")]
AtOpt = Annotated[Optional[str], typer.Option("--at", "-a", help="Reference time (ISO 8601), default now")]
TzOpt = Annotated[Optional[str], typer.Option("--tz", help="Timezone name, e.g. Europe/Berlin")]
CountOpt = Annotated[int, typer.Option("--count", "-c", min=1, help="Runs to show")]


def _fail(message: object) -> NoReturn:
    rprint(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def _reference(at: str | None, tz: str | None) -> datetime:
    zone = get_zone(tz) if tz else get_timezone()
    if at is None:
        return datetime.now(zone)

    try:
        when = datetime.fromisoformat(at)
    except ValueError:
        raise SettingsError(f"Invalid --at value: {at}") from None

    if when.tzinfo is None:
        return when.replace(tzinfo=zone)
    return when.astimezone(zone) if tz else when


def _resolve(expression: str, at: str | None, tz: str | None) -> tuple[Expression, datetime]:
    try:
        reference = _reference(at, tz)
        return parse(expression, reference), reference
    except (CronParseError, ScanLimitExceeded, SettingsError) as e:
        _fail(e)


def _runs(expr: Expression, count: int, forward: bool) -> list[datetime]:
    try:
        return expr.upcoming(count) if forward else expr.preceding(count)
    except ScanLimitExceeded as e:
        _fail(e)


def _fmt(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M %Z").strip()


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"croncalc {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[Optional[bool], typer.Option("--version", "-v", callback=_version_callback, is_eager=True)] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
            force=True,
        )


@app.command(name="next")
def next_cmd(expression: ExprArg, at: AtOpt = None, tz: TzOpt = None, count: CountOpt = 1) -> None:
    """Show the next run(s)."""
    expr, reference = _resolve(expression, at, tz)
    rprint(f"[bold]{expr.expression}[/bold] from {_fmt(reference)}")
    for run in _runs(expr, count, forward=True):
        rprint(f"  [green]{_fmt(run)}[/green]")


@app.command(name="prev")
def prev_cmd(expression: ExprArg, at: AtOpt = None, tz: TzOpt = None, count: CountOpt = 1) -> None:
    """Show the previous run(s)."""
    expr, reference = _resolve(expression, at, tz)
    rprint(f"[bold]{expr.expression}[/bold] before {_fmt(reference)}")
    for run in _runs(expr, count, forward=False):
        rprint(f"  [cyan]{_fmt(run)}[/cyan]")


@app.command()
def due(
    expression: ExprArg,
    at: AtOpt = None,
    tz: TzOpt = None,
    strict: Annotated[bool, typer.Option("--strict", help="Also require the same timezone name")] = False,
) -> None:
    """Check whether the expression is due. Exits 1 when it is not."""
    expr, reference = _resolve(expression, at, tz)
    if expr.is_due(reference, strict=strict):
        rprint(f"[green]✓[/green] Due at {_fmt(reference)}")
        return

    rprint(f"[yellow]Not due[/yellow] at {_fmt(reference)}, next run {_fmt(expr.next_run)}")
    raise typer.Exit(1)


@app.command()
def fields(expression: ExprArg) -> None:
    """Show the values each field allows."""
    try:
        parsed = parse_fields(expression)
    except CronParseError as e:
        _fail(e)

    table = Table(title=parsed.expression)
    table.add_column("Field", style="cyan")
    table.add_column("Token")
    table.add_column("Values")

    for position, token in zip(FieldPosition, parsed.tokens):
        values = sorted(parsed.values(position))
        table.add_row(position.label, token, ", ".join(str(v) for v in values))

    console.print(table)
    rprint(f"  Schedule: {format_schedule(parsed)}")


if __name__ == "__main__":
    app()
