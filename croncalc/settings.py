"""Configuration for croncalc."""

import os
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

TZ_ENV = "CRONCALC_TZ"
MAX_SCAN_YEARS_ENV = "CRONCALC_MAX_SCAN_YEARS"

# Long enough for Feb 29 across a skipped century leap year (2096 -> 2104).
DEFAULT_MAX_SCAN_YEARS = 9
MINUTES_PER_YEAR = 366 * 24 * 60


class SettingsError(ValueError):
    pass


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise SettingsError(f"Unknown timezone: {name}") from e


def get_timezone() -> tzinfo:
    name = os.environ.get(TZ_ENV)
    if name:
        return get_zone(name)
    return datetime.now().astimezone().tzinfo


def get_max_scan_minutes() -> int:
    raw = os.environ.get(MAX_SCAN_YEARS_ENV)
    if not raw:
        return DEFAULT_MAX_SCAN_YEARS * MINUTES_PER_YEAR

    try:
        years = int(raw)
    except ValueError:
        raise SettingsError(f"{MAX_SCAN_YEARS_ENV} must be an integer, got {raw!r}") from None
    if years <= 0:
        raise SettingsError(f"{MAX_SCAN_YEARS_ENV} must be positive, got {years}")
    return years * MINUTES_PER_YEAR


def now() -> datetime:
    return datetime.now(get_timezone())
