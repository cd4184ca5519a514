"""User-local date resolution."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

logger = structlog.get_logger()


def resolve_timezone(timezone_name: str | None):
    """Return a tzinfo for an IANA name, or UTC when unset or unknown."""
    if not timezone_name or not timezone_name.strip():
        return timezone.utc
    try:
        return ZoneInfo(timezone_name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("clock.unknown_timezone", timezone=timezone_name)
        return timezone.utc


def is_valid_timezone(timezone_name: str) -> bool:
    if not timezone_name or not timezone_name.strip():
        return False
    try:
        ZoneInfo(timezone_name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def user_local_today(timezone_name: str | None, now: datetime | None = None) -> date:
    """Current calendar date in the user's timezone (UTC fallback).

    Args:
        timezone_name: IANA timezone name, e.g. "Europe/Lisbon". None/empty -> UTC.
        now: Aware instant to resolve (defaults to the current UTC time).
    """
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(timezone_name)).date()
