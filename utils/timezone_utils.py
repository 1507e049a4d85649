"""
timezone_utils.py: Timezone handling for calendar event times

Provides consistent conversion of Google Calendar start/end containers into
timezone-aware datetimes, and the "local midnight" helpers the event filter
relies on.
"""

from datetime import datetime, date, time, tzinfo
from typing import Optional, Dict, Any, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from dateutil import tz
from dateutil.parser import isoparse

logger = logging.getLogger("calendarfetcher")

# Common timezone mappings for user-friendly configuration
COMMON_TIMEZONE_ALIASES = {
    "est": "America/New_York",
    "cst": "America/Chicago",
    "mst": "America/Denver",
    "pst": "America/Los_Angeles",
    "edt": "America/New_York",
    "cdt": "America/Chicago",
    "mdt": "America/Denver",
    "pdt": "America/Los_Angeles",
    "gmt": "UTC",
    "utc": "UTC"
}

def get_local_timezone() -> tzinfo:
    """Host timezone via dateutil, UTC if it cannot be determined."""
    try:
        return tz.tzlocal()
    except Exception as e:
        logger.warning(f"Failed to get local timezone: {e}. Falling back to UTC.")
        return tz.UTC

def get_timezone(tz_name: Optional[str]) -> tzinfo:
    """
    Get a tzinfo object for the specified timezone name.

    Args:
        tz_name: Timezone name or alias; empty means the host timezone

    Returns:
        tzinfo for the timezone

    Falls back to the host timezone if the name is invalid.
    """
    if not tz_name or not tz_name.strip():
        return get_local_timezone()

    key = tz_name.strip()
    key = COMMON_TIMEZONE_ALIASES.get(key.lower(), key)

    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Invalid timezone '{tz_name}', falling back to local timezone: {e}")
        return get_local_timezone()

def start_of_day(moment: datetime) -> datetime:
    """Midnight of the day `moment` falls on, in `moment`'s own timezone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)

def is_local_midnight(moment: datetime, local_tz: tzinfo) -> bool:
    local = moment.astimezone(local_tz)
    return local.hour == 0 and local.minute == 0 and local.second == 0 and local.microsecond == 0

def parse_event_time(container: Dict[str, Any], local_tz: tzinfo) -> Tuple[datetime, bool]:
    """
    Parse a Google Calendar ``start``/``end`` container.

    Args:
        container: Either ``{"date": "YYYY-MM-DD"}`` or ``{"dateTime": "<RFC 3339>"}``
        local_tz: Timezone for date-only values and naive date-times

    Returns:
        Tuple of (timezone-aware datetime, is_date_only)

    Raises:
        ValueError: If the container holds no parseable value
    """
    if not isinstance(container, dict):
        raise ValueError(f"Expected a date container, got {container!r}")

    date_time = container.get("dateTime")
    if date_time:
        parsed = isoparse(date_time)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=local_tz)
        return parsed, False

    date_only = container.get("date")
    if date_only:
        day = date.fromisoformat(date_only)
        return datetime.combine(day, time.min, tzinfo=local_tz), True

    raise ValueError(f"Date container has neither 'date' nor 'dateTime': {container!r}")

def to_epoch_millis(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))
