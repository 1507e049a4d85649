# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                     FETCHER EVENT NORMALIZER MODULE                        ║
# ║    Converts raw Google Calendar records into Event objects, classifies     ║
# ║    full-day events and applies the time-window and count constraints.     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
normalizer.py: Event normalization and filtering pipeline.

``normalize_events`` is a pure function of the raw records, the current
instant and the fetch settings: the same input always yields the same output.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config.calendar_config import FetchCycleConfig
from utils.logging import logger
from utils.timezone_utils import is_local_midnight, parse_event_time, start_of_day, to_epoch_millis
from .fingerprint import compute_event_fingerprint

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CONSTANTS AND DATA MODEL                                                   ║
# ╚════════════════════════════════════════════════════════════════════════════╝

SINGLE_EVENT_KIND = "calendar#event"
DEFAULT_TITLE = "Event"
FULL_DAY = timedelta(hours=24)

# Pulled back from the horizon so an event at midnight of the first
# ineligible day is excluded
HORIZON_PULLBACK = timedelta(seconds=1)


@dataclass(frozen=True)
class Event:
    """A normalized calendar event as published to consumers."""
    title: str
    start_date: datetime
    end_date: datetime
    full_day_event: bool
    event_id: Optional[str] = field(default=None, compare=False)

    @property
    def start_ms(self) -> int:
        return to_epoch_millis(self.start_date)

    @property
    def end_ms(self) -> int:
        return to_epoch_millis(self.end_date)

    def fingerprint(self) -> str:
        return compute_event_fingerprint(self.title, self.start_ms, self.end_ms, self.full_day_event)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape for the display layer (instants as epoch milliseconds)."""
        return {
            "title": self.title,
            "startDate": self.start_ms,
            "endDate": self.end_ms,
            "fullDayEvent": self.full_day_event,
        }

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ SINGLE RECORD HANDLING                                                     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- is_full_day_event ---
# A record is a full-day event when Google marks it date-only, or when it
# lasts exactly 24 hours starting at local midnight.
def is_full_day_event(start: datetime, end: datetime, date_only: bool, local_tz: tzinfo) -> bool:
    if date_only:
        return True
    return end - start == FULL_DAY and is_local_midnight(start, local_tz)

# --- event_title ---
# Returns: summary, else description, else the default title.
def event_title(raw: Dict[str, Any]) -> str:
    for key in ("summary", "description"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return DEFAULT_TITLE

# --- normalize_event ---
# Converts one raw record into an Event.
# Args:
#     raw: A Google Calendar event resource.
#     local_tz: Timezone defining "local midnight" and date-only events.
# Returns: The Event, or None when the record is not a single event.
# Raises: ValueError when start or end cannot be read.
def normalize_event(raw: Dict[str, Any], local_tz: tzinfo) -> Optional[Event]:
    if not isinstance(raw, dict):
        raise ValueError(f"Event record is not an object: {raw!r}")

    kind = raw.get("kind")
    if kind != SINGLE_EVENT_KIND:
        logger.info(f"Other kind of event ignored: {kind!r} (id={raw.get('id')})")
        return None

    start, start_date_only = parse_event_time(raw.get("start"), local_tz)
    end, _ = parse_event_time(raw.get("end"), local_tz)

    return Event(
        title=event_title(raw),
        start_date=start,
        end_date=end,
        full_day_event=is_full_day_event(start, end, start_date_only, local_tz),
        event_id=raw.get("id"),
    )

# --- compute_window ---
# Returns: Tuple of (today, future): the start of the current local day and
# the last instant an event may start at.
def compute_window(now: datetime, maximum_number_of_days: int) -> Tuple[datetime, datetime]:
    today = start_of_day(now)
    future = today + timedelta(days=maximum_number_of_days) - HORIZON_PULLBACK
    return today, future

# --- exclusion_reason ---
# Returns: Why the event is excluded from the published list, or None to keep it.
def exclusion_reason(event: Event, now: datetime, today: datetime, future: datetime) -> Optional[str]:
    if not event.full_day_event and event.end_date < now:
        return "it is not a full-day event and it is in the past"
    if event.full_day_event and event.end_date <= today:
        return "it is a full-day event that ended before today"
    if event.start_date > future:
        return "it starts after the maximum number of days"
    return None

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ PIPELINE                                                                   ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- normalize_events ---
# Normalizes, filters, deduplicates, sorts and truncates raw records.
# Malformed records are logged and skipped; they never abort the cycle.
# Args:
#     raw_events: Raw Google Calendar records, in provider order.
#     now: Current instant; must be timezone-aware, its timezone is "local".
#     config: Fetch settings (maximum_entries, maximum_number_of_days).
# Returns: At most maximum_entries events sorted by start, ties in provider order.
def normalize_events(raw_events: Iterable[Dict[str, Any]], now: datetime,
                     config: FetchCycleConfig) -> List[Event]:
    if now.tzinfo is None:
        raise ValueError("normalize_events needs a timezone-aware 'now'")

    local_tz = now.tzinfo
    today, future = compute_window(now, config.maximum_number_of_days)

    kept: List[Event] = []
    seen = set()
    for raw in raw_events or []:
        try:
            event = normalize_event(raw, local_tz)
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning(f"Skipping malformed event record: {e}")
            continue
        if event is None:
            continue

        reason = exclusion_reason(event, now, today, future)
        if reason:
            logger.debug(f"Skipping '{event.title}': {reason}")
            continue

        key = event.event_id or event.fingerprint()
        if key in seen:
            logger.debug(f"Skipping duplicate event '{event.title}' ({key})")
            continue
        seen.add(key)

        logger.debug(f"Adding: {event.title}")
        kept.append(event)

    # sorted() is stable, so equal start times keep provider order
    kept = sorted(kept, key=lambda e: e.start_date)
    return kept[:config.maximum_entries]
