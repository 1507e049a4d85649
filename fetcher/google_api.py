# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                       FETCHER GOOGLE API MODULE                            ║
# ║    Builds the Google Calendar API service for an authorized credential,    ║
# ║    lists upcoming events and retries transient API failures.               ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
google_api.py: Google Calendar API client and retry handling.
"""
import random
import ssl
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from utils.logging import logger
from utils.error_handling import AuthorizationError, ErrorTracker, ProviderError

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CONSTANTS                                                                  ║
# ╚════════════════════════════════════════════════════════════════════════════╝

MAX_RETRIES = 3
MAX_BACKOFF_SECONDS = 30.0

# Shared by every client so repeated failures across cycles open the circuit
calendar_api_tracker = ErrorTracker("google-calendar", threshold=10, reset_after_seconds=1800)

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ API CALL RETRY MECHANISM                                                   ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- _is_ssl_error ---
# SSL failures sometimes surface as plain OSError with an [SSL] message.
def _is_ssl_error(error: OSError) -> bool:
    return isinstance(error, ssl.SSLError) or "ssl" in str(error).lower()

# --- retry_api_call ---
# Executes an API call with exponential backoff and retries.
# Retries Google API HttpErrors with status 429 or 5xx, SSL errors, socket
# timeouts and httplib2/google-auth transport errors. Other HTTP errors fail
# immediately. Every failure counts against the circuit breaker; while the
# circuit is open no call is made at all.
# Args:
#     func: The function (API call) to execute.
#     *args: Positional arguments for the function.
#     max_retries: Maximum number of attempts.
#     tracker: ErrorTracker guarding the provider.
#     sleep: Function used to wait between attempts.
#     **kwargs: Keyword arguments for the function.
# Returns: The result of the API call.
# Raises: ProviderError when the call fails or the circuit is open,
#         AuthorizationError when Google rejects the credential refresh.
def retry_api_call(func: Callable, *args, max_retries: int = MAX_RETRIES,
                   tracker: Optional[ErrorTracker] = None,
                   sleep: Callable[[float], None] = time.sleep, **kwargs):
    tracker = tracker or calendar_api_tracker
    if not tracker.is_available():
        raise ProviderError(f"Too many recent errors from '{tracker.name}', backing off")

    last_exception: Optional[Exception] = None
    for attempt in range(max_retries):
        try:
            result = func(*args, **kwargs)
            tracker.record_success()
            return result
        except HttpError as e:
            status_code = e.resp.status
            if status_code < 500 and status_code != 429:
                logger.warning(f"Non-retryable Google API error: {status_code} - {str(e)}")
                tracker.record_error(e)
                raise ProviderError(f"Google Calendar API error {status_code}: {e}") from e
            last_exception = e
            reason = f"Retryable Google API error ({status_code})"
        except RefreshError as e:
            tracker.record_error(e)
            raise AuthorizationError(f"Access token refresh rejected: {e}") from e
        except (TransportError, httplib2.HttpLib2Error, TimeoutError) as e:
            last_exception = e
            reason = "Network error in API call"
        except OSError as e:
            if not _is_ssl_error(e):
                tracker.record_error(e)
                raise ProviderError(f"Network error in API call: {e}") from e
            last_exception = e
            reason = "SSL error in API call"

        if attempt < max_retries - 1:
            backoff = min((2 ** attempt) + random.uniform(0, 1), MAX_BACKOFF_SECONDS)
            logger.warning(
                f"{reason}, attempt {attempt + 1}/{max_retries}, "
                f"backing off for {backoff:.2f}s: {last_exception}"
            )
            sleep(backoff)

    tracker.record_error(last_exception)
    logger.error(f"All {max_retries} retries failed for API call: {last_exception}")
    raise ProviderError(f"Calendar API call failed after {max_retries} attempts: {last_exception}") from last_exception

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CALENDAR CLIENT                                                            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- format_time_min ---
# RFC 3339 UTC timestamp as expected by the events.list timeMin parameter.
def format_time_min(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GoogleCalendarClient:
    """Read-only access to one Google calendar for an authorized credential."""

    def __init__(self, credentials, calendar_id: str = "primary", timeout: float = 30.0,
                 service=None, sleep: Callable[[float], None] = time.sleep,
                 tracker: Optional[ErrorTracker] = None):
        self.calendar_id = calendar_id
        self.timeout = timeout
        self._sleep = sleep
        self._tracker = tracker or calendar_api_tracker
        if service is None:
            # httplib2 has no default timeout; set it explicitly
            http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
            service = build("calendar", "v3", http=http, cache_discovery=False)
        self.service = service

    # --- list_events ---
    # Lists upcoming single events (recurring events expanded) ordered by start.
    # Args:
    #     time_min: Lower bound for event end times, normally "now".
    #     max_results: Maximum number of records requested.
    # Returns: The raw event records ("items") of the response.
    def list_events(self, time_min: datetime, max_results: int) -> List[Dict[str, Any]]:
        time_min_str = format_time_min(time_min)
        logger.debug(f"Fetching Google events for calendar {self.calendar_id} from {time_min_str}")
        result = retry_api_call(
            lambda: self.service.events().list(
                calendarId=self.calendar_id,
                timeMin=time_min_str,
                maxResults=max_results,
                singleEvents=True,
                orderBy="startTime",
            ).execute(),
            tracker=self._tracker,
            sleep=self._sleep,
        )
        items = (result or {}).get("items", [])
        logger.debug(f"Fetched {len(items)} Google events for {self.calendar_id}")
        return items
