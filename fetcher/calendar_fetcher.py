# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                      FETCHER CALENDAR FETCHER MODULE                       ║
# ║    Schedules recurring fetch cycles, swaps in the new event snapshot and   ║
# ║    notifies the registered consumer callbacks.                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
calendar_fetcher.py: Poll scheduler and publisher.

A cycle is: ensure credentials -> list events -> normalize/filter -> publish.
The timer for the next cycle is armed when a cycle starts, before any network
I/O, so a hung provider call never stops the schedule. If a timer fires while
the previous cycle is still running, the new cycle is skipped and the timer
is armed again.
"""
import threading
from datetime import datetime
from typing import Callable, Optional, Tuple

from config.calendar_config import FetchCycleConfig, get_client_secret_path, get_token_path
from utils.logging import logger
from utils.error_handling import FetcherError, with_error_handling
from utils.timezone_utils import get_timezone
from .auth import PendingAuthorization, TokenAuthority
from .credentials import CredentialStore
from .google_api import GoogleCalendarClient
from .normalizer import Event, normalize_events

ReceiveCallback = Callable[["CalendarFetcher"], None]
ErrorCallback = Callable[["CalendarFetcher", Exception], None]


def _ignore_receive(fetcher):
    pass


def _ignore_error(fetcher, error):
    pass


class CalendarFetcher:
    # --- __init__ ---
    # Args:
    #     config: Immutable fetch settings.
    #     authority: TokenAuthority providing credentials; defaults to one using
    #                the credential files under CREDENTIALS_DIR.
    #     client_factory: Builds a calendar client from credentials.
    #     on_receive / on_error: Optional consumer callbacks.
    #     timer_factory: Builds the single-shot reload timer.
    #     clock: Returns the current timezone-aware instant for a tzinfo.
    def __init__(
        self,
        config: FetchCycleConfig,
        authority: Optional[TokenAuthority] = None,
        client_factory: Optional[Callable] = None,
        on_receive: Optional[ReceiveCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        clock: Callable = datetime.now,
    ):
        self.config = config
        self.authority = authority or TokenAuthority(
            CredentialStore(get_token_path()),
            get_client_secret_path(),
        )
        self._client_factory = client_factory or self._build_client
        self._timer_factory = timer_factory
        self._clock = clock
        self._tz = get_timezone(config.timezone)

        self._events: Tuple[Event, ...] = ()
        self._events_received_callback: ReceiveCallback = _ignore_receive
        self._fetch_failed_callback: ErrorCallback = _ignore_error
        self.on_receive(on_receive)
        self.on_error(on_error)

        self._reload_timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._stopped = False

    # ╔════════════════════════════════════════════════════════════════════════╗
    # ║ PUBLIC ACCESSORS                                                       ║
    # ╚════════════════════════════════════════════════════════════════════════╝

    @property
    def name(self) -> str:
        return self.config.calendar_name

    def get_events(self) -> Tuple[Event, ...]:
        """Current snapshot; replaced as a whole, never modified in place."""
        return self._events

    @property
    def is_fetching(self) -> bool:
        return self._cycle_lock.locked()

    @property
    def has_pending_timer(self) -> bool:
        return self._reload_timer is not None

    # --- on_receive ---
    # Sets the success callback; the last registration wins, None restores the no-op.
    def on_receive(self, callback: Optional[ReceiveCallback]) -> None:
        self._events_received_callback = callback or _ignore_receive

    # --- on_error ---
    # Sets the failure callback; the last registration wins, None restores the no-op.
    def on_error(self, callback: Optional[ErrorCallback]) -> None:
        self._fetch_failed_callback = callback or _ignore_error

    # ╔════════════════════════════════════════════════════════════════════════╗
    # ║ SCHEDULING                                                             ║
    # ╚════════════════════════════════════════════════════════════════════════╝

    # --- start_fetch ---
    # Runs a cycle now and schedules the following ones. Calling it again
    # replaces the pending timer rather than adding one.
    def start_fetch(self) -> None:
        with self._timer_lock:
            self._stopped = False
        self._schedule_timer()

    # --- stop ---
    # Cancels the pending timer and stops rearming. A cycle already running
    # finishes normally.
    def stop(self) -> None:
        with self._timer_lock:
            self._stopped = True
            if self._reload_timer is not None:
                self._reload_timer.cancel()
                self._reload_timer = None
        logger.info(f"Stopped fetcher for calendar '{self.name}'.")

    # --- _schedule_timer ---
    # Entry point of every cycle, manual or timer-fired.
    def _schedule_timer(self) -> None:
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning(f"Previous fetch of '{self.name}' is still running; skipping this cycle.")
            self._arm_timer()
            return

        try:
            self._arm_timer()
            self._events = ()
            self._run_cycle()
        finally:
            self._cycle_lock.release()

    # --- _arm_timer ---
    # Cancels any pending timer before arming a new one, so at most one is live.
    def _arm_timer(self) -> None:
        with self._timer_lock:
            if self._reload_timer is not None:
                self._reload_timer.cancel()
                self._reload_timer = None
            if self._stopped:
                return
            logger.debug(f"Schedule update timer in {self.config.reload_interval}s.")
            timer = self._timer_factory(self.config.reload_interval, self._schedule_timer)
            timer.daemon = True
            self._reload_timer = timer
            timer.start()

    # ╔════════════════════════════════════════════════════════════════════════╗
    # ║ FETCH CYCLE                                                            ║
    # ╚════════════════════════════════════════════════════════════════════════╝

    def _build_client(self, credentials) -> GoogleCalendarClient:
        return GoogleCalendarClient(
            credentials,
            calendar_id=self.config.calendar_id,
            timeout=self.config.request_timeout,
        )

    # --- _run_cycle ---
    # One fetch-authorize-filter-publish pass. Never raises: every failure is
    # logged and reported through the error callback.
    def _run_cycle(self) -> None:
        logger.info(f"Fetching calendar events for '{self.name}'..")
        try:
            now = self._clock(self._tz)
            credentials = self.authority.ensure_authorized()
            if isinstance(credentials, PendingAuthorization):
                logger.warning(
                    f"Calendar '{self.name}' is waiting for operator authorization; "
                    f"visit {credentials.auth_url}"
                )
                return

            client = self._client_factory(credentials)
            raw_events = client.list_events(time_min=now, max_results=self.config.maximum_entries)
            events = normalize_events(raw_events, now, self.config)
        except FetcherError as e:
            logger.error(f"Fetch cycle for '{self.name}' failed: {e}")
            self._broadcast_error(e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error during fetch cycle for '{self.name}': {e}")
            self._broadcast_error(e)
            return

        if not events:
            logger.info("No upcoming events found.")
            return

        self._events = tuple(events)
        logger.info(f"Fetched {len(events)} events for '{self.name}'.")
        self._broadcast_events()

    # ╔════════════════════════════════════════════════════════════════════════╗
    # ║ PUBLISHING                                                             ║
    # ╚════════════════════════════════════════════════════════════════════════╝

    @with_error_handling(error_message="Events received callback failed")
    def _broadcast_events(self) -> None:
        self._events_received_callback(self)

    @with_error_handling(error_message="Fetch failed callback failed")
    def _broadcast_error(self, error: Exception) -> None:
        self._fetch_failed_callback(self, error)
