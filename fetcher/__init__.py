"""
fetcher package: recurring Google Calendar fetcher, re-exporting from submodules.
"""
from .credentials import CredentialStore, load_client_config
from .auth import AuthState, PendingAuthorization, TokenAuthority
from .google_api import GoogleCalendarClient, retry_api_call
from .fingerprint import compute_event_fingerprint
from .normalizer import Event, normalize_events, is_full_day_event, compute_window
from .calendar_fetcher import CalendarFetcher

__all__ = [
    'CredentialStore', 'load_client_config',
    'AuthState', 'PendingAuthorization', 'TokenAuthority',
    'GoogleCalendarClient', 'retry_api_call',
    'compute_event_fingerprint',
    'Event', 'normalize_events', 'is_full_day_event', 'compute_window',
    'CalendarFetcher',
]
