# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                         UTILITIES PACKAGE INITIALIZER                      ║
# ║                                                                            ║
# ║  Shared helpers for environment access, logging, error handling and       ║
# ║  timezone conversion used across the calendar fetcher.                     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

from .error_handling import (
    FetcherError,
    ConfigurationError,
    AuthorizationError,
    CredentialStoreError,
    ProviderError,
    with_error_handling,
    ErrorTracker,
)
from .timezone_utils import (
    get_timezone,
    get_local_timezone,
    start_of_day,
    parse_event_time,
    to_epoch_millis,
)

__all__ = [
    'FetcherError',
    'ConfigurationError',
    'AuthorizationError',
    'CredentialStoreError',
    'ProviderError',
    'with_error_handling',
    'ErrorTracker',
    'get_timezone',
    'get_local_timezone',
    'start_of_day',
    'parse_event_time',
    'to_epoch_millis',
]
