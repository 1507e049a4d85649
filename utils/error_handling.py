# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                 CALENDAR FETCHER ERROR HANDLING UTILITIES                  ║
# ║ Defines the fetch-cycle error taxonomy, a standardized error handling      ║
# ║      decorator and a circuit breaker for the calendar provider.            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import functools
import logging
import time
import threading
from typing import Callable, TypeVar, Any, Optional

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CONFIGURATION AND GLOBALS                                                  ║
# ╚════════════════════════════════════════════════════════════════════════════╝

logger = logging.getLogger("calendarfetcher")

T = TypeVar('T')

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ ERROR TAXONOMY                                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class FetcherError(Exception):
    """Base class for every error that aborts a fetch cycle."""


class ConfigurationError(FetcherError):
    """Missing or malformed client config, credential file or fetch settings."""


class AuthorizationError(FetcherError):
    """The OAuth code exchange or token refresh was rejected."""


class CredentialStoreError(FetcherError):
    """The credentials directory or file could not be written."""


class ProviderError(FetcherError):
    """The calendar provider could not deliver the event list."""

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ SYNCHRONOUS ERROR HANDLING DECORATOR                                       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- with_error_handling ---
# Decorator factory for standardized error handling in synchronous functions.
# Catches exceptions, logs them with traceback and returns a default value.
# Used around consumer callbacks so a failing consumer never stops the scheduler.
# Args:
#     default_value: The value to return if an exception occurs.
#     error_message: A prefix for the log message when an error occurs.
# Returns: A decorator function.
def with_error_handling(
    default_value: Any = None,
    error_message: str = "An error occurred"
) -> Callable:
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                name = getattr(func, "__name__", repr(func))
                logger.exception(f"{error_message} in {name}: {str(e)}")
                return default_value
        return wrapper
    return decorator

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CIRCUIT BREAKER PATTERN IMPLEMENTATION                                     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class ErrorTracker:
    # --- __init__ ---
    # Initializes the ErrorTracker for circuit breaking.
    # Args:
    #     name: A unique name identifying the service or operation being tracked.
    #     threshold: The number of consecutive errors required to open the circuit.
    #     reset_after_seconds: How long the circuit stays open before the next
    #                          call is let through again.
    #     clock: Source of the current time in seconds.
    def __init__(self, name: str, threshold: int = 5, reset_after_seconds: int = 300,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.threshold = threshold
        self.reset_after_seconds = reset_after_seconds
        self.error_count = 0
        self.circuit_open = False
        self.last_error_time: Optional[float] = None
        self._clock = clock
        self._lock = threading.RLock()

    # --- record_error ---
    # Records an error occurrence and opens the circuit once the threshold is hit.
    # Returns: True if the circuit is now open, False otherwise.
    def record_error(self, error: Exception) -> bool:
        with self._lock:
            self.error_count += 1
            self.last_error_time = self._clock()

            if self.error_count >= self.threshold and not self.circuit_open:
                logger.warning(
                    f"Circuit breaker opened for '{self.name}' after {self.error_count} errors "
                    f"(last: {error}). Will allow a retry in {self.reset_after_seconds}s."
                )
                self.circuit_open = True

            return self.circuit_open

    # --- record_success ---
    # A successful call closes the circuit and clears the error count.
    def record_success(self) -> None:
        with self._lock:
            if self.error_count or self.circuit_open:
                self.reset()

    # --- is_available ---
    # Returns False while the circuit is open and the cool-down has not elapsed.
    # Once it has elapsed the circuit is reset and the next call is allowed.
    def is_available(self) -> bool:
        with self._lock:
            if not self.circuit_open:
                return True
            if self.last_error_time is not None:
                elapsed = self._clock() - self.last_error_time
                if elapsed > self.reset_after_seconds:
                    logger.info(f"Attempting to reset circuit breaker for '{self.name}' after {elapsed:.1f}s")
                    self.reset()
                    return True
            return False

    # --- reset ---
    # Resets the circuit breaker to the closed state.
    def reset(self):
        with self._lock:
            if self.circuit_open:
                logger.info(f"Circuit breaker for '{self.name}' has been reset.")
            self.circuit_open = False
            self.error_count = 0
            self.last_error_time = None
