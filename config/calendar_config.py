# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                      CALENDAR CONFIGURATION MODULE                         ║
# ║                                                                            ║
# ║  Defines the per-fetcher cycle settings, the credential file locations    ║
# ║  and the startup validation/summary of the configuration.                 ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- Imports ---
from dataclasses import dataclass
from typing import List, Optional
import os
import logging

from utils import environ
from utils.error_handling import ConfigurationError

logger = logging.getLogger("calendarfetcher")

# --- Constants ---
# Read-only access is all the fetcher ever needs.
SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

CLIENT_SECRET_FILENAME = "client_secret.json"
TOKEN_FILENAME = "calendar-credentials.json"

# --- get_client_secret_path ---
# Returns: Path of the OAuth client config JSON inside `credentials_dir`.
def get_client_secret_path(credentials_dir: Optional[str] = None) -> str:
    return os.path.join(credentials_dir or environ.CREDENTIALS_DIR, CLIENT_SECRET_FILENAME)

# --- get_token_path ---
# Returns: Path of the persisted calendar credential inside `credentials_dir`.
def get_token_path(credentials_dir: Optional[str] = None) -> str:
    return os.path.join(credentials_dir or environ.CREDENTIALS_DIR, TOKEN_FILENAME)

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ FETCH CYCLE SETTINGS                                                       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

@dataclass(frozen=True)
class FetchCycleConfig:
    """Immutable settings of one calendar fetcher."""

    calendar_name: str
    reload_interval: float
    maximum_entries: int
    maximum_number_of_days: int
    calendar_id: str = "primary"
    timezone: str = ""
    request_timeout: float = 30.0

    def __post_init__(self):
        problems = []
        if not self.calendar_name:
            problems.append("calendar_name must not be empty")
        if not self.calendar_id:
            problems.append("calendar_id must not be empty")
        if self.reload_interval <= 0:
            problems.append(f"reload_interval must be positive, got {self.reload_interval}")
        if isinstance(self.maximum_entries, bool) or not isinstance(self.maximum_entries, int) \
                or self.maximum_entries <= 0:
            problems.append(f"maximum_entries must be a positive integer, got {self.maximum_entries!r}")
        if isinstance(self.maximum_number_of_days, bool) or not isinstance(self.maximum_number_of_days, int) \
                or self.maximum_number_of_days < 0:
            problems.append(
                f"maximum_number_of_days must be a non-negative integer, got {self.maximum_number_of_days!r}"
            )
        if self.request_timeout <= 0:
            problems.append(f"request_timeout must be positive, got {self.request_timeout}")
        if problems:
            raise ConfigurationError("Invalid fetch configuration: " + "; ".join(problems))

# --- load_fetch_config ---
# Builds the fetch settings from the environment variables read in utils.environ.
# Raises: ConfigurationError if a value is out of range.
def load_fetch_config() -> FetchCycleConfig:
    return FetchCycleConfig(
        calendar_name=environ.CALENDAR_NAME,
        reload_interval=environ.RELOAD_INTERVAL_SECONDS,
        maximum_entries=environ.MAXIMUM_ENTRIES,
        maximum_number_of_days=environ.MAXIMUM_NUMBER_OF_DAYS,
        calendar_id=environ.CALENDAR_ID,
        timezone=environ.TIMEZONE,
        request_timeout=environ.REQUEST_TIMEOUT_SECONDS,
    )

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ STARTUP VALIDATION AND SUMMARY                                             ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- validate_optional_config ---
# Checks the credential files and returns human readable warnings.
# A missing token is expected before the first authorization; a missing client
# config makes every authorization attempt fail.
def validate_optional_config(credentials_dir: Optional[str] = None) -> List[str]:
    warnings = []
    client_secret = get_client_secret_path(credentials_dir)
    token = get_token_path(credentials_dir)

    if not os.path.exists(client_secret):
        warnings.append(f"OAuth client config not found: {client_secret}")
    if not os.path.exists(token):
        warnings.append(f"No stored calendar credentials at {token} - manual authorization will be required")

    return warnings

def log_startup_config(config: FetchCycleConfig, credentials_dir: Optional[str] = None):
    """Log configuration summary at startup."""
    logger.info("=" * 50)
    logger.info("Configuration Summary")
    logger.info("=" * 50)
    logger.info(f"Calendar: {config.calendar_name} ({config.calendar_id})")
    logger.info(f"Reload Interval: {config.reload_interval}s")
    logger.info(f"Maximum Entries: {config.maximum_entries}")
    logger.info(f"Maximum Number Of Days: {config.maximum_number_of_days}")
    logger.info(f"Timezone: {config.timezone or 'host local'}")
    logger.info(f"Request Timeout: {config.request_timeout}s")
    logger.info(f"Credentials Directory: {credentials_dir or environ.CREDENTIALS_DIR}")

    warnings = validate_optional_config(credentials_dir)
    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning(f"  - {warning}")

    logger.info("=" * 50)
