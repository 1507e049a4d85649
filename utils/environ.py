# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                       ENVIRONMENT CONFIGURATION                            ║
# ║    Centralized access and type conversion for environment variables.       ║
# ║    Includes helpers for boolean, integer, float and string values.         ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Standard library imports
import os
from pathlib import Path
from typing import Optional

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ HELPER FUNCTIONS                                                           ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- get_bool_env ---
# Retrieves an environment variable and interprets it as a boolean.
# Considers '1', 'true', 'yes' (case-insensitive) as True.
# Args:
#     var_name: The name of the environment variable.
#     default: The default boolean value if the variable is not set.
# Returns: The boolean value of the environment variable or the default.
def get_bool_env(var_name: str, default: bool = False) -> bool:
    val = os.getenv(var_name, str(default)).lower()
    return val in ("1", "true", "yes")

# --- get_int_env ---
# Retrieves an environment variable and converts it to an integer.
# Args:
#     var_name: The name of the environment variable.
#     default: The default integer value if the variable is not set or invalid.
# Returns: The integer value of the environment variable or the default.
def get_int_env(var_name: str, default: int = 0) -> int:
    val_str = os.getenv(var_name)
    if val_str is None:
        return default
    try:
        return int(val_str)
    except ValueError:
        return default

# --- get_float_env ---
# Same as get_int_env, for values such as intervals expressed in seconds.
def get_float_env(var_name: str, default: float = 0.0) -> float:
    val_str = os.getenv(var_name)
    if val_str is None:
        return default
    try:
        return float(val_str)
    except ValueError:
        return default

# --- get_str_env ---
# Retrieves an environment variable as a string.
# Args:
#     var_name: The name of the environment variable.
#     default: The default string value if the variable is not set.
# Returns: The string value of the environment variable or the default.
def get_str_env(var_name: str, default: Optional[str] = "") -> Optional[str]:
    return os.getenv(var_name, default)

# --- get_default_credentials_dir ---
# Determines the default directory holding the OAuth client config and the
# stored calendar credentials.
# Checks the Docker volume first, then falls back to the project root.
# Returns: A string representing the directory path.
def get_default_credentials_dir() -> str:
    docker_path = "/data/.credentials"
    if os.path.isdir(docker_path):
        return docker_path
    project_root = Path(__file__).resolve().parent.parent
    return str(project_root / ".credentials")

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CORE CONFIGURATION VARIABLES                                               ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# Debug mode flag (controls verbose logging)
DEBUG: bool = get_bool_env("DEBUG", False)

# Name used to attribute events to this calendar (never used for querying)
CALENDAR_NAME: str = get_str_env("CALENDAR_NAME", "calendar")

# Google calendar queried by the fetcher
CALENDAR_ID: str = get_str_env("CALENDAR_ID", "primary")

# Seconds between two fetch cycles
RELOAD_INTERVAL_SECONDS: float = get_float_env("RELOAD_INTERVAL_SECONDS", 300.0)

# Maximum number of events kept after filtering
MAXIMUM_ENTRIES: int = get_int_env("MAXIMUM_ENTRIES", 10)

# Horizon in days (from the start of today) for upcoming events
MAXIMUM_NUMBER_OF_DAYS: int = get_int_env("MAXIMUM_NUMBER_OF_DAYS", 365)

# IANA timezone used to find local midnight; empty means the host timezone
TIMEZONE: str = get_str_env("TIMEZONE", "")

# Timeout applied to every Google Calendar HTTP call
REQUEST_TIMEOUT_SECONDS: float = get_float_env("REQUEST_TIMEOUT_SECONDS", 30.0)

# Directory with client_secret.json and calendar-credentials.json
CREDENTIALS_DIR: str = get_str_env("CREDENTIALS_DIR", get_default_credentials_dir())

# Preferred log directory (often mounted in Docker)
LOG_DIR: str = get_str_env("LOG_DIR", "/data/logs")
