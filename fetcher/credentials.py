# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                    FETCHER CREDENTIAL STORAGE MODULE                       ║
# ║    Loads the OAuth client config and loads/persists the calendar           ║
# ║    credential blob on disk.                                                ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
credentials.py: Credential and client config persistence.
"""

import json
import os
from typing import Any, Dict, Optional

from utils.logging import logger
from utils.error_handling import ConfigurationError, CredentialStoreError

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ OAUTH CLIENT CONFIG                                                        ║
# ╚════════════════════════════════════════════════════════════════════════════╝

# --- load_client_config ---
# Reads the OAuth client config downloaded from the Google Cloud console.
# Accepts both "web" and "installed" application sections; each must carry
# client_id, client_secret and at least one redirect URI.
# Args:
#     path: Location of client_secret.json.
# Returns: Tuple of (full config dict, application section dict).
# Raises: ConfigurationError when the file is missing, unreadable or incomplete.
def load_client_config(path: str):
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Error loading client secret file: {path} not found") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Error loading client secret file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading client secret file {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Client secret file {path} does not contain a JSON object")

    section = config.get("web") or config.get("installed")
    if not isinstance(section, dict):
        raise ConfigurationError(f"Client secret file {path} has no 'web' or 'installed' section")

    missing = [key for key in ("client_id", "client_secret") if not section.get(key)]
    if not section.get("redirect_uris"):
        missing.append("redirect_uris")
    if missing:
        raise ConfigurationError(f"Client secret file {path} is missing: {', '.join(missing)}")

    logger.debug(f"Loaded OAuth client config from {path}")
    return config, section

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CREDENTIAL STORE                                                           ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class CredentialStore:
    """Key-value blob store holding the authorized-user credential at a fixed path."""

    def __init__(self, token_path: str):
        self.token_path = token_path

    @property
    def directory(self) -> str:
        return os.path.dirname(os.path.abspath(self.token_path))

    def exists(self) -> bool:
        return os.path.exists(self.token_path)

    # --- load ---
    # Returns: The stored credential as a dict, or None if nothing is stored yet.
    # Raises: ConfigurationError when the file exists but is not a JSON object.
    #         The file is never deleted; the operator has to fix or remove it.
    def load(self) -> Optional[Dict[str, Any]]:
        if not self.exists():
            logger.debug(f"No stored credentials at {self.token_path}")
            return None
        try:
            with open(self.token_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Stored credentials at {self.token_path} are corrupted ({e}); "
                "remove the file to authorize again."
            ) from e
        except OSError as e:
            raise ConfigurationError(f"Error reading stored credentials at {self.token_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Stored credentials at {self.token_path} are not a JSON object")
        logger.debug(f"Loaded stored credentials from {self.token_path}")
        return data

    # --- save ---
    # Persists the credential blob, creating the credentials directory first.
    # An already existing directory is fine; any other failure aborts the cycle.
    # Args:
    #     blob: A dict, or a JSON string as produced by Credentials.to_json().
    # Raises: CredentialStoreError
    def save(self, blob) -> None:
        if isinstance(blob, str):
            try:
                blob = json.loads(blob)
            except json.JSONDecodeError as e:
                raise CredentialStoreError(f"Refusing to store malformed credential JSON: {e}") from e

        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            raise CredentialStoreError(f"Could not create credentials directory {self.directory}: {e}") from e

        try:
            with open(self.token_path, "w", encoding="utf-8") as f:
                json.dump(blob, f, ensure_ascii=False, indent=4)
        except OSError as e:
            raise CredentialStoreError(f"Could not write credentials to {self.token_path}: {e}") from e
        logger.info(f"Token stored to {self.token_path}")
