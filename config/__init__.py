# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                      CONFIGURATION PACKAGE INITIALIZER                     ║
# ║                                                                            ║
# ║  Centralizes the fetcher settings and the credential file locations.      ║
# ╚════════════════════════════════════════════════════════════════════════════╝

from .calendar_config import (
    SCOPES,                    # OAuth scopes requested during authorization
    FetchCycleConfig,          # Immutable per-fetcher settings
    load_fetch_config,         # Build FetchCycleConfig from the environment
    get_client_secret_path,    # Location of the OAuth client config
    get_token_path,            # Location of the stored credential
    validate_optional_config,  # Warnings about missing credential files
    log_startup_config,        # Startup configuration summary
)
