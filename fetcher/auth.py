# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                      FETCHER TOKEN AUTHORITY MODULE                        ║
# ║    Obtains, persists and refreshes the OAuth credential used for the       ║
# ║    Google Calendar API, including the one-time operator authorization.     ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
auth.py: OAuth credential lifecycle for the calendar fetcher.

The authority moves through three states::

    UNAUTHORIZED -> AWAITING_OPERATOR_CODE -> AUTHORIZED

A stored credential takes it straight to AUTHORIZED. Without one, the
operator is shown an authorization URL and asked for the code Google displays
after consent. With an interactive prompt (``input`` by default) this blocks
the current fetch cycle only; without one, ``ensure_authorized`` hands back a
``PendingAuthorization`` and the code is supplied later through
``complete_authorization``.
"""

import enum
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union
from urllib.parse import unquote_plus

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from config.calendar_config import SCOPES
from utils.logging import logger
from utils.error_handling import AuthorizationError, ConfigurationError
from .credentials import CredentialStore, load_client_config

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ STATES AND RESULTS                                                         ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class AuthState(enum.Enum):
    UNAUTHORIZED = "unauthorized"
    AWAITING_OPERATOR_CODE = "awaiting_operator_code"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class PendingAuthorization:
    """Returned while the authority waits for the operator's one-time code."""
    auth_url: str


# --- announce_to_operator ---
# Default operator channel: the console/file log.
def announce_to_operator(auth_url: str) -> None:
    logger.warning(f"Authorize this app by visiting this url: {auth_url}")

# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ TOKEN AUTHORITY                                                            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

class TokenAuthority:
    # --- __init__ ---
    # Args:
    #     store: CredentialStore holding the authorized-user JSON blob.
    #     client_secret_path: Location of the OAuth client config JSON.
    #     scopes: OAuth scopes requested on authorization.
    #     prompt: Callable reading one line from the operator, or None for
    #             non-interactive mode.
    #     announce: Callable presenting the authorization URL to the operator.
    #     flow_factory / request_factory: Injection points for the OAuth flow
    #             and the HTTP transport used for refreshes.
    def __init__(
        self,
        store: CredentialStore,
        client_secret_path: str,
        scopes: Optional[List[str]] = None,
        prompt: Optional[Callable[[str], str]] = input,
        announce: Callable[[str], None] = announce_to_operator,
        flow_factory=Flow.from_client_config,
        request_factory=Request,
    ):
        self.store = store
        self.client_secret_path = client_secret_path
        self.scopes = list(scopes or SCOPES)
        self._prompt = prompt
        self._announce = announce
        self._flow_factory = flow_factory
        self._request_factory = request_factory

        self._credentials: Optional[Credentials] = None
        self._pending_flow = None
        self._pending: Optional[PendingAuthorization] = None
        self._state = AuthState.UNAUTHORIZED
        self._lock = threading.RLock()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def awaiting_operator(self) -> bool:
        return self._state is AuthState.AWAITING_OPERATOR_CODE

    # --- ensure_authorized ---
    # Returns usable credentials, or PendingAuthorization in non-interactive mode
    # while the operator code is outstanding.
    # Raises: ConfigurationError, AuthorizationError, CredentialStoreError.
    def ensure_authorized(self) -> Union[Credentials, PendingAuthorization]:
        with self._lock:
            if self._credentials is None:
                self._credentials = self._load_stored()

            if self._credentials is not None:
                credentials = self._refresh_if_expired(self._credentials)
                if credentials is not None:
                    self._state = AuthState.AUTHORIZED
                    return credentials
                self._credentials = None

            if self._pending is not None and self._prompt is None:
                logger.info("Still waiting for the operator authorization code.")
                return self._pending

            pending = self.begin_authorization()
            if self._prompt is None:
                return pending
            return self.complete_authorization(self._read_operator_code())

    # --- begin_authorization ---
    # Builds the consent URL for the read-only calendar scope and announces it.
    # Returns: PendingAuthorization carrying the URL.
    def begin_authorization(self) -> PendingAuthorization:
        with self._lock:
            logger.info("Getting new token for the calendar fetcher")
            client_config, section = load_client_config(self.client_secret_path)
            try:
                flow = self._flow_factory(
                    client_config,
                    scopes=self.scopes,
                    redirect_uri=section["redirect_uris"][0],
                )
                auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
            except ValueError as e:
                raise ConfigurationError(f"Client secret file {self.client_secret_path} is not usable: {e}") from e

            self._pending_flow = flow
            self._pending = PendingAuthorization(auth_url=auth_url)
            self._state = AuthState.AWAITING_OPERATOR_CODE
            self._announce(auth_url)
            return self._pending

    # --- complete_authorization ---
    # Exchanges the operator's one-time code for a credential and persists it.
    # Args:
    #     code: The code as pasted by the operator ('+' is read as a space and
    #           percent escapes are decoded).
    # Returns: The new Credentials.
    def complete_authorization(self, code: str) -> Credentials:
        with self._lock:
            if self._pending_flow is None:
                raise AuthorizationError("No authorization in progress; call begin_authorization first")

            decoded = unquote_plus((code or "").strip())
            if not decoded:
                self._reset_pending()
                raise AuthorizationError("Empty authorization code")

            try:
                self._pending_flow.fetch_token(code=decoded)
            except Exception as e:
                self._reset_pending()
                raise AuthorizationError(f"Error retrieving access token: {e}") from e

            credentials = self._pending_flow.credentials
            self._reset_pending()
            self._credentials = credentials
            self._state = AuthState.AUTHORIZED
            # Held in memory even if persisting fails, so the next cycle skips re-authorization
            self.store.save(credentials.to_json())
            return credentials

    # --- _read_operator_code ---
    # Blocks on one line of operator input.
    def _read_operator_code(self) -> str:
        try:
            return self._prompt("Enter the code from that page here: ")
        except (EOFError, KeyboardInterrupt) as e:
            self._reset_pending()
            raise AuthorizationError("No authorization code could be read from the operator") from e

    def _reset_pending(self) -> None:
        self._pending_flow = None
        self._pending = None
        self._state = AuthState.UNAUTHORIZED

    # --- _load_stored ---
    # Returns: Credentials built from the stored blob, or None when nothing is
    # stored or the blob is not an authorized-user credential.
    def _load_stored(self) -> Optional[Credentials]:
        info = self.store.load()
        if info is None:
            return None
        try:
            return Credentials.from_authorized_user_info(info, self.scopes)
        except ValueError as e:
            logger.warning(f"Stored credentials at {self.store.token_path} are not usable ({e}); re-authorizing.")
            return None

    # --- _refresh_if_expired ---
    # Refreshes and re-persists an expired credential that has a refresh token.
    # Returns: The credential to use, or None if Google rejected the refresh
    # token and a new authorization is required.
    def _refresh_if_expired(self, credentials: Credentials) -> Optional[Credentials]:
        if not credentials.expired or not credentials.refresh_token:
            return credentials
        logger.info("Stored access token expired, refreshing.")
        try:
            credentials.refresh(self._request_factory())
        except RefreshError as e:
            logger.warning(f"Refresh token was rejected ({e}); manual authorization required.")
            return None
        except TransportError as e:
            raise AuthorizationError(f"Network error while refreshing the access token: {e}") from e
        self.store.save(credentials.to_json())
        return credentials
