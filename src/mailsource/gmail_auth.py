"""Gmail API authentication helper."""

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from .exceptions import AuthExpiredError, ScopeMismatchError

logger = logging.getLogger(__name__)

# gmail.modify covers reading messages and removing the UNREAD label
DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
]


class GmailAuthenticator:
    """Owns the Gmail credential: loads, refreshes, persists and discards it.

    The long-running relay never opens a browser. The one-time consent
    exchange happens in authorize(), which scripts/authorize_gmail.py
    calls; every other code path fails with AuthExpiredError when the
    stored token is missing or no longer usable.

    The credential and the service built from it are replaced wholesale
    on refresh or re-authorization, never mutated by callers.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_path: Optional[Path] = None,
        scopes: Optional[list[str]] = None,
    ):
        """Initialize the authenticator.

        Args:
            client_id: OAuth client ID of the Google Cloud app.
            client_secret: OAuth client secret of the Google Cloud app.
            token_path: Path to store/load the authorized user token.
                Defaults to GMAIL_TOKEN_PATH env var, or config/token.json.
            scopes: List of Gmail API scopes to request.
                Defaults to the modify scope.
        """
        project_root = Path(__file__).parent.parent.parent

        if token_path:
            self._token_path = Path(token_path)
        elif os.environ.get("GMAIL_TOKEN_PATH"):
            self._token_path = Path(os.environ["GMAIL_TOKEN_PATH"])
        else:
            self._token_path = project_root / "config" / "token.json"

        self._client_id = client_id
        self._client_secret = client_secret
        self._scopes = scopes or DEFAULT_SCOPES
        self._service: Optional[Resource] = None
        self._credentials: Optional[Credentials] = None

    def _client_config(self) -> dict:
        return {
            "installed": {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": ["http://localhost"],
            }
        }

    def _validate_token_scopes(self, creds: Credentials) -> bool:
        """Check if token has all required scopes.

        Uses granted_scopes (the scopes actually stored in the token file)
        rather than scopes (the requested scopes passed at load time).
        """
        granted = creds.granted_scopes or creds.scopes
        if not granted:
            return False
        return all(scope in granted for scope in self._scopes)

    def _save_credentials(self, creds: Credentials) -> None:
        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._token_path, "w") as token_file:
            token_file.write(creds.to_json())

    def _load_or_refresh_credentials(self) -> Credentials:
        """Load the stored token, refreshing it if it has expired.

        Returns:
            Valid credentials object

        Raises:
            ScopeMismatchError: If the token was granted different scopes
            AuthExpiredError: If no usable token exists or refresh failed
        """
        if not self._token_path.exists():
            raise AuthExpiredError(
                f"No Gmail token at {self._token_path}. "
                "Run scripts/authorize_gmail.py to authorize the account."
            )

        try:
            creds = Credentials.from_authorized_user_file(
                str(self._token_path), self._scopes
            )
        except ValueError as e:
            raise AuthExpiredError(f"Stored Gmail token is unreadable: {e}") from e

        if not self._validate_token_scopes(creds):
            raise ScopeMismatchError(
                required_scopes=self._scopes,
                token_scopes=list(creds.scopes) if creds.scopes else [],
            )

        if not creds.valid:
            if not creds.refresh_token:
                raise AuthExpiredError("Gmail token expired without refresh token")
            try:
                creds.refresh(Request())
            except RefreshError as e:
                raise AuthExpiredError(f"Gmail token refresh failed: {e}") from e
            logger.debug("Refreshed Gmail access token")
            self._save_credentials(creds)

        return creds

    def get_service(self) -> Resource:
        """Get or create the Gmail API service.

        Creates the service lazily on first call and caches it.

        Returns:
            Gmail API service resource

        Raises:
            AuthExpiredError: If the stored credential cannot be used
        """
        if self._service is None:
            self._credentials = self._load_or_refresh_credentials()
            self._service = build(
                "gmail", "v1", credentials=self._credentials, cache_discovery=False
            )
        return self._service

    def authorize(self) -> Credentials:
        """Run the one-time interactive consent flow and store the token.

        Opens a local redirect server and prints the consent URL. Requests
        offline access so that the stored token carries a refresh token.

        Returns:
            The newly authorized credentials
        """
        flow = InstalledAppFlow.from_client_config(self._client_config(), self._scopes)
        creds = flow.run_local_server(
            port=0, access_type="offline", prompt="consent", open_browser=False
        )
        self._save_credentials(creds)
        self._credentials = creds
        self._service = None
        logger.info("Saved Gmail token to %s", self._token_path)
        return creds

    def invalidate(self) -> None:
        """Discard the cached credential and delete the stored token.

        The next get_service() call fails with AuthExpiredError until the
        account is re-authorized.
        """
        self._service = None
        self._credentials = None
        if self._token_path.exists():
            self._token_path.unlink()
            logger.warning(
                "Deleted Gmail token at %s; re-authorization required",
                self._token_path,
            )

    @property
    def token_path(self) -> Path:
        return self._token_path

    @property
    def credentials(self) -> Optional[Credentials]:
        """Access the current credentials (after service creation)."""
        return self._credentials
