"""GmailMailSource: the Gmail API implementation of MailSource."""

import logging
from typing import Optional

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from .exceptions import (
    AcknowledgeFailedError,
    AuthExpiredError,
    MailAPIError,
    MessageNotFoundError,
)
from .gmail_auth import GmailAuthenticator
from .models import MessageRef, RawMessage
from .source import MailSource

logger = logging.getLogger(__name__)

# Raised below the HTTP layer: socket timeouts, DNS and TLS failures,
# token refresh transport errors, token file writes
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, TransportError)


class GmailMailSource(MailSource):
    """Queries, fetches and acknowledges messages through the Gmail API.

    Example usage:
        source = GmailMailSource(authenticator=GmailAuthenticator(cid, secret))
        for ref in source.query("in:inbox is:unread from:x@y.com", 5):
            raw = source.fetch(ref)
            ...
            source.acknowledge(ref)
    """

    def __init__(
        self,
        authenticator: Optional[GmailAuthenticator] = None,
        service: Optional[Resource] = None,
        user_id: str = "me",
    ):
        """Initialize the GmailMailSource.

        Args:
            authenticator: Gmail authenticator owning the credential.
            service: Pre-built Gmail API service (for testing).
                If provided, authenticator is only used for discarding.
            user_id: Gmail user, "me" for the authorized account.
        """
        if authenticator is None and service is None:
            raise ValueError("GmailMailSource needs an authenticator or a service")
        self._auth = authenticator
        self._service = service
        self._user_id = user_id

    def _get_service(self) -> Resource:
        """Get Gmail API service, creating if needed."""
        if self._service is None:
            self._service = self._auth.get_service()
        return self._service

    def _handle_http_error(self, error: HttpError, message_id: str = "") -> None:
        """Convert HttpError to the appropriate mail source exception.

        Raises:
            AuthExpiredError: If the error indicates a 401.
            MessageNotFoundError: If the error indicates a missing message.
            MailAPIError: For other API errors.
        """
        status_code = error.resp.status
        reason = error.reason if hasattr(error, "reason") else str(error)
        logger.error("Gmail API error (status=%d): %s", status_code, reason)

        if status_code == 401:
            raise AuthExpiredError(f"Gmail rejected the credential: {reason}") from error
        if status_code == 404 and message_id:
            raise MessageNotFoundError(message_id) from error
        msg = f"Gmail API error: {reason}"
        if message_id:
            msg = f"Message {message_id}: {msg}"
        raise MailAPIError(msg, status_code=status_code, reason=reason) from error

    def query(self, filter_query: str, max_results: int) -> list[MessageRef]:
        try:
            results = (
                self._get_service()
                .users()
                .messages()
                .list(
                    userId=self._user_id,
                    q=filter_query,
                    maxResults=max_results,
                    fields="messages(id,threadId)",
                )
                .execute()
            )
        except RefreshError as e:
            raise AuthExpiredError(f"Gmail token refresh failed: {e}") from e
        except HttpError as e:
            self._handle_http_error(e)
            raise  # Never reached, but satisfies type checker
        except TRANSPORT_ERRORS as e:
            logger.error("Gmail query failed: %s: %s", type(e).__name__, e)
            raise MailAPIError(f"Gmail request failed: {type(e).__name__}: {e}") from e

        refs = [MessageRef.from_api_response(m) for m in results.get("messages") or []]
        logger.debug("Query %r matched %d messages", filter_query, len(refs))
        return refs

    def fetch(self, ref: MessageRef) -> RawMessage:
        try:
            message = (
                self._get_service()
                .users()
                .messages()
                .get(userId=self._user_id, id=ref.id, format="full")
                .execute()
            )
        except RefreshError as e:
            raise AuthExpiredError(f"Gmail token refresh failed: {e}") from e
        except HttpError as e:
            self._handle_http_error(e, ref.id)
            raise
        except TRANSPORT_ERRORS as e:
            logger.error("Gmail fetch of %s failed: %s: %s", ref.id, type(e).__name__, e)
            raise MailAPIError(
                f"Message {ref.id}: Gmail request failed: {type(e).__name__}: {e}"
            ) from e

        return RawMessage.from_api_response(message)

    def acknowledge(self, ref: MessageRef) -> None:
        try:
            (
                self._get_service()
                .users()
                .messages()
                .modify(
                    userId=self._user_id,
                    id=ref.id,
                    body={"removeLabelIds": ["UNREAD"]},
                )
                .execute()
            )
        except RefreshError as e:
            raise AuthExpiredError(f"Gmail token refresh failed: {e}") from e
        except HttpError as e:
            if e.resp.status == 401:
                self._handle_http_error(e, ref.id)
            reason = e.reason if hasattr(e, "reason") else str(e)
            raise AcknowledgeFailedError(ref.id, reason) from e
        except TRANSPORT_ERRORS as e:
            raise AcknowledgeFailedError(ref.id, f"{type(e).__name__}: {e}") from e
        logger.debug("Marked message %s as read", ref.id)

    def discard_credentials(self) -> None:
        if self._auth is not None:
            self._service = None
            self._auth.invalidate()
