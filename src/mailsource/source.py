"""Mail source interface and in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Optional

from .exceptions import AcknowledgeFailedError, MessageNotFoundError
from .models import MessageRef, RawMessage


class MailSource(ABC):
    """Interface to a mailbox holding unread notification emails.

    Implementations can use different backends:
    - GmailMailSource: Gmail API
    - InMemoryMailSource: For testing, holds messages in a dict
    """

    @abstractmethod
    def query(self, filter_query: str, max_results: int) -> list[MessageRef]:
        """Find unread messages matching a provider-specific filter.

        Args:
            filter_query: Search expression (sender, read-state, folder)
            max_results: Maximum number of refs to return

        Returns:
            Matching refs in provider order. Empty list if nothing matches.

        Raises:
            AuthExpiredError: If the credential is no longer valid
            MailSourceError: If the query could not be run
        """
        pass

    @abstractmethod
    def fetch(self, ref: MessageRef) -> RawMessage:
        """Retrieve full headers and body for one message.

        Raises:
            MessageNotFoundError: If the message was deleted concurrently
            AuthExpiredError: If the credential is no longer valid
        """
        pass

    @abstractmethod
    def acknowledge(self, ref: MessageRef) -> None:
        """Remove the unread marker from a message.

        Must only be called after the message's notification was delivered.

        Raises:
            AcknowledgeFailedError: If the message could not be marked read
            AuthExpiredError: If the credential is no longer valid
        """
        pass

    def discard_credentials(self) -> None:
        """Drop the cached credential so the next cycle re-authenticates."""
        pass


class InMemoryMailSource(MailSource):
    """In-memory mailbox for tests.

    The filter query is ignored: every unread message matches, in
    insertion order. Individual message ids can be set up to fail fetch
    or acknowledge, and any exception can be injected into query.
    """

    def __init__(self, messages: Optional[list[RawMessage]] = None) -> None:
        self._messages: dict[str, RawMessage] = {}
        self._unread: set[str] = set()
        self.acknowledged: list[str] = []
        self.fail_fetch: dict[str, Exception] = {}
        self.fail_acknowledge: dict[str, Exception] = {}
        self.query_error: Optional[Exception] = None
        self.credentials_discarded = False
        for message in messages or []:
            self.add(message)

    def add(self, message: RawMessage, unread: bool = True) -> None:
        self._messages[message.id] = message
        if unread:
            self._unread.add(message.id)

    def remove(self, message_id: str) -> None:
        """Delete a message, as a user would between query and fetch."""
        self._messages.pop(message_id, None)
        self._unread.discard(message_id)

    def is_unread(self, message_id: str) -> bool:
        return message_id in self._unread

    def query(self, filter_query: str, max_results: int) -> list[MessageRef]:
        if self.query_error is not None:
            raise self.query_error
        refs = [
            message.ref
            for message_id, message in self._messages.items()
            if message_id in self._unread
        ]
        return refs[:max_results]

    def fetch(self, ref: MessageRef) -> RawMessage:
        if ref.id in self.fail_fetch:
            raise self.fail_fetch[ref.id]
        if ref.id not in self._messages:
            raise MessageNotFoundError(ref.id)
        return self._messages[ref.id]

    def acknowledge(self, ref: MessageRef) -> None:
        if ref.id in self.fail_acknowledge:
            raise self.fail_acknowledge[ref.id]
        if ref.id not in self._messages:
            raise AcknowledgeFailedError(ref.id, "message not found")
        self._unread.discard(ref.id)
        self.acknowledged.append(ref.id)

    def discard_credentials(self) -> None:
        self.credentials_discarded = True
