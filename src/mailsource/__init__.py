"""Mail source module for finding and acknowledging notification emails.

This module provides the MailSource interface and its Gmail API
implementation, plus the authenticator that owns the Gmail credential.

Public API:
    - MailSource: Interface for querying, fetching and acknowledging mail
    - GmailMailSource: Gmail API implementation
    - InMemoryMailSource: In-memory implementation for tests
    - GmailAuthenticator: Credential owner (load, refresh, authorize, discard)
    - MessageRef, RawMessage, BodyPart: Message data models
    - AuthExpiredError: Credential missing, revoked or expired
    - MessageNotFoundError: Message vanished between query and fetch
    - AcknowledgeFailedError: Message could not be marked as read
"""

from .exceptions import (
    AcknowledgeFailedError,
    AuthExpiredError,
    MailAPIError,
    MailSourceError,
    MessageNotFoundError,
    ScopeMismatchError,
)
from .gmail_auth import GmailAuthenticator
from .gmail_source import GmailMailSource
from .models import BodyPart, MessageRef, RawMessage
from .source import InMemoryMailSource, MailSource

__all__ = [
    "MailSource",
    "GmailMailSource",
    "InMemoryMailSource",
    "GmailAuthenticator",
    "MessageRef",
    "RawMessage",
    "BodyPart",
    "MailSourceError",
    "AuthExpiredError",
    "ScopeMismatchError",
    "MessageNotFoundError",
    "AcknowledgeFailedError",
    "MailAPIError",
]
