"""Exceptions for the mail source module."""


class MailSourceError(Exception):
    """Base exception for all mail source errors."""

    pass


class AuthExpiredError(MailSourceError):
    """Raised when the Gmail credential is missing, revoked or expired.

    The stored token must be discarded and the account re-authorized
    out of band (see scripts/authorize_gmail.py).
    """

    pass


class ScopeMismatchError(AuthExpiredError):
    """Raised when the stored token lacks the scopes this relay needs."""

    def __init__(self, required_scopes: list[str], token_scopes: list[str]):
        self.required_scopes = required_scopes
        self.token_scopes = token_scopes
        missing = set(required_scopes) - set(token_scopes)
        super().__init__(
            f"Token scopes mismatch. Missing scopes: {missing}. "
            f"Required: {required_scopes}, Token has: {token_scopes}. "
            "Re-authorize with scripts/authorize_gmail.py."
        )


class MessageNotFoundError(MailSourceError):
    """Raised when a message disappeared between query and fetch."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Message '{message_id}' not found")


class AcknowledgeFailedError(MailSourceError):
    """Raised when a message could not be marked as read."""

    def __init__(self, message_id: str, reason: str):
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to mark message '{message_id}' as read: {reason}")


class MailAPIError(MailSourceError):
    """Raised when a Gmail API call fails for any other reason."""

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)
