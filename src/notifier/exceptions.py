"""Exceptions for the notifier module."""


class NotifierError(Exception):
    """Base exception for notifier errors."""

    pass


class TelegramAPIError(NotifierError):
    """Raised when a Telegram Bot API call fails.

    Attributes:
        status_code: HTTP status, None for network errors
        description: Telegram's error description, if any
        retry_after: Seconds to wait when rate limited (429)
    """

    def __init__(
        self,
        description: str,
        status_code: int | None = None,
        retry_after: int | None = None,
    ):
        self.description = description
        self.status_code = status_code
        self.retry_after = retry_after
        msg = f"Telegram API error: {description}"
        if status_code:
            msg += f" (status={status_code})"
        if retry_after:
            msg += f". Retry after {retry_after} seconds"
        super().__init__(msg)


class DeliveryFailedError(NotifierError):
    """Raised when a notification could not be delivered.

    status_code is None when the request never got an HTTP response.
    """

    def __init__(
        self,
        source_id: str,
        reason: str,
        status_code: int | None = None,
        retry_after: int | None = None,
    ):
        self.source_id = source_id
        self.reason = reason
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(f"Failed to deliver notification for '{source_id}': {reason}")
