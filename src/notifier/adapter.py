"""Abstract interface for notification channels."""

from abc import ABC, abstractmethod

from src.extractor.models import NotificationRecord


class Notifier(ABC):
    """Abstract base class for chat notification channels.

    Implementations should handle:
    - Rendering a NotificationRecord for the channel
    - Sending it to the one configured destination
    - Translating channel errors to DeliveryFailedError

    deliver() is synchronous: when it returns, the message was accepted
    by the channel, and the source email may be acknowledged.
    """

    @abstractmethod
    def deliver(self, record: NotificationRecord) -> None:
        """Send one notification.

        Args:
            record: Notification to render and send.

        Raises:
            DeliveryFailedError: Network error, rate limit or rejection.
        """
        pass

    @property
    @abstractmethod
    def destination(self) -> str:
        """Return a printable identifier of the destination."""
        pass
