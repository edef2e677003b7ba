"""Notifier module for delivering notification records to chat.

Public API:
    - Notifier: Interface for notification channels
    - TelegramNotifier: Telegram Bot API implementation
    - TelegramClient: Low-level sendMessage/getUpdates client
    - DeliveryFailedError: Notification was not delivered
"""

from .adapter import Notifier
from .exceptions import DeliveryFailedError, NotifierError, TelegramAPIError
from .telegram_client import TelegramClient
from .telegram_notifier import TelegramNotifier

__all__ = [
    "Notifier",
    "TelegramNotifier",
    "TelegramClient",
    "NotifierError",
    "TelegramAPIError",
    "DeliveryFailedError",
]
