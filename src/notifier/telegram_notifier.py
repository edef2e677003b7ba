"""TelegramNotifier: delivers notification records to a Telegram chat."""

import html
import logging
from typing import Optional

from src.extractor.models import TRUNCATION_MARKER, NotificationRecord

from .adapter import Notifier
from .exceptions import DeliveryFailedError, TelegramAPIError
from .telegram_client import TelegramClient

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New notification email"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Telegram rejects texts over 4096 characters (counted after HTML parsing),
# so each field is capped; together with the labels they stay below that.
TELEGRAM_MAX_MESSAGE_LENGTH = 4096
MAX_TITLE_LENGTH = 256
MAX_SUBJECT_LENGTH = 512
MAX_URL_LENGTH = 1024
MAX_PREVIEW_LENGTH = 1024
MAX_ID_LENGTH = 256


def _clip(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


class TelegramNotifier(Notifier):
    """Formats records as HTML messages and sends them to one chat.

    Example:
        notifier = TelegramNotifier(TelegramClient(token), chat_id="12345")
        notifier.deliver(record)
    """

    def __init__(
        self,
        client: TelegramClient,
        chat_id: str,
        title: Optional[str] = None,
    ):
        self._client = client
        self._chat_id = chat_id
        self._title = title or DEFAULT_TITLE

    @property
    def destination(self) -> str:
        return self._chat_id

    def format_message(self, record: NotificationRecord) -> str:
        """Render a record in the fixed notification layout.

        Every dynamic value is clipped to its field limit, then HTML-escaped
        for Telegram's HTML parse mode.
        """
        received = record.received_at.astimezone().strftime(TIMESTAMP_FORMAT)
        lines = [
            f"📬 <b>{html.escape(_clip(self._title, MAX_TITLE_LENGTH))}</b>",
            "",
            f"<b>Subject:</b> {html.escape(_clip(record.subject, MAX_SUBJECT_LENGTH))}",
            "",
            f"<b>Received:</b> {received}",
            "",
            f"<b>Action Link:</b> {html.escape(_clip(record.action_url, MAX_URL_LENGTH))}",
            "",
            "<b>Preview:</b>",
            html.escape(_clip(record.body_preview, MAX_PREVIEW_LENGTH)),
            "",
            f"<i>Message ID: {html.escape(_clip(record.source_id, MAX_ID_LENGTH))}</i>",
        ]
        return "\n".join(lines)

    def deliver(self, record: NotificationRecord) -> None:
        text = self.format_message(record)
        try:
            self._client.send_message(self._chat_id, text, parse_mode="HTML")
        except TelegramAPIError as e:
            raise DeliveryFailedError(
                record.source_id,
                e.description,
                status_code=e.status_code,
                retry_after=e.retry_after,
            ) from e
        logger.info("Sent notification for message %s to chat %s", record.source_id, self._chat_id)
