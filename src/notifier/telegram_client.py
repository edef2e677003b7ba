"""Minimal Telegram Bot API client."""

import logging
from typing import Any, Optional

import requests

from .exceptions import TelegramAPIError

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10


class TelegramClient:
    """Calls the Telegram Bot API over HTTPS.

    Only the two methods the relay needs are wrapped: sendMessage for
    notifications and command replies, getUpdates for long polling.
    """

    def __init__(
        self,
        token: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = API_BASE_URL,
    ):
        self._token = token
        self._session = session or requests.Session()
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    def _call(self, method: str, payload: dict[str, Any], timeout: float) -> Any:
        """POST one Bot API method and return its "result".

        Raises:
            TelegramAPIError: On network errors, non-JSON replies,
                HTTP errors or an "ok": false payload.
        """
        url = f"{self._base_url}/bot{self._token}/{method}"
        try:
            response = self._session.post(url, json=payload, timeout=timeout)
        except requests.RequestException as e:
            # The exception text and its traceback contain the URL, and with it the token
            raise TelegramAPIError(f"{method} request failed: {type(e).__name__}") from None

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400 or not data.get("ok", False):
            parameters = data.get("parameters") or {}
            description = data.get("description") or response.reason or "unknown error"
            logger.error(
                "Telegram %s failed (status=%d): %s",
                method,
                response.status_code,
                description,
            )
            raise TelegramAPIError(
                description,
                status_code=response.status_code,
                retry_after=parameters.get("retry_after"),
            )

        return data.get("result")

    def send_message(
        self,
        chat_id: str | int,
        text: str,
        parse_mode: Optional[str] = None,
    ) -> int:
        """Send a text message.

        Args:
            chat_id: Destination chat.
            text: Message text (at most 4096 characters after parsing).
            parse_mode: "HTML" or "MarkdownV2", None for plain text.

        Returns:
            Telegram message ID of the sent message.

        Raises:
            TelegramAPIError: If the message was not accepted.
        """
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        result = self._call("sendMessage", payload, self._timeout)
        return result.get("message_id", 0) if isinstance(result, dict) else 0

    def get_updates(self, offset: Optional[int] = None, timeout: int = 10) -> list[dict]:
        """Long-poll for new updates.

        Args:
            offset: First update ID to return; pass last seen ID + 1 to
                confirm everything before it.
            timeout: Long polling timeout in seconds.

        Returns:
            List of update objects, possibly empty.
        """
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = self._call("getUpdates", payload, timeout + self._timeout)
        return result or []

    def close(self) -> None:
        self._session.close()
