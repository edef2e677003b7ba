"""Turns a fetched RawMessage into a NotificationRecord."""

import base64
import binascii
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from src.mailsource.models import RawMessage

from .models import (
    NO_URL_FOUND,
    PREVIEW_LENGTH,
    TRUNCATION_MARKER,
    NotificationRecord,
)

DEFAULT_SUBJECT = "No Subject"
DEFAULT_SENDER = "Unknown"

URL_PATTERN = re.compile(r"https?://\S+")


def decode_base64(data: str) -> str:
    """Decode Gmail's URL-safe base64 encoded data.

    Gmail uses URL-safe base64 encoding (RFC 4648) which replaces
    '+' with '-' and '/' with '_', and often drops the padding.

    Args:
        data: Base64url encoded string

    Returns:
        Decoded UTF-8 string, or "" if the data is not valid base64
    """
    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding

    try:
        decoded_bytes = base64.urlsafe_b64decode(data)
    except (binascii.Error, ValueError):
        return ""
    return decoded_bytes.decode("utf-8", errors="replace")


def header_value(raw: RawMessage, name: str) -> Optional[str]:
    """Return the first header with exactly this name, or None."""
    for header_name, value in raw.headers:
        if header_name == name:
            return value
    return None


def resolve_body(raw: RawMessage) -> str:
    """Pick and decode the message body.

    Multipart messages use their first text/plain part; single-part
    messages use the top-level body. Anything else yields "".
    """
    if raw.is_multipart:
        for part in raw.parts:
            if part.mime_type == "text/plain":
                return decode_base64(part.data) if part.data else ""
        return ""
    if raw.body:
        return decode_base64(raw.body)
    return ""


def find_action_url(body: str, action_domain: str = "") -> str:
    """Pick the most relevant link in the body.

    Prefers the first URL containing action_domain, then the first URL.
    """
    urls = URL_PATTERN.findall(body)
    if action_domain:
        for url in urls:
            if action_domain in url:
                return url
    return urls[0] if urls else NO_URL_FOUND


def make_preview(body: str) -> str:
    if len(body) > PREVIEW_LENGTH:
        return body[:PREVIEW_LENGTH] + TRUNCATION_MARKER
    return body


def parse_received_at(date_header: Optional[str], now: datetime) -> datetime:
    if not date_header:
        return now
    try:
        return parsedate_to_datetime(date_header)
    except (TypeError, ValueError, IndexError):
        return now


def extract(
    raw: RawMessage,
    action_domain: str = "",
    now: Optional[datetime] = None,
) -> NotificationRecord:
    """Build a NotificationRecord from a fetched message.

    Never raises: missing or malformed fields degrade to defaults.

    Args:
        raw: Message as returned by MailSource.fetch
        action_domain: Domain token identifying the provider's action links,
            e.g. "netflix.com". Empty means "take the first link".
        now: Timestamp used when the Date header is absent or unparseable.
            Defaults to the current UTC time.

    Returns:
        NotificationRecord for the message
    """
    if now is None:
        now = datetime.now(timezone.utc)

    body = resolve_body(raw)

    return NotificationRecord(
        subject=header_value(raw, "Subject") or DEFAULT_SUBJECT,
        sender=header_value(raw, "From") or DEFAULT_SENDER,
        received_at=parse_received_at(header_value(raw, "Date"), now),
        body_preview=make_preview(body),
        action_url=find_action_url(body, action_domain),
        source_id=raw.id,
    )
