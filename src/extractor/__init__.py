"""Extracts structured notification records from fetched emails.

Public API:
    - extract: Pure, total RawMessage -> NotificationRecord function
    - NotificationRecord: Structured notification data model
"""

from .extractor import decode_base64, extract, find_action_url
from .models import NO_URL_FOUND, NotificationRecord

__all__ = [
    "extract",
    "decode_base64",
    "find_action_url",
    "NotificationRecord",
    "NO_URL_FOUND",
]
