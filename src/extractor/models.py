"""Data model for extracted notifications."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

PREVIEW_LENGTH = 200
TRUNCATION_MARKER = "..."
NO_URL_FOUND = "none found"


@dataclass(frozen=True)
class NotificationRecord:
    """Structured summary of one notification email.

    Attributes:
        subject: Subject header, or "No Subject"
        sender: Raw From header, or "Unknown"
        received_at: Parsed Date header, or extraction time if absent
        body_preview: First 200 characters of the plain text body,
            with "..." appended when the body is longer
        action_url: Most relevant link in the body, or "none found"
        source_id: Gmail message ID the record was built from
    """

    subject: str
    sender: str
    received_at: datetime
    body_preview: str
    action_url: str
    source_id: str

    @property
    def has_action_url(self) -> bool:
        return self.action_url != NO_URL_FOUND

    def to_dict(self) -> dict[str, Any]:
        """Serialize record to dictionary for logging or transmission."""
        return {
            "subject": self.subject,
            "sender": self.sender,
            "received_at": self.received_at.isoformat(),
            "body_preview": self.body_preview,
            "action_url": self.action_url,
            "source_id": self.source_id,
        }
