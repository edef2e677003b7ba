"""Data models for the mail source module."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class MessageRef:
    """Lightweight identifier returned by a mailbox query.

    Attributes:
        id: Gmail message ID (unique per message)
        thread_id: Gmail thread ID (shared by messages in same thread)
    """

    id: str
    thread_id: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "MessageRef":
        """Build a ref from a messages.list entry."""
        return cls(id=data["id"], thread_id=data.get("threadId", ""))


@dataclass(frozen=True)
class BodyPart:
    """One leaf MIME part of a message.

    Attributes:
        mime_type: MIME type of the part, e.g. "text/plain"
        data: Base64url encoded content as returned by Gmail (may be empty)
    """

    mime_type: str
    data: str = ""


@dataclass(frozen=True)
class RawMessage:
    """Full message content as fetched from the mailbox.

    Headers keep their original order and casing. Multipart messages
    carry their leaf parts flattened depth-first in document order;
    single-part messages carry their content in ``body``.

    Attributes:
        id: Gmail message ID
        thread_id: Gmail thread ID
        headers: Ordered (name, value) header pairs
        parts: Leaf MIME parts for multipart messages
        body: Top-level encoded body for single-part messages
        mime_type: Top-level MIME type
    """

    id: str
    thread_id: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    parts: tuple[BodyPart, ...] = ()
    body: Optional[str] = None
    mime_type: str = ""

    @property
    def ref(self) -> MessageRef:
        return MessageRef(id=self.id, thread_id=self.thread_id)

    @property
    def is_multipart(self) -> bool:
        return bool(self.parts)

    @classmethod
    def from_api_response(cls, message: dict[str, Any]) -> "RawMessage":
        """Build a RawMessage from a Gmail messages.get response (format='full').

        Args:
            message: Full Gmail message from API

        Returns:
            RawMessage with flattened parts
        """
        payload = message.get("payload") or {}
        headers = tuple(
            (h.get("name", ""), h.get("value", ""))
            for h in payload.get("headers") or []
        )

        parts: list[BodyPart] = []

        def collect(nodes: list) -> None:
            for node in nodes:
                nested = node.get("parts")
                if nested:
                    collect(nested)
                    continue
                parts.append(
                    BodyPart(
                        mime_type=node.get("mimeType", ""),
                        data=(node.get("body") or {}).get("data", ""),
                    )
                )

        collect(payload.get("parts") or [])

        return cls(
            id=message["id"],
            thread_id=message.get("threadId", ""),
            headers=headers,
            parts=tuple(parts),
            body=(payload.get("body") or {}).get("data"),
            mime_type=payload.get("mimeType", ""),
        )
