"""Data models for scan cycle results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mailsource.models import MessageRef


@dataclass
class ScanFailure:
    """A message that could not be fully processed in a cycle.

    Attributes:
        ref: The message that failed.
        stage: Step that failed: "fetch", "extract", "deliver",
            "acknowledge", or "unexpected" for errors outside those steps.
        error: Error description.
    """

    ref: MessageRef
    stage: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"message_id": self.ref.id, "stage": self.stage, "error": self.error}


@dataclass
class ScanResult:
    """Outcome of one scan cycle.

    Failures are data here: a cycle with failed messages still returns
    a result. Only a failed query propagates as an exception.

    Attributes:
        started_at: When the cycle started.
        finished_at: When the cycle finished.
        matched: Number of refs the query returned.
        processed_count: Messages delivered and marked as read.
        failures: Messages left unread (or delivered but not acknowledged).
        auth_expired: The credential expired; it was discarded.
        skipped: Another cycle was already running; nothing was done.
    """

    started_at: datetime
    finished_at: datetime | None = None
    matched: int = 0
    processed_count: int = 0
    failures: list[ScanFailure] = field(default_factory=list)
    auth_expired: bool = False
    skipped: bool = False

    @property
    def success(self) -> bool:
        return not self.failures and not self.auth_expired and not self.skipped

    def add_failure(self, ref: MessageRef, stage: str, error: Exception | str) -> None:
        self.failures.append(ScanFailure(ref=ref, stage=stage, error=str(error)))

    def summary(self) -> str:
        """One-line human readable outcome."""
        if self.skipped:
            return "skipped: another check was already running"
        text = f"{self.processed_count} of {self.matched} message(s) processed"
        if self.failures:
            text += f", {len(self.failures)} failed"
        if self.auth_expired:
            text += ", Gmail authorization expired"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "matched": self.matched,
            "processed_count": self.processed_count,
            "failures": [f.to_dict() for f in self.failures],
            "auth_expired": self.auth_expired,
            "skipped": self.skipped,
        }
