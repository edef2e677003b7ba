"""Scan cycle orchestrator for the notification relay.

Connects a MailSource, the extractor and a Notifier into a single
guarded scan with per-message error isolation and structured results.
"""

from .models import ScanFailure, ScanResult
from .scan_cycle import ScanCycle

__all__ = [
    "ScanCycle",
    "ScanResult",
    "ScanFailure",
]
