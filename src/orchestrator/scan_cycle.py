"""ScanCycle - one query, fetch, extract, notify, acknowledge pass."""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from src.extractor import extract
from src.mailsource import AuthExpiredError, MailSource, MessageRef
from src.notifier import DeliveryFailedError, Notifier

from .models import ScanResult

logger = logging.getLogger(__name__)


class ScanCycle:
    """Relays unread notification emails to chat, then marks them read.

    Each run() queries the mailbox once and processes the matched
    messages sequentially, in query order. A message is acknowledged only
    after its notification was delivered, so anything that fails stays
    unread and is picked up again by the next run.

    run() is safe to call from several threads (timer and chat command):
    while one cycle is running, other calls return a skipped result.

    Example:
        cycle = ScanCycle(source, notifier, "in:inbox is:unread from:x@y", 5)
        result = cycle.run()
        print(result.summary())
    """

    def __init__(
        self,
        source: MailSource,
        notifier: Notifier,
        filter_query: str,
        max_results: int = 5,
        action_domain: str = "",
    ):
        self._source = source
        self._notifier = notifier
        self._filter_query = filter_query
        self._max_results = max_results
        self._action_domain = action_domain
        self._lock = threading.Lock()
        self._last_result: Optional[ScanResult] = None

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def last_result(self) -> Optional[ScanResult]:
        """Result of the most recent completed cycle, if any."""
        return self._last_result

    def run(self) -> ScanResult:
        """Run one cycle unless another one is in progress.

        Returns:
            ScanResult for this cycle, or a skipped result.

        Raises:
            MailSourceError: If the mailbox query itself failed for a
                reason other than credential expiry.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Scan already in progress, skipping")
            now = datetime.now(timezone.utc)
            return ScanResult(started_at=now, finished_at=now, skipped=True)
        try:
            result = self._run_cycle()
        finally:
            self._lock.release()
        self._last_result = result
        return result

    def _run_cycle(self) -> ScanResult:
        result = ScanResult(started_at=datetime.now(timezone.utc))

        # Querying
        try:
            refs = self._source.query(self._filter_query, self._max_results)
        except AuthExpiredError as e:
            self._signal_reauth(result, e)
            result.finished_at = datetime.now(timezone.utc)
            return result

        result.matched = len(refs)
        if not refs:
            logger.info("No matching unread emails")
        else:
            logger.info("Found %d matching unread emails", len(refs))

        # Processing
        for ref in refs:
            try:
                self._process(ref, result)
            except AuthExpiredError as e:
                self._signal_reauth(result, e)
                break
            except Exception as e:
                logger.exception("Unexpected error processing message %s", ref.id)
                result.add_failure(ref, "unexpected", e)

        # Done
        result.finished_at = datetime.now(timezone.utc)
        logger.info("Scan finished: %s", result.summary())
        return result

    def _process(self, ref: MessageRef, result: ScanResult) -> None:
        """Fetch, extract, deliver and acknowledge one message.

        Per-message failures are recorded on result. AuthExpiredError is
        recorded and re-raised so the cycle stops.
        """
        try:
            raw = self._source.fetch(ref)
        except AuthExpiredError as e:
            result.add_failure(ref, "fetch", e)
            raise
        except Exception as e:
            logger.warning("Skipping message %s: fetch failed: %s", ref.id, e)
            result.add_failure(ref, "fetch", e)
            return

        try:
            record = extract(raw, action_domain=self._action_domain)
        except Exception as e:
            logger.exception("Skipping message %s: extraction failed", ref.id)
            result.add_failure(ref, "extract", e)
            return

        try:
            self._notifier.deliver(record)
        except DeliveryFailedError as e:
            logger.warning("Leaving message %s unread: %s", ref.id, e)
            result.add_failure(ref, "deliver", e)
            return

        try:
            self._source.acknowledge(ref)
        except AuthExpiredError as e:
            result.add_failure(ref, "acknowledge", e)
            raise
        except Exception as e:
            # Already delivered; the next cycle may notify again
            logger.error("Delivered message %s but could not mark it read: %s", ref.id, e)
            result.add_failure(ref, "acknowledge", e)
            return

        result.processed_count += 1

    def _signal_reauth(self, result: ScanResult, error: Exception) -> None:
        result.auth_expired = True
        logger.error("Gmail authorization expired: %s", error)
        try:
            self._source.discard_credentials()
        except OSError:
            logger.exception("Could not delete the stored Gmail token")
        logger.warning(
            "Re-authorize with scripts/authorize_gmail.py; "
            "checks will fail until then"
        )
