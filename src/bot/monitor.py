"""MonitorBot - runs the scan cycle on a timer and answers chat commands."""

import logging
import threading
from typing import Optional

import schedule

from src.config import MonitorConfig
from src.notifier import TelegramAPIError, TelegramClient
from src.orchestrator import ScanCycle, ScanResult

from .commands import (
    CommandType,
    check_result_text,
    parse_command,
    status_text,
    welcome_text,
)

logger = logging.getLogger(__name__)

POLL_TIMEOUT_SECONDS = 10
POLL_ERROR_DELAY_SECONDS = 5
SCHEDULER_TICK_SECONDS = 1


class MonitorBot:
    """Drives a ScanCycle from two independent callers.

    - the scheduler: one cycle at startup, then every
      check_interval_minutes, on the thread that called run()
    - the command listener: a background thread long-polling Telegram
      for /start, /check, /status and /stop

    Both call the same ScanCycle.run(), which skips a cycle while another
    one is still running.

    client is only used from the polling thread, so it must not be the
    client the cycle's notifier sends through.

    Example:
        bot = MonitorBot(config, cycle, TelegramClient(config.telegram_bot_token))
        bot.run()  # blocks until /stop or Ctrl-C
    """

    def __init__(
        self,
        config: MonitorConfig,
        cycle: ScanCycle,
        client: TelegramClient,
        scheduler: Optional[schedule.Scheduler] = None,
    ):
        self._config = config
        self._cycle = cycle
        self._client = client
        self._scheduler = scheduler or schedule.Scheduler()
        self._stop_event = threading.Event()
        self._update_offset: Optional[int] = None
        self._last_error: Optional[str] = None
        self._poll_thread: Optional[threading.Thread] = None

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # -------------------- Scheduler --------------------

    def run_scheduled_check(self) -> Optional[ScanResult]:
        """Scheduler job: run a cycle and log its outcome.

        Never raises, so a failing check cannot stop the scheduler.
        """
        logger.info("Checking Gmail for notification emails...")
        try:
            result = self._cycle.run()
        except Exception as e:
            logger.exception("Scheduled check failed")
            self._last_error = str(e)
            return None
        if not result.skipped:
            self._last_error = None
        return result

    def start_schedule(self) -> None:
        self._scheduler.every(self._config.check_interval_minutes).minutes.do(
            self.run_scheduled_check
        )

    # -------------------- Commands --------------------

    def _reply(self, chat_id: int | str, text: str, parse_mode: Optional[str] = None) -> None:
        try:
            self._client.send_message(chat_id, text, parse_mode=parse_mode)
        except TelegramAPIError:
            logger.exception("Could not reply to chat %s", chat_id)

    def _handle_check(self, chat_id: int | str) -> None:
        self._reply(chat_id, "🔍 Checking Gmail now...")
        try:
            result = self._cycle.run()
        except Exception as e:
            logger.exception("Manual check failed")
            self._last_error = str(e)
            self._reply(chat_id, f"❌ Check failed: {e}")
            return
        if not result.skipped:
            self._last_error = None
        self._reply(chat_id, check_result_text(result))

    def handle_text(self, chat_id: int | str, text: Optional[str]) -> Optional[CommandType]:
        """Dispatch one inbound chat message.

        Returns:
            The command handled, or None if the text was not a command.
        """
        command = parse_command(text)
        if command is None:
            return None

        logger.info("Received %s from chat %s", command.value, chat_id)
        if command is CommandType.START:
            self._reply(chat_id, welcome_text(self._config), parse_mode="HTML")
        elif command is CommandType.CHECK:
            self._handle_check(chat_id)
        elif command is CommandType.STATUS:
            self._reply(
                chat_id,
                status_text(
                    self._config,
                    self._scheduler.idle_seconds,
                    self._cycle.last_result,
                    self._last_error,
                ),
                parse_mode="HTML",
            )
        elif command is CommandType.STOP:
            self._reply(chat_id, "🛑 Bot stopped. Restart the service to resume monitoring.")
            self.stop()
        return command

    def handle_update(self, update: dict) -> None:
        """Handle one getUpdates entry and advance the update offset."""
        self._update_offset = update["update_id"] + 1
        message = update.get("message") or {}
        chat = message.get("chat") or {}
        if "id" not in chat:
            return
        self.handle_text(chat["id"], message.get("text"))

    def poll_once(self, timeout: int = POLL_TIMEOUT_SECONDS) -> int:
        """Fetch and handle one batch of updates.

        Returns:
            Number of updates received.
        """
        updates = self._client.get_updates(offset=self._update_offset, timeout=timeout)
        for update in updates:
            self.handle_update(update)
            if self.stopped:
                break
        return len(updates)

    def _poll_loop(self) -> None:
        while not self.stopped:
            try:
                self.poll_once()
            except TelegramAPIError as e:
                logger.error("Polling error: %s", e)
                self._stop_event.wait(POLL_ERROR_DELAY_SECONDS)
            except Exception:
                logger.exception("Unexpected error while handling updates")
                self._stop_event.wait(POLL_ERROR_DELAY_SECONDS)

        if self._update_offset is not None:
            # Confirm the last handled update so /stop is not replayed on restart
            try:
                self._client.get_updates(offset=self._update_offset, timeout=0)
            except TelegramAPIError as e:
                logger.warning("Could not confirm handled updates: %s", e)

    # -------------------- Lifecycle --------------------

    def stop(self) -> None:
        """Stop the scheduler and the command listener."""
        if not self.stopped:
            logger.info("Stopping bot")
        self._scheduler.clear()
        self._stop_event.set()

    def run(self) -> None:
        """Run until stop() is called (via /stop) or KeyboardInterrupt."""
        logger.info("Bot is running. Send /start to begin.")
        self.start_schedule()

        self._poll_thread = threading.Thread(
            target=self._poll_loop, name="telegram-poller", daemon=True
        )
        self._poll_thread.start()

        self.run_scheduled_check()

        try:
            while not self.stopped:
                self._scheduler.run_pending()
                self._stop_event.wait(SCHEDULER_TICK_SECONDS)
        except KeyboardInterrupt:
            logger.info("Interrupted")
            self.stop()

        self._poll_thread.join(timeout=POLL_TIMEOUT_SECONDS + 5)
        self._client.close()
