"""CLI entry point for the mail notification relay."""

import argparse
import logging
import sys

from dotenv import load_dotenv

from src.bot import MonitorBot
from src.config import ConfigError, MonitorConfig
from src.logging_config import configure_logging
from src.mailsource import GmailAuthenticator, GmailMailSource, MailSourceError
from src.notifier import TelegramClient, TelegramNotifier
from src.orchestrator import ScanCycle

logger = logging.getLogger("run_monitor")


def build_cycle(config: MonitorConfig, client: TelegramClient) -> ScanCycle:
    authenticator = GmailAuthenticator(
        client_id=config.gmail_client_id,
        client_secret=config.gmail_client_secret,
        token_path=config.token_path,
    )
    return ScanCycle(
        source=GmailMailSource(authenticator=authenticator),
        notifier=TelegramNotifier(
            client, config.telegram_chat_id, title=config.notification_title
        ),
        filter_query=config.filter_query,
        max_results=config.max_results,
        action_domain=config.action_domain,
    )


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Relay Gmail notification emails to Telegram")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single check and exit instead of running the bot",
    )
    args = parser.parse_args()

    try:
        config = MonitorConfig.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(
        level_override=args.log_level,
        secrets=[config.telegram_bot_token, config.gmail_client_secret],
    )

    # One TelegramClient (and requests.Session) per thread: notifications are
    # sent inside scan cycles, command replies from the bot's polling thread
    notify_client = TelegramClient(config.telegram_bot_token)
    cycle = build_cycle(config, notify_client)

    if args.once:
        try:
            result = cycle.run()
        except MailSourceError as e:
            print(f"Check failed: {e}", file=sys.stderr)
            return 1
        finally:
            notify_client.close()

        print("\n--- Scan Summary ---")
        print(f"  matched: {result.matched}")
        print(f"  processed: {result.processed_count}")
        for failure in result.failures:
            print(f"  FAILED {failure.ref.id} ({failure.stage}): {failure.error}")
        if result.auth_expired:
            print("  Gmail authorization expired; run scripts/authorize_gmail.py")
        print(f"\nResult: {'SUCCESS' if result.success else 'FAILURE'}")
        return 0 if result.success else 1

    logger.info("Mail notification relay starting...")
    logger.info("Chat ID: %s", config.telegram_chat_id)
    logger.info("Gmail: %s", config.gmail_address)
    logger.info("Check interval: every %d minutes", config.check_interval_minutes)

    try:
        MonitorBot(config, cycle, TelegramClient(config.telegram_bot_token)).run()
    finally:
        notify_client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
