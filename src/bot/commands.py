"""Chat command parsing and reply text."""

import html
from enum import Enum
from typing import Optional

from src.config import MonitorConfig
from src.orchestrator import ScanResult


class CommandType(Enum):
    """Supported bot commands."""

    START = "/start"
    CHECK = "/check"
    STATUS = "/status"
    STOP = "/stop"


def parse_command(text: Optional[str]) -> Optional[CommandType]:
    """Match message text against the command prefixes.

    Matching is a case-sensitive prefix match: "/check now" is a check,
    "/Check" and "please /check" are not commands.

    Returns:
        The command, or None if the text is not a command.
    """
    if not text:
        return None
    for command in CommandType:
        if text.startswith(command.value):
            return command
    return None


def welcome_text(config: MonitorConfig) -> str:
    return "\n".join(
        [
            "✅ <b>Mail notification relay started!</b>",
            "",
            "This bot scans your Gmail for matching notification emails "
            "and forwards them here.",
            "",
            "<b>Commands:</b>",
            "/check - Check Gmail manually right now",
            "/status - Show bot status",
            "/stop - Stop the bot",
            "",
            f"The bot checks automatically every {config.check_interval_minutes} minutes.",
        ]
    )


def check_result_text(result: ScanResult) -> str:
    """Reply for /check once the cycle has finished."""
    if result.skipped:
        return "⏳ A check is already in progress. Try again in a moment."
    if result.auth_expired:
        return (
            "⚠️ Gmail authorization expired. "
            "Run scripts/authorize_gmail.py on the server to re-authorize."
        )
    text = f"✅ Check complete! {result.summary()}."
    if result.failures:
        text += "\nFailed messages stay unread and are retried on the next check."
    return text


def status_text(
    config: MonitorConfig,
    idle_seconds: Optional[float],
    last_result: Optional[ScanResult],
    last_error: Optional[str] = None,
) -> str:
    lines = [
        "📊 <b>Bot Status</b>",
        "",
        "✅ Bot is running",
        f"⏱️ Check interval: Every {config.check_interval_minutes} minutes",
        f"📧 Monitoring: {html.escape(config.gmail_address)}",
        f"🤖 Telegram Chat: {html.escape(config.telegram_chat_id)}",
        "",
    ]
    if idle_seconds is None:
        lines.append("No check is scheduled")
    else:
        minutes = max(0, round(idle_seconds / 60))
        lines.append(f"Next scheduled check in ~{minutes} minutes")

    if last_error:
        lines.append(f"Last check failed: {html.escape(last_error)}")
    elif last_result is not None:
        finished = last_result.finished_at or last_result.started_at
        lines.append(
            f"Last check at {finished.astimezone().strftime('%Y-%m-%d %H:%M:%S')}: "
            f"{html.escape(last_result.summary())}"
        )
    else:
        lines.append("No check has completed yet")
    return "\n".join(lines)
