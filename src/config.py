"""Configuration for the notification relay.

Values come from environment variables; entry points call
dotenv.load_dotenv() first so a local .env file works too.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


# Environment variable -> MonitorConfig field
REQUIRED_VARS = {
    "GMAIL_ADDRESS": "gmail_address",
    "TELEGRAM_CHAT_ID": "telegram_chat_id",
    "GMAIL_CLIENT_ID": "gmail_client_id",
    "GMAIL_CLIENT_SECRET": "gmail_client_secret",
    "TELEGRAM_BOT_TOKEN": "telegram_bot_token",
    "MAIL_FILTER_QUERY": "filter_query",
    "MAIL_MAX_RESULTS": "max_results",
    "CHECK_INTERVAL_MINUTES": "check_interval_minutes",
}

INT_FIELDS = {"max_results", "check_interval_minutes"}


@dataclass(frozen=True)
class MonitorConfig:
    """Settings for one mailbox and one chat destination."""

    gmail_address: str
    telegram_chat_id: str
    gmail_client_id: str
    gmail_client_secret: str
    telegram_bot_token: str
    filter_query: str
    max_results: int
    check_interval_minutes: int
    token_path: Optional[Path] = None
    action_domain: str = ""
    notification_title: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MonitorConfig":
        """Build the config from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (for testing).

        Returns:
            MonitorConfig

        Raises:
            ConfigError: Listing every missing required variable, or naming
                a numeric variable that is not a positive integer.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARS if not env.get(name, "").strip()]
        if missing:
            raise ConfigError(
                "Missing required environment variables: " + ", ".join(missing)
            )

        values: dict = {}
        for name, field_name in REQUIRED_VARS.items():
            raw = env[name].strip()
            if field_name in INT_FIELDS:
                try:
                    number = int(raw)
                except ValueError:
                    raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
                if number <= 0:
                    raise ConfigError(f"{name} must be positive, got {number}")
                values[field_name] = number
            else:
                values[field_name] = raw

        token_path = env.get("GMAIL_TOKEN_PATH", "").strip()
        return cls(
            **values,
            token_path=Path(token_path) if token_path else None,
            action_domain=env.get("ACTION_URL_DOMAIN", "").strip(),
            notification_title=env.get("NOTIFICATION_TITLE", "").strip(),
        )
