#!/usr/bin/env python3
"""One-time Gmail authorization for the notification relay.

Runs the OAuth consent flow for GMAIL_CLIENT_ID / GMAIL_CLIENT_SECRET
and stores the resulting token (with its refresh token) at
GMAIL_TOKEN_PATH, or config/token.json by default.

Run from project root, on a machine with a browser:
    python scripts/authorize_gmail.py

Re-run it whenever the relay reports that Gmail authorization expired.
"""

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(PROJECT_ROOT))
from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

REQUIRED_ENV_VARS = [
    "GMAIL_CLIENT_ID",
    "GMAIL_CLIENT_SECRET",
]


def main() -> int:
    missing = [var for var in REQUIRED_ENV_VARS if not os.environ.get(var)]
    if missing:
        for var in missing:
            print(f"  ✗ Missing env var: {var}")
        print("\nSet them in .env or export them, then run this script again.")
        return 1

    from src.logging_config import configure_logging
    from src.mailsource import GmailAuthenticator

    configure_logging(secrets=[os.environ["GMAIL_CLIENT_SECRET"]])

    token_path = os.environ.get("GMAIL_TOKEN_PATH")
    authenticator = GmailAuthenticator(
        client_id=os.environ["GMAIL_CLIENT_ID"],
        client_secret=os.environ["GMAIL_CLIENT_SECRET"],
        token_path=Path(token_path) if token_path else None,
    )

    print("Open the URL printed below in your browser and grant access.\n")
    creds = authenticator.authorize()
    if not creds.refresh_token:
        print("\nWarning: no refresh token was issued; the token will stop working when it expires.")
    print(f"\nSaved Gmail token to {authenticator.token_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
