"""Scheduler and chat command surface for the notification relay.

Public API:
    - MonitorBot: Runs the scan cycle on a timer and answers commands
    - CommandType: Supported commands
    - parse_command: Case-sensitive prefix matching of command text
"""

from .commands import CommandType, parse_command
from .monitor import MonitorBot

__all__ = [
    "MonitorBot",
    "CommandType",
    "parse_command",
]
