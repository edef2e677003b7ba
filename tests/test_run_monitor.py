"""Tests for the run_monitor CLI entry point."""

import logging
import socket
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

import run_monitor
from src.mailsource import GmailMailSource, MailAPIError, MessageRef
from src.orchestrator import ScanCycle, ScanResult

ENV = {
    "GMAIL_ADDRESS": "me@gmail.com",
    "TELEGRAM_CHAT_ID": "999",
    "GMAIL_CLIENT_ID": "cid",
    "GMAIL_CLIENT_SECRET": "secret",
    "TELEGRAM_BOT_TOKEN": "123:ABC",
    "MAIL_FILTER_QUERY": "in:inbox is:unread",
    "MAIL_MAX_RESULTS": "5",
    "CHECK_INTERVAL_MINUTES": "5",
}


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    for name in ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(run_monitor, "load_dotenv", lambda: None)
    yield
    root.handlers, root.level = handlers, level


@pytest.fixture
def env(monkeypatch):
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)


def _result(**kwargs) -> ScanResult:
    now = datetime.now(timezone.utc)
    return ScanResult(started_at=now, finished_at=now, **kwargs)


def test_missing_config_exits_with_2(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["run_monitor.py", "--once"])
    assert run_monitor.main() == 2
    assert "GMAIL_ADDRESS" in capsys.readouterr().err


def test_build_cycle_wires_config(env):
    config = run_monitor.MonitorConfig.from_env()
    with patch.object(run_monitor, "TelegramClient") as client_cls:
        cycle = run_monitor.build_cycle(config, client_cls.return_value)
    assert isinstance(cycle._source, run_monitor.GmailMailSource)
    assert cycle._filter_query == "in:inbox is:unread"
    assert cycle._max_results == 5


class TestOnce:
    @pytest.fixture(autouse=True)
    def _argv(self, monkeypatch, env):
        monkeypatch.setattr("sys.argv", ["run_monitor.py", "--once"])

    def test_success(self, capsys):
        with patch.object(run_monitor, "TelegramClient") as client_cls, patch.object(
            run_monitor, "build_cycle"
        ) as build_cycle:
            build_cycle.return_value.run.return_value = _result(matched=2, processed_count=2)
            assert run_monitor.main() == 0

        out = capsys.readouterr().out
        assert "--- Scan Summary ---" in out
        assert "processed: 2" in out
        assert "Result: SUCCESS" in out
        client_cls.return_value.close.assert_called_once()

    def test_failures_exit_with_1(self, capsys):
        result = _result(matched=1)
        result.add_failure(MessageRef("m1"), "deliver", "chat not found")
        with patch.object(run_monitor, "TelegramClient"), patch.object(
            run_monitor, "build_cycle"
        ) as build_cycle:
            build_cycle.return_value.run.return_value = result
            assert run_monitor.main() == 1

        out = capsys.readouterr().out
        assert "FAILED m1 (deliver): chat not found" in out
        assert "Result: FAILURE" in out

    def test_query_error_exits_with_1(self, capsys):
        with patch.object(run_monitor, "TelegramClient"), patch.object(
            run_monitor, "build_cycle"
        ) as build_cycle:
            build_cycle.return_value.run.side_effect = MailAPIError("backend down")
            assert run_monitor.main() == 1
        assert "Check failed: backend down" in capsys.readouterr().err


def test_default_runs_bot(env, monkeypatch):
    monkeypatch.setattr("sys.argv", ["run_monitor.py"])
    with patch.object(run_monitor, "TelegramClient"), patch.object(
        run_monitor, "build_cycle"
    ), patch.object(run_monitor, "MonitorBot") as bot_cls:
        assert run_monitor.main() == 0
    bot_cls.return_value.run.assert_called_once()


def test_once_network_error_exits_with_1(env, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["run_monitor.py", "--once"])
    service = MagicMock()
    service.users().messages().list().execute.side_effect = socket.timeout("timed out")
    cycle = ScanCycle(GmailMailSource(service=service), MagicMock(), "in:inbox is:unread")

    with patch.object(run_monitor, "TelegramClient"), patch.object(
        run_monitor, "build_cycle", return_value=cycle
    ):
        assert run_monitor.main() == 1

    err = capsys.readouterr().err
    assert "Check failed: Gmail request failed" in err
    assert "timed out" in err


def test_bot_and_notifier_use_separate_clients(env, monkeypatch):
    monkeypatch.setattr("sys.argv", ["run_monitor.py"])
    with patch.object(
        run_monitor, "TelegramClient", side_effect=lambda token: MagicMock()
    ), patch.object(run_monitor, "build_cycle") as build_cycle, patch.object(
        run_monitor, "MonitorBot"
    ) as bot_cls:
        assert run_monitor.main() == 0

    notify_client = build_cycle.call_args.args[1]
    bot_client = bot_cls.call_args.args[2]
    assert notify_client is not bot_client
    notify_client.close.assert_called_once()
