"""Unit tests for the mail source module."""

import base64
import socket
from unittest.mock import MagicMock

import httplib2
import pytest
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from src.mailsource import (
    AcknowledgeFailedError,
    AuthExpiredError,
    GmailMailSource,
    InMemoryMailSource,
    MailAPIError,
    MessageNotFoundError,
    MessageRef,
    RawMessage,
)


def _http_error(status: int, reason: str = "error") -> HttpError:
    resp = MagicMock()
    resp.status = status
    resp.reason = reason
    return HttpError(resp, b'{"error": {"message": "%s"}}' % reason.encode())


def _encode(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode()


class TestRawMessageFromApi:
    """Tests for building RawMessage from Gmail API responses."""

    def test_single_part_message(self):
        message = {
            "id": "msg1",
            "threadId": "thread1",
            "payload": {
                "mimeType": "text/plain",
                "headers": [
                    {"name": "From", "value": "a@example.com"},
                    {"name": "Subject", "value": "Hi"},
                ],
                "body": {"data": _encode("body")},
            },
        }
        raw = RawMessage.from_api_response(message)
        assert raw.id == "msg1"
        assert raw.thread_id == "thread1"
        assert raw.headers == (("From", "a@example.com"), ("Subject", "Hi"))
        assert raw.body == _encode("body")
        assert raw.parts == ()
        assert not raw.is_multipart

    def test_nested_parts_are_flattened_in_order(self):
        message = {
            "id": "msg1",
            "threadId": "thread1",
            "payload": {
                "mimeType": "multipart/mixed",
                "headers": [],
                "body": {"size": 0},
                "parts": [
                    {
                        "mimeType": "multipart/alternative",
                        "parts": [
                            {"mimeType": "text/plain", "body": {"data": "cGxhaW4"}},
                            {"mimeType": "text/html", "body": {"data": "aHRtbA"}},
                        ],
                    },
                    {"mimeType": "application/pdf", "body": {"attachmentId": "att1"}},
                ],
            },
        }
        raw = RawMessage.from_api_response(message)
        assert raw.is_multipart
        assert [p.mime_type for p in raw.parts] == [
            "text/plain",
            "text/html",
            "application/pdf",
        ]
        assert raw.parts[0].data == "cGxhaW4"
        assert raw.parts[2].data == ""
        assert raw.body is None

    def test_missing_payload(self):
        raw = RawMessage.from_api_response({"id": "msg1"})
        assert raw.headers == ()
        assert raw.parts == ()
        assert raw.body is None

    def test_ref(self):
        raw = RawMessage(id="msg1", thread_id="t1")
        assert raw.ref == MessageRef(id="msg1", thread_id="t1")


class TestGmailMailSource:
    """Tests for GmailMailSource with mocked Gmail service."""

    @pytest.fixture
    def mock_service(self):
        return MagicMock()

    @pytest.fixture
    def source(self, mock_service):
        return GmailMailSource(service=mock_service)

    def test_requires_authenticator_or_service(self):
        with pytest.raises(ValueError):
            GmailMailSource()

    def test_query_returns_refs_in_order(self, mock_service, source):
        mock_service.users().messages().list().execute.return_value = {
            "messages": [
                {"id": "msg2", "threadId": "t2"},
                {"id": "msg1", "threadId": "t1"},
            ]
        }
        refs = source.query("in:inbox is:unread from:x@y.com", 5)
        assert refs == [MessageRef("msg2", "t2"), MessageRef("msg1", "t1")]

    def test_query_passes_filter_and_cap(self, mock_service, source):
        mock_service.users().messages().list().execute.return_value = {}
        source.query("is:unread", 3)
        mock_service.users().messages().list.assert_called_with(
            userId="me",
            q="is:unread",
            maxResults=3,
            fields="messages(id,threadId)",
        )

    def test_query_empty(self, mock_service, source):
        mock_service.users().messages().list().execute.return_value = {}
        assert source.query("is:unread", 5) == []

    def test_query_401_is_auth_expired(self, mock_service, source):
        mock_service.users().messages().list().execute.side_effect = _http_error(401)
        with pytest.raises(AuthExpiredError):
            source.query("is:unread", 5)

    def test_query_refresh_error_is_auth_expired(self, mock_service, source):
        mock_service.users().messages().list().execute.side_effect = RefreshError(
            "invalid_grant: Token has been expired or revoked."
        )
        with pytest.raises(AuthExpiredError):
            source.query("is:unread", 5)

    def test_query_other_error(self, mock_service, source):
        mock_service.users().messages().list().execute.side_effect = _http_error(500)
        with pytest.raises(MailAPIError) as exc_info:
            source.query("is:unread", 5)
        assert exc_info.value.status_code == 500

    def test_query_timeout_is_api_error(self, mock_service, source):
        mock_service.users().messages().list().execute.side_effect = socket.timeout(
            "timed out"
        )
        with pytest.raises(MailAPIError) as exc_info:
            source.query("is:unread", 5)
        assert "timed out" in str(exc_info.value)
        assert exc_info.value.status_code is None

    def test_query_refresh_transport_error_is_api_error(self):
        authenticator = MagicMock()
        authenticator.get_service.side_effect = TransportError("connection reset")
        source = GmailMailSource(authenticator=authenticator)
        with pytest.raises(MailAPIError):
            source.query("is:unread", 5)
        authenticator.invalidate.assert_not_called()

    def test_query_token_write_failure_is_api_error(self):
        authenticator = MagicMock()
        authenticator.get_service.side_effect = PermissionError("config/token.json")
        source = GmailMailSource(authenticator=authenticator)
        with pytest.raises(MailAPIError):
            source.query("is:unread", 5)

    def test_fetch(self, mock_service, source):
        mock_service.users().messages().get().execute.return_value = {
            "id": "msg1",
            "threadId": "t1",
            "payload": {"headers": [{"name": "Subject", "value": "Hi"}], "body": {}},
        }
        raw = source.fetch(MessageRef("msg1", "t1"))
        assert raw.id == "msg1"
        assert raw.headers == (("Subject", "Hi"),)
        mock_service.users().messages().get.assert_called_with(
            userId="me", id="msg1", format="full"
        )

    def test_fetch_404_is_not_found(self, mock_service, source):
        mock_service.users().messages().get().execute.side_effect = _http_error(404)
        with pytest.raises(MessageNotFoundError) as exc_info:
            source.fetch(MessageRef("gone"))
        assert exc_info.value.message_id == "gone"

    def test_fetch_401_is_auth_expired(self, mock_service, source):
        mock_service.users().messages().get().execute.side_effect = _http_error(401)
        with pytest.raises(AuthExpiredError):
            source.fetch(MessageRef("msg1"))

    def test_acknowledge_removes_unread_label(self, mock_service, source):
        source.acknowledge(MessageRef("msg1"))
        mock_service.users().messages().modify.assert_called_with(
            userId="me", id="msg1", body={"removeLabelIds": ["UNREAD"]}
        )

    def test_acknowledge_failure(self, mock_service, source):
        mock_service.users().messages().modify().execute.side_effect = _http_error(500)
        with pytest.raises(AcknowledgeFailedError) as exc_info:
            source.acknowledge(MessageRef("msg1"))
        assert exc_info.value.message_id == "msg1"

    def test_fetch_httplib2_error_is_api_error(self, mock_service, source):
        mock_service.users().messages().get().execute.side_effect = (
            httplib2.ServerNotFoundError("Unable to find the server at gmail.googleapis.com")
        )
        with pytest.raises(MailAPIError) as exc_info:
            source.fetch(MessageRef("msg1"))
        assert "msg1" in str(exc_info.value)

    def test_acknowledge_network_error(self, mock_service, source):
        mock_service.users().messages().modify().execute.side_effect = ConnectionResetError(
            "reset by peer"
        )
        with pytest.raises(AcknowledgeFailedError) as exc_info:
            source.acknowledge(MessageRef("msg1"))
        assert "ConnectionResetError" in exc_info.value.reason

    def test_acknowledge_401_is_auth_expired(self, mock_service, source):
        mock_service.users().messages().modify().execute.side_effect = _http_error(401)
        with pytest.raises(AuthExpiredError):
            source.acknowledge(MessageRef("msg1"))

    def test_service_built_lazily_from_authenticator(self):
        authenticator = MagicMock()
        service = authenticator.get_service.return_value
        service.users().messages().list().execute.return_value = {}

        source = GmailMailSource(authenticator=authenticator)
        authenticator.get_service.assert_not_called()
        source.query("is:unread", 5)
        authenticator.get_service.assert_called_once()

    def test_missing_token_is_auth_expired(self):
        authenticator = MagicMock()
        authenticator.get_service.side_effect = AuthExpiredError("no token")
        source = GmailMailSource(authenticator=authenticator)
        with pytest.raises(AuthExpiredError):
            source.query("is:unread", 5)

    def test_discard_credentials_invalidates_and_rebuilds(self):
        authenticator = MagicMock()
        authenticator.get_service.return_value.users().messages().list().execute.return_value = {}
        source = GmailMailSource(authenticator=authenticator)
        source.query("is:unread", 5)

        source.discard_credentials()

        authenticator.invalidate.assert_called_once()
        source.query("is:unread", 5)
        assert authenticator.get_service.call_count == 2

    def test_discard_credentials_without_authenticator(self, mock_service, source):
        source.discard_credentials()
        mock_service.users().messages().list().execute.return_value = {}
        assert source.query("is:unread", 5) == []


class TestInMemoryMailSource:
    """Tests for InMemoryMailSource."""

    def test_query_returns_unread_in_insertion_order(self):
        source = InMemoryMailSource([RawMessage(id="a"), RawMessage(id="b")])
        source.add(RawMessage(id="c"), unread=False)
        assert [r.id for r in source.query("ignored", 10)] == ["a", "b"]

    def test_query_respects_cap(self):
        source = InMemoryMailSource([RawMessage(id=str(i)) for i in range(5)])
        assert len(source.query("ignored", 2)) == 2

    def test_acknowledge_marks_read(self):
        source = InMemoryMailSource([RawMessage(id="a")])
        source.acknowledge(MessageRef("a"))
        assert not source.is_unread("a")
        assert source.acknowledged == ["a"]
        assert source.query("ignored", 10) == []

    def test_fetch_removed_message(self):
        source = InMemoryMailSource([RawMessage(id="a")])
        source.remove("a")
        with pytest.raises(MessageNotFoundError):
            source.fetch(MessageRef("a"))

    def test_injected_failures(self):
        source = InMemoryMailSource([RawMessage(id="a")])
        source.fail_fetch["a"] = AuthExpiredError("expired")
        with pytest.raises(AuthExpiredError):
            source.fetch(MessageRef("a"))
