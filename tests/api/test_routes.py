"""Tests for the email HTTP API routes.

The provider client is replaced by ``AsyncMock(spec=UnipileClient)`` and the
full application is built through ``create_app`` so exception handlers and
middleware are exercised too.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from mailbridge.app import create_app
from mailbridge.config import Settings
from mailbridge.errors import ProviderError
from mailbridge.provider.client import UnipileClient
from mailbridge.provider.models import ConnectionStatus, EmailAccount, EmailPage, SendResult

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def provider() -> AsyncMock:
    """A provider client double with canned send results."""
    mock = AsyncMock(spec=UnipileClient)
    mock.send_email.return_value = SendResult(message_id="msg_1", sent_at="2024-05-01T10:00:00Z")
    return mock


@pytest.fixture()
def settings() -> Settings:
    """Development settings, isolated from any local ``.env`` file."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture()
def client(provider: AsyncMock, settings: Settings) -> TestClient:
    """TestClient for an app wired to the provider double."""
    app = create_app({"_settings": settings, "provider": provider})
    return TestClient(app)


def _page(*records: dict[str, Any], has_more: bool = False, limit: int = 10) -> EmailPage:
    return EmailPage(items=list(records), total=len(records), has_more=has_more, limit=limit, offset=0)


# ---------------------------------------------------------------------------
# Provider availability and errors
# ---------------------------------------------------------------------------


class TestProviderAvailability:
    """Missing provider and provider failures."""

    def test_missing_provider_returns_503(self, settings: Settings) -> None:
        app = create_app({"_settings": settings, "provider": None})
        response = TestClient(app).get("/api/emails/accounts")

        assert response.status_code == 503
        assert response.json()["detail"] == "Email provider is not configured"

    def test_provider_error_returns_502(self, client: TestClient, provider: AsyncMock) -> None:
        provider.list_accounts.side_effect = ProviderError(
            "list_accounts", "Invalid API key", status_code=401, detail="Invalid API key"
        )

        response = client.get("/api/emails/accounts")

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert body["providerStatus"] == 401
        assert "Invalid API key" in body["error"]
        assert "timestamp" in body


class TestConnectionAndAccounts:
    """GET /api/test/connection and GET /api/emails/accounts."""

    def test_connection(self, client: TestClient, provider: AsyncMock) -> None:
        provider.test_connection.return_value = ConnectionStatus(total_accounts=2, accounts=[{}, {}])

        response = client.get("/api/test/connection")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["totalAccounts"] == 2

    def test_accounts(self, client: TestClient, provider: AsyncMock) -> None:
        provider.list_accounts.return_value = [
            EmailAccount(id="a1", provider="GMAIL", email="me@gmail.com", created_at="2024-01-01")
        ]

        response = client.get("/api/emails/accounts")

        body = response.json()
        assert body["total"] == 1
        assert body["message"] == "Found 1 email account"
        assert body["data"][0]["createdAt"] == "2024-01-01"


# ---------------------------------------------------------------------------
# Listing and reading
# ---------------------------------------------------------------------------


class TestListEmails:
    """GET /api/emails/{account_id}."""

    def test_normalized_records_and_summary(
        self,
        client: TestClient,
        provider: AsyncMock,
        raw_email: dict[str, Any],
        raw_jane_email: dict[str, Any],
    ) -> None:
        provider.list_emails.return_value = _page(raw_email, raw_jane_email)

        response = client.get("/api/emails/acc_1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [email["from"] for email in body["data"]] == ["noreply@bank.com", "jane@corp.com"]
        assert body["data"][0]["plainTextBody"] == "Use code 482913 to verify. https://bank.com/v"
        assert body["summary"] == {
            "total": 2,
            "unread": 1,
            "totalWordCount": 12,
            "averageReadTime": 1,
        }
        assert "category" not in body["data"][0]

    def test_default_query(self, client: TestClient, provider: AsyncMock) -> None:
        provider.list_emails.return_value = _page()

        client.get("/api/emails/acc_1")

        account_id, query = provider.list_emails.await_args.args
        assert account_id == "acc_1"
        assert query.limit == 10
        assert query.offset == 0
        assert query.is_read is None

    def test_filters_forwarded(self, client: TestClient, provider: AsyncMock) -> None:
        provider.list_emails.return_value = _page()

        response = client.get(
            "/api/emails/acc_1",
            params={
                "limit": 5,
                "offset": 15,
                "folder": "INBOX",
                "from": "boss@x.com",
                "unread_only": "true",
                "has_attachments": "true",
            },
        )

        _, query = provider.list_emails.await_args.args
        assert query.limit == 5
        assert query.offset == 15
        assert query.folder_id == "INBOX"
        assert query.from_address == "boss@x.com"
        assert query.is_read is False
        assert query.has_attachments is True
        assert response.json()["appliedFilters"]["from"] == "boss@x.com"

    def test_empty_page_summary(self, client: TestClient, provider: AsyncMock) -> None:
        provider.list_emails.return_value = _page()

        body = client.get("/api/emails/acc_1").json()

        assert body["data"] == []
        assert body["summary"]["averageReadTime"] == 0
        assert body["message"] == "Retrieved 0 emails"

    def test_next_link_when_more(self, client: TestClient, provider: AsyncMock, raw_email: dict[str, Any]) -> None:
        provider.list_emails.return_value = _page(raw_email, has_more=True)

        body = client.get("/api/emails/acc_1").json()

        assert body["pagination"]["current"]["hasMore"] is True
        assert body["pagination"]["next"] == "/api/emails/acc_1?limit=10&offset=10"

    def test_no_next_link_on_last_page(
        self, client: TestClient, provider: AsyncMock, raw_email: dict[str, Any]
    ) -> None:
        provider.list_emails.return_value = _page(raw_email)
        assert client.get("/api/emails/acc_1").json()["pagination"]["next"] is None

    def test_enrich_flag(self, client: TestClient, provider: AsyncMock, raw_email: dict[str, Any]) -> None:
        provider.list_emails.return_value = _page(raw_email)

        email = client.get("/api/emails/acc_1", params={"enrich": "true"}).json()["data"][0]

        assert email["category"] == "security"
        assert email["keyFacts"]["codes"] == ["482913"]

    def test_limit_out_of_range(self, client: TestClient) -> None:
        assert client.get("/api/emails/acc_1", params={"limit": 0}).status_code == 422


class TestGetEmail:
    """GET /api/emails/{account_id}/{email_id}."""

    def test_enriched_record(self, client: TestClient, provider: AsyncMock, raw_email: dict[str, Any]) -> None:
        provider.get_email.return_value = raw_email

        response = client.get("/api/emails/acc_1/em_123")

        provider.get_email.assert_awaited_once_with("em_123", "acc_1")
        data = response.json()["data"]
        assert data["id"] == "em_123"
        assert data["category"] == "security"
        assert data["keyFacts"]["links"] == ["https://bank.com/v"]
        assert data["actions"]["reply"] == "POST /api/emails/acc_1/reply/em_123"

    def test_debug_attached_outside_production(
        self, client: TestClient, provider: AsyncMock, raw_email: dict[str, Any]
    ) -> None:
        provider.get_email.return_value = raw_email

        data = client.get("/api/emails/acc_1/em_123").json()["data"]

        assert data["_debug"]["senderExtractionSuccess"] is True
        assert data["_debug"]["availableFields"] == list(raw_email)

    def test_debug_omitted_in_production(self, provider: AsyncMock, raw_email: dict[str, Any]) -> None:
        provider.get_email.return_value = raw_email
        settings = Settings(_env_file=None, production=True)  # type: ignore[call-arg]
        client = TestClient(create_app({"_settings": settings, "provider": provider}))

        data = client.get("/api/emails/acc_1/em_123").json()["data"]

        assert "_debug" not in data

    def test_organization_token_from_settings(self, provider: AsyncMock) -> None:
        provider.get_email.return_value = {"from_attendee": "lead@acme.io", "subject": "Hello"}
        settings = Settings(_env_file=None, organization_token="acme")  # type: ignore[call-arg]
        client = TestClient(create_app({"_settings": settings, "provider": provider}))

        data = client.get("/api/emails/acc_1/e1").json()["data"]

        assert data["category"] == "work"


class TestMarkAsRead:
    """PATCH /api/emails/{account_id}/{email_id}/read."""

    def test_marks_read(self, client: TestClient, provider: AsyncMock) -> None:
        provider.mark_as_read.return_value = True

        response = client.patch("/api/emails/acc_1/e1/read")

        provider.mark_as_read.assert_awaited_once_with("e1", "acc_1", True)
        assert response.json()["data"] == {"emailId": "e1", "isRead": True}

    def test_marks_unread(self, client: TestClient, provider: AsyncMock) -> None:
        provider.mark_as_read.return_value = False

        response = client.patch("/api/emails/acc_1/e1/read", params={"isRead": "false"})

        provider.mark_as_read.assert_awaited_once_with("e1", "acc_1", False)
        assert response.json()["data"]["isRead"] is False


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


class TestSendEmail:
    """POST /api/emails/{account_id}/send."""

    def test_sends(self, client: TestClient, provider: AsyncMock) -> None:
        response = client.post(
            "/api/emails/acc_1/send",
            json={
                "to": ["Ann <ann@x.com>", {"identifier": "bob@x.com", "display_name": "Bob"}],
                "cc": "carol@x.com",
                "subject": "Hello",
                "body": "Hi all",
                "isHtml": False,
            },
        )

        assert response.status_code == 200
        account_id, outbound = provider.send_email.await_args.args
        assert account_id == "acc_1"
        assert [r.email for r in outbound.to] == ["ann@x.com", "bob@x.com"]
        assert outbound.to[0].name == "Ann"
        assert outbound.cc[0].email == "carol@x.com"
        assert outbound.is_html is False
        data = response.json()["data"]
        assert data["messageId"] == "msg_1"
        assert data["to"] == ["ann@x.com", "bob@x.com"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"subject": "s", "body": "b"},
            {"to": [], "subject": "s", "body": "b"},
            {"to": ["not an address"], "subject": "s", "body": "b"},
            {"to": ["a@x.com"], "subject": "", "body": "b"},
            {"to": ["a@x.com"], "subject": "s"},
        ],
    )
    def test_validation_errors(self, client: TestClient, provider: AsyncMock, payload: dict[str, Any]) -> None:
        response = client.post("/api/emails/acc_1/send", json=payload)

        assert response.status_code == 422
        provider.send_email.assert_not_awaited()

    def test_provider_failure(self, client: TestClient, provider: AsyncMock) -> None:
        provider.send_email.side_effect = ProviderError("send_email", "quota exceeded", status_code=429)

        response = client.post(
            "/api/emails/acc_1/send",
            json={"to": ["a@x.com"], "subject": "s", "body": "b"},
        )

        assert response.status_code == 502
        assert response.json()["providerStatus"] == 429


class TestSendBulk:
    """POST /api/emails/{account_id}/send/bulk."""

    def test_sends_to_each_recipient(self, client: TestClient, provider: AsyncMock) -> None:
        with patch("mailbridge.api.bulk.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = client.post(
                "/api/emails/acc_1/send/bulk",
                json={"recipients": ["a@x.com", "b@x.com"], "subject": "News", "body": "Hello"},
            )

        body = response.json()
        assert body["success"] is True
        assert body["data"]["sent"] == 2
        assert body["data"]["delayUsedMs"] == 1000
        assert provider.send_email.await_count == 2
        mock_sleep.assert_awaited_once_with(1.0)

    def test_delay_capped_by_settings(self, provider: AsyncMock) -> None:
        settings = Settings(_env_file=None, max_bulk_delay_ms=500)  # type: ignore[call-arg]
        client = TestClient(create_app({"_settings": settings, "provider": provider}))

        with patch("mailbridge.api.bulk.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = client.post(
                "/api/emails/acc_1/send/bulk",
                json={
                    "recipients": ["a@x.com", "b@x.com"],
                    "subject": "News",
                    "body": "Hello",
                    "delayBetweenEmails": 5000,
                },
            )

        assert response.json()["data"]["delayUsedMs"] == 500
        mock_sleep.assert_awaited_once_with(0.5)

    def test_partial_failure(self, client: TestClient, provider: AsyncMock) -> None:
        provider.send_email.side_effect = [
            SendResult(message_id="m1", sent_at="t"),
            ProviderError("send_email", "rejected", status_code=400),
        ]

        with patch("mailbridge.api.bulk.asyncio.sleep", new_callable=AsyncMock):
            response = client.post(
                "/api/emails/acc_1/send/bulk",
                json={"recipients": ["a@x.com", "b@x.com"], "subject": "News", "body": "Hello"},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["data"]["failed"] == 1
        assert body["data"]["results"][1]["recipient"] == "b@x.com"

    def test_empty_recipients_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/emails/acc_1/send/bulk",
            json={"recipients": [], "subject": "News", "body": "Hello"},
        )
        assert response.status_code == 422

    def test_negative_delay_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/emails/acc_1/send/bulk",
            json={"recipients": ["a@x.com"], "subject": "News", "body": "Hello", "delayBetweenEmails": -1},
        )
        assert response.status_code == 422


class TestReply:
    """POST /api/emails/{account_id}/reply/{email_id}."""

    def test_replies_to_sender(
        self, client: TestClient, provider: AsyncMock, raw_jane_email: dict[str, Any]
    ) -> None:
        raw_jane_email["message_id"] = "<kickoff@corp.com>"
        provider.get_email.return_value = raw_jane_email

        response = client.post("/api/emails/acc_1/reply/em_456", json={"body": "<p>Sounds good</p>"})

        assert response.status_code == 200
        _, outbound = provider.send_email.await_args.args
        assert outbound.to[0].email == "jane@corp.com"
        assert outbound.subject == "Re: Project kickoff"
        assert "--- Original Message ---" in outbound.body
        data = response.json()["data"]
        assert data["replyTo"] == "jane@corp.com"
        assert data["inReplyTo"] == "<kickoff@corp.com>"
        assert data["originalEmailId"] == "em_456"

    def test_without_original(
        self, client: TestClient, provider: AsyncMock, raw_jane_email: dict[str, Any]
    ) -> None:
        provider.get_email.return_value = raw_jane_email

        client.post(
            "/api/emails/acc_1/reply/em_456",
            json={"body": "Thanks", "includeOriginal": False, "isHtml": False},
        )

        _, outbound = provider.send_email.await_args.args
        assert outbound.body == "Thanks"
        assert outbound.is_html is False

    def test_unresolved_sender_rejected(self, client: TestClient, provider: AsyncMock) -> None:
        provider.get_email.return_value = {"from_attendee": None, "subject": "Hi"}

        response = client.post("/api/emails/acc_1/reply/e1", json={"body": "Thanks"})

        assert response.status_code == 422
        provider.send_email.assert_not_awaited()
