"""Async client for the Unipile unified email API.

Provides the ``UnipileClient`` class that encapsulates the provider operations
the service needs: connectivity checks, account listing, email listing and
retrieval, read-state updates, and sending.  Response bodies are unwrapped
from the several envelope shapes Unipile has been observed to return, but raw
email records are handed back untouched for ``normalize_email``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from mailbridge.email.models import Identity, OutboundEmail
from mailbridge.errors import ProviderError
from mailbridge.provider.models import (
    ConnectionStatus,
    EmailAccount,
    EmailPage,
    EmailQuery,
    SendResult,
)

logger = structlog.get_logger()

API_VERSION = "/api/v1"
DEFAULT_TIMEOUT = 30.0

# Lower-cased provider names that identify mail accounts (as opposed to
# messaging accounts such as LinkedIn or WhatsApp on the same Unipile tenant).
EMAIL_PROVIDERS: frozenset[str] = frozenset(
    {"gmail", "outlook", "yahoo", "imap", "microsoft", "google", "email"}
)


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def unwrap_list(payload: Any, keys: Sequence[str]) -> list[Any] | None:
    """Find the record array in a provider response.

    Args:
        payload: The decoded JSON body.
        keys: Envelope keys to try, in order, when *payload* is a dict.

    Returns:
        The first list found (a bare list payload counts), or ``None``.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return None


def parse_email_page(payload: Any, limit: int, offset: int) -> EmailPage:
    """Build an ``EmailPage`` from a ``GET /emails`` response body.

    Records are looked up in ``items``, then a bare list, then ``data``, and
    finally in the first list-valued key of an unknown envelope.

    Args:
        payload: The decoded JSON body.
        limit: The requested page size.
        offset: The requested offset.

    Returns:
        The page; empty when no record array could be found.
    """
    items = unwrap_list(payload, ("items", "data"))
    envelope = payload if isinstance(payload, dict) else {}

    if items is None and envelope:
        logger.warning("Unexpected emails response format", keys=sorted(envelope))
        items = next((value for value in envelope.values() if isinstance(value, list)), None)
        # Totals from an unknown envelope are not trusted.
        envelope = {}

    if items is None:
        return EmailPage(limit=limit, offset=offset)

    records = [item for item in items if isinstance(item, dict)]
    total = envelope.get("total")
    return EmailPage(
        items=records,
        total=total if isinstance(total, int) else len(records),
        has_more=bool(envelope.get("has_more", False)),
        limit=limit,
        offset=offset,
    )


def parse_account(raw: dict[str, Any]) -> EmailAccount:
    """Map a raw Unipile account object onto ``EmailAccount``."""
    return EmailAccount(
        id=str(raw.get("id", "")),
        provider=str(raw.get("provider", "")),
        email=raw.get("identifier") or raw.get("email") or raw.get("username"),
        name=raw.get("name") or raw.get("display_name") or "Unknown",
        status=raw.get("status") or "unknown",
        created_at=raw.get("created_at") or raw.get("createdAt") or _now_iso(),
    )


def format_recipients(recipients: Sequence[Identity]) -> list[dict[str, str]]:
    """Render identities in Unipile's ``{identifier, display_name}`` shape."""
    return [
        {"identifier": recipient.email, "display_name": recipient.name}
        for recipient in recipients
    ]


class UnipileClient:
    """Wrapper around the Unipile REST API for email operations.

    Owns a single ``httpx.AsyncClient`` configured with the API key (and DSN
    when given).  Call ``aclose`` on shutdown.

    Args:
        base_url: The tenant base URL, e.g. ``https://api1.unipile.com:13111``.
        api_key: The Unipile access token, sent as ``X-API-KEY``.
        dsn: Optional DSN, sent as ``X-DSN`` when non-empty.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        dsn: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "X-API-KEY": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if dsn:
            headers["X-DSN"] = dsn

        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}{API_VERSION}",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("provider_transport_error", operation=operation, error=str(exc))
            raise ProviderError(operation, str(exc)) from exc

        if response.is_error:
            error = ProviderError.from_response(operation, response)
            logger.error(
                "provider_request_failed",
                operation=operation,
                status_code=response.status_code,
                detail=error.detail,
            )
            raise error

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(operation, "response body is not valid JSON") from exc

    async def test_connection(self) -> ConnectionStatus:
        """Check that the API key and base URL reach the provider.

        Returns:
            The number of connected accounts and their raw records.

        Raises:
            ProviderError: If the provider cannot be reached or rejects the key.
        """
        payload = await self._request("test_connection", "GET", "/accounts")
        accounts = unwrap_list(payload, ("items", "data", "accounts")) or []
        return ConnectionStatus(total_accounts=len(accounts), accounts=accounts)

    async def list_accounts(self) -> list[EmailAccount]:
        """List connected mail accounts, skipping non-email providers.

        Returns:
            The mail accounts, in provider order.  An unrecognised response
            shape yields an empty list.
        """
        payload = await self._request("list_accounts", "GET", "/accounts")
        accounts = unwrap_list(payload, ("items", "data", "accounts"))
        if accounts is None:
            logger.warning("Unexpected accounts response format", payload_type=type(payload).__name__)
            return []

        return [
            parse_account(raw)
            for raw in accounts
            if isinstance(raw, dict) and str(raw.get("provider") or "").lower() in EMAIL_PROVIDERS
        ]

    async def list_emails(self, account_id: str, query: EmailQuery | None = None) -> EmailPage:
        """Fetch one page of raw email records for *account_id*.

        Args:
            account_id: The Unipile account ID.
            query: Filters and pagination.  Defaults to the first 50 emails.

        Returns:
            The page of raw records with total and ``has_more`` flags.
        """
        query = query or EmailQuery()
        params = query.to_params(account_id)
        logger.debug("Listing emails", account_id=account_id, params=params)

        payload = await self._request("list_emails", "GET", "/emails", params=params)
        return parse_email_page(payload, query.limit, query.offset)

    async def get_email(self, email_id: str, account_id: str) -> dict[str, Any]:
        """Fetch a single raw email record.

        Returns:
            The raw record; an empty dict if the provider returned a non-object.
        """
        payload = await self._request(
            "get_email", "GET", f"/emails/{email_id}", params={"account_id": account_id}
        )
        return payload if isinstance(payload, dict) else {}

    async def mark_as_read(self, email_id: str, account_id: str, is_read: bool = True) -> bool:
        """Set the read state of an email.

        Returns:
            The read state reported by the provider, or the requested one when
            the provider does not echo it.
        """
        payload = await self._request(
            "mark_as_read",
            "PATCH",
            f"/emails/{email_id}",
            json={"account_id": account_id, "is_read": is_read},
        )
        reported = payload.get("is_read") if isinstance(payload, dict) else None
        return bool(reported) if reported is not None else is_read

    async def send_email(self, account_id: str, outbound: OutboundEmail) -> SendResult:
        """Send an email from *account_id*.

        Args:
            account_id: The Unipile account to send from.
            outbound: The message.  Empty ``cc``/``bcc``/``reply_to`` are omitted.

        Returns:
            The provider message ID and send timestamp.
        """
        body: dict[str, Any] = {
            "account_id": account_id,
            "to": format_recipients(outbound.to),
            "subject": outbound.subject,
            "body": outbound.body,
        }
        if outbound.cc:
            body["cc"] = format_recipients(outbound.cc)
        if outbound.bcc:
            body["bcc"] = format_recipients(outbound.bcc)
        if outbound.reply_to:
            body["reply_to"] = format_recipients(outbound.reply_to)

        payload = await self._request("send_email", "POST", "/emails", json=body)
        data = payload if isinstance(payload, dict) else {}

        result = SendResult(
            message_id=str(data.get("id") or data.get("message_id") or "sent"),
            sent_at=str(data.get("sent_at") or data.get("created_at") or _now_iso()),
        )
        logger.info("Email sent", account_id=account_id, message_id=result.message_id)
        return result
