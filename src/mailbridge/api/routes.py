"""FastAPI routes for listing, reading, and sending email through Unipile.

Every raw record fetched from the provider passes through ``normalize_email``
before it is returned; enrichment (category and key facts) is attached on
request.  Provider failures raise ``ProviderError``, which the application
maps to a 502 response.

The provider client and settings are read from ``request.app.state`` so the
router can be mounted on a test app with fakes.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mailbridge.api.bulk import send_bulk
from mailbridge.api.schemas import (
    BulkSendRequest,
    ReplyRequest,
    SendEmailRequest,
    serialize_email,
    summarize_emails,
    utc_timestamp,
)
from mailbridge.config import Settings
from mailbridge.email.models import NormalizedEmail, OutboundEmail
from mailbridge.email.normalizer import normalize_email
from mailbridge.email.reply import build_reply
from mailbridge.enrichment.pipeline import enrich_email
from mailbridge.errors import ProviderError
from mailbridge.observability.metrics import EMAILS_SENT, record_normalized
from mailbridge.provider.client import UnipileClient
from mailbridge.provider.models import EmailQuery

logger = structlog.get_logger()

router = APIRouter(prefix="/api")


def get_provider(request: Request) -> UnipileClient:
    """Dependency returning the configured provider client.

    Raises:
        HTTPException: 503 if no provider client was initialized.
    """
    provider: UnipileClient | None = request.app.state.services.get("provider")
    if provider is None:
        raise HTTPException(status_code=503, detail="Email provider is not configured")
    return provider


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the application settings."""
    settings: Settings = request.app.state.settings
    return settings


ProviderDep = Annotated[UnipileClient, Depends(get_provider)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def _normalize(raw: dict[str, Any], settings: Settings) -> NormalizedEmail:
    email = normalize_email(
        raw,
        max_preview_length=settings.preview_max_length,
        include_debug=settings.include_debug_info,
    )
    record_normalized(email)
    if not email.sender.resolved:
        logger.debug("Sender not resolved", email_id=email.id)
    return email


@router.get("/test/connection")
async def test_connection(provider: ProviderDep) -> dict[str, Any]:
    """Check provider connectivity and report the connected account count."""
    status = await provider.test_connection()
    return {
        "success": True,
        "message": "Connected to email provider",
        "data": status.model_dump(mode="json", by_alias=True),
        "timestamp": utc_timestamp(),
    }


@router.get("/emails/accounts")
async def list_accounts(provider: ProviderDep) -> dict[str, Any]:
    """List connected mail accounts."""
    accounts = await provider.list_accounts()
    return {
        "success": True,
        "message": f"Found {len(accounts)} email account{'s' if len(accounts) != 1 else ''}",
        "data": [account.model_dump(mode="json", by_alias=True) for account in accounts],
        "total": len(accounts),
        "timestamp": utc_timestamp(),
    }


@router.get("/emails/{account_id}")
async def list_emails(
    account_id: str,
    provider: ProviderDep,
    settings: SettingsDep,
    limit: Annotated[int, Query(ge=1, le=250)] = 10,
    offset: Annotated[int, Query(ge=0)] = 0,
    folder: str | None = None,
    query: str | None = None,
    from_address: Annotated[str | None, Query(alias="from")] = None,
    subject: str | None = None,
    since: str | None = None,
    until: str | None = None,
    unread_only: bool = False,
    has_attachments: bool | None = None,
    enrich: bool = False,
) -> dict[str, Any]:
    """List normalized emails for an account, with a summary and pagination."""
    email_query = EmailQuery(
        limit=limit,
        offset=offset,
        folder_id=folder,
        query=query,
        from_address=from_address,
        subject=subject,
        since=since,
        until=until,
        has_attachments=has_attachments,
        is_read=False if unread_only else None,
    )
    page = await provider.list_emails(account_id, email_query)
    emails = [_normalize(raw, settings) for raw in page.items]
    logger.info("Emails listed", account_id=account_id, count=len(emails), has_more=page.has_more)

    data = [
        serialize_email(
            email,
            enrich_email(email, organization_token=settings.organization_token) if enrich else None,
        )
        for email in emails
    ]

    next_link = None
    if page.has_more:
        next_link = f"/api/emails/{account_id}?limit={limit}&offset={offset + limit}"

    return {
        "success": True,
        "message": f"Retrieved {len(emails)} email{'s' if len(emails) != 1 else ''}",
        "data": data,
        "summary": summarize_emails(emails).model_dump(by_alias=True),
        "pagination": {
            "current": {
                "limit": page.limit,
                "offset": page.offset,
                "total": page.total,
                "hasMore": page.has_more,
            },
            "next": next_link,
        },
        "appliedFilters": email_query.model_dump(by_alias=True, exclude_none=True),
        "timestamp": utc_timestamp(),
    }


@router.get("/emails/{account_id}/{email_id}")
async def get_email(
    account_id: str,
    email_id: str,
    provider: ProviderDep,
    settings: SettingsDep,
) -> dict[str, Any]:
    """Fetch one email, fully normalized and enriched."""
    raw = await provider.get_email(email_id, account_id)
    email = _normalize(raw, settings)
    enrichment = enrich_email(email, organization_token=settings.organization_token)

    data = serialize_email(email, enrichment)
    data["actions"] = {
        "markAsRead": f"PATCH /api/emails/{account_id}/{email_id}/read",
        "reply": f"POST /api/emails/{account_id}/reply/{email_id}",
    }
    return {
        "success": True,
        "message": "Email retrieved",
        "data": data,
        "timestamp": utc_timestamp(),
    }


@router.patch("/emails/{account_id}/{email_id}/read")
async def mark_as_read(
    account_id: str,
    email_id: str,
    provider: ProviderDep,
    is_read: Annotated[bool, Query(alias="isRead")] = True,
) -> dict[str, Any]:
    """Mark an email as read (or unread with ``?isRead=false``)."""
    reported = await provider.mark_as_read(email_id, account_id, is_read)
    return {
        "success": True,
        "data": {"emailId": email_id, "isRead": reported},
        "timestamp": utc_timestamp(),
    }


@router.post("/emails/{account_id}/send")
async def send_email(
    account_id: str,
    payload: SendEmailRequest,
    provider: ProviderDep,
) -> dict[str, Any]:
    """Send one email."""
    outbound = OutboundEmail(
        to=payload.to,
        subject=payload.subject,
        body=payload.body,
        cc=payload.cc,
        bcc=payload.bcc,
        reply_to=payload.reply_to,
        is_html=payload.is_html,
    )
    try:
        result = await provider.send_email(account_id, outbound)
    except ProviderError:
        EMAILS_SENT.labels(outcome="failed").inc()
        raise
    EMAILS_SENT.labels(outcome="sent").inc()

    return {
        "success": True,
        "message": "Email sent",
        "data": {
            **result.model_dump(by_alias=True),
            "to": [recipient.email for recipient in outbound.to],
            "subject": outbound.subject,
        },
        "timestamp": utc_timestamp(),
    }


@router.post("/emails/{account_id}/send/bulk")
async def send_bulk_email(
    account_id: str,
    payload: BulkSendRequest,
    provider: ProviderDep,
    settings: SettingsDep,
) -> dict[str, Any]:
    """Send the same email to many recipients with a delay between sends."""
    delay_ms = min(payload.delay_between_emails, settings.max_bulk_delay_ms)
    report = await send_bulk(
        provider,
        account_id,
        payload.recipients,
        payload.subject,
        payload.body,
        is_html=payload.is_html,
        delay_ms=delay_ms,
    )
    return {
        "success": report.failed == 0,
        "message": f"Bulk send completed: {report.sent} sent, {report.failed} failed",
        "data": report.model_dump(by_alias=True),
        "timestamp": utc_timestamp(),
    }


@router.post("/emails/{account_id}/reply/{email_id}")
async def reply_to_email(
    account_id: str,
    email_id: str,
    payload: ReplyRequest,
    provider: ProviderDep,
    settings: SettingsDep,
) -> dict[str, Any]:
    """Reply to an email's sender, optionally quoting the original."""
    original = _normalize(await provider.get_email(email_id, account_id), settings)
    if not original.sender.resolved:
        raise HTTPException(status_code=422, detail="Original email has no resolvable sender")

    outbound = build_reply(
        original,
        payload.body,
        include_original=payload.include_original,
        is_html=payload.is_html,
    )
    try:
        result = await provider.send_email(account_id, outbound)
    except ProviderError:
        EMAILS_SENT.labels(outcome="failed").inc()
        raise
    EMAILS_SENT.labels(outcome="sent").inc()
    logger.info("Reply sent", account_id=account_id, email_id=email_id)

    return {
        "success": True,
        "message": "Reply sent",
        "data": {
            "messageId": result.message_id,
            "sentAt": result.sent_at,
            "replyTo": original.from_email,
            "subject": outbound.subject,
            "inReplyTo": original.message_id,
            "originalEmailId": email_id,
            "includeOriginal": payload.include_original,
        },
        "timestamp": utc_timestamp(),
    }
