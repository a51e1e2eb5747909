"""Request bodies and response helpers for the email HTTP API.

Recipient fields accept the same loose shapes the provider emits (a string,
``Name <address>``, or an object with ``email``/``identifier`` and
``name``/``display_name``) and are resolved through ``extract_identity``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mailbridge.email.identity import extract_identity
from mailbridge.email.models import Identity, NormalizedEmail
from mailbridge.enrichment.models import EmailEnrichment


def utc_timestamp() -> str:
    """Current UTC time in ISO 8601, used on every response envelope."""
    return datetime.now(tz=UTC).isoformat()


def coerce_recipients(value: Any) -> tuple[Identity, ...]:
    """Resolve a loose recipient value into identities.

    Args:
        value: ``None``, a single recipient, or a list of recipients.

    Returns:
        The resolved identities, in input order.

    Raises:
        ValueError: If any recipient has no resolvable email address.
    """
    if value is None:
        return ()
    items = value if isinstance(value, (list, tuple)) else [value]

    recipients: list[Identity] = []
    for item in items:
        if isinstance(item, Identity):
            identity = item
        else:
            identity = extract_identity(item)
        if not identity.resolved:
            raise ValueError(f"No email address found in recipient {item!r}")
        recipients.append(identity)
    return tuple(recipients)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendEmailRequest(_RequestModel):
    """Body of ``POST /api/emails/{account_id}/send``."""

    to: tuple[Identity, ...] = Field(min_length=1)
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    cc: tuple[Identity, ...] = ()
    bcc: tuple[Identity, ...] = ()
    reply_to: tuple[Identity, ...] = ()
    is_html: bool = True

    @field_validator("to", "cc", "bcc", "reply_to", mode="before")
    @classmethod
    def _resolve_recipients(cls, value: Any) -> tuple[Identity, ...]:
        return coerce_recipients(value)


class BulkSendRequest(_RequestModel):
    """Body of ``POST /api/emails/{account_id}/send/bulk``."""

    recipients: tuple[Identity, ...] = Field(min_length=1)
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    is_html: bool = True
    delay_between_emails: int = Field(default=1000, ge=0)

    @field_validator("recipients", mode="before")
    @classmethod
    def _resolve_recipients(cls, value: Any) -> tuple[Identity, ...]:
        return coerce_recipients(value)


class ReplyRequest(_RequestModel):
    """Body of ``POST /api/emails/{account_id}/reply/{email_id}``."""

    body: str = Field(min_length=1)
    include_original: bool = True
    is_html: bool = True


class EmailListSummary(BaseModel):
    """Aggregate figures for one page of normalized emails."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total: int
    unread: int
    total_word_count: int
    average_read_time: int


def summarize_emails(emails: Sequence[NormalizedEmail]) -> EmailListSummary:
    """Summarize a page of emails.

    ``average_read_time`` is the mean estimated read time rounded up, or 0
    for an empty page.
    """
    count = len(emails)
    average = math.ceil(sum(e.estimated_read_time for e in emails) / count) if count else 0
    return EmailListSummary(
        total=count,
        unread=sum(1 for e in emails if not e.is_read),
        total_word_count=sum(e.word_count for e in emails),
        average_read_time=average,
    )


def serialize_email(
    email: NormalizedEmail,
    enrichment: EmailEnrichment | None = None,
) -> dict[str, Any]:
    """Render a normalized email (and optional enrichment) as a JSON dict.

    The enrichment is merged in as ``category`` and ``keyFacts`` keys; the
    normalized record itself is not modified.
    """
    payload = email.to_api_dict()
    if enrichment is not None:
        payload.update(enrichment.model_dump(mode="json", by_alias=True))
    return payload
