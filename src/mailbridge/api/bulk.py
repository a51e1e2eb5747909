"""Sequential bulk sending with a fixed delay between messages.

Each recipient receives an individual copy of the message.  A failure for one
recipient is recorded and the batch continues; the delay is applied between
sends, never after the last one.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mailbridge.email.models import Identity, OutboundEmail
from mailbridge.errors import ProviderError
from mailbridge.observability.metrics import EMAILS_SENT
from mailbridge.provider.client import UnipileClient

logger = structlog.get_logger()


class BulkSendOutcome(BaseModel):
    """Result of sending to one recipient in a bulk batch."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    recipient: str
    success: bool
    message_id: str | None = None
    error: str | None = None


class BulkSendReport(BaseModel):
    """Aggregate result of a bulk send."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total: int
    sent: int
    failed: int
    delay_used_ms: int
    results: list[BulkSendOutcome] = Field(default_factory=list)


async def send_bulk(
    provider: UnipileClient,
    account_id: str,
    recipients: Sequence[Identity],
    subject: str,
    body: str,
    *,
    is_html: bool = True,
    delay_ms: int = 1000,
) -> BulkSendReport:
    """Send the same message to each recipient, one at a time.

    Args:
        provider: The provider client used for each send.
        account_id: The account to send from.
        recipients: Resolved recipient identities.
        subject: Message subject.
        body: Message body.
        is_html: Whether *body* is HTML.
        delay_ms: Pause between consecutive sends, in milliseconds.

    Returns:
        A ``BulkSendReport`` with one outcome per recipient, in order.
    """
    logger.info("Starting bulk send", account_id=account_id, recipients=len(recipients))

    results: list[BulkSendOutcome] = []
    for index, recipient in enumerate(recipients):
        outbound = OutboundEmail(to=(recipient,), subject=subject, body=body, is_html=is_html)
        try:
            sent = await provider.send_email(account_id, outbound)
        except ProviderError as exc:
            logger.warning("Bulk send failed for recipient", recipient=recipient.email, error=str(exc))
            EMAILS_SENT.labels(outcome="failed").inc()
            results.append(BulkSendOutcome(recipient=recipient.email, success=False, error=str(exc)))
        else:
            EMAILS_SENT.labels(outcome="sent").inc()
            results.append(
                BulkSendOutcome(recipient=recipient.email, success=True, message_id=sent.message_id)
            )

        if index < len(recipients) - 1 and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    sent_count = sum(1 for outcome in results if outcome.success)
    report = BulkSendReport(
        total=len(results),
        sent=sent_count,
        failed=len(results) - sent_count,
        delay_used_ms=delay_ms,
        results=results,
    )
    logger.info("Bulk send finished", account_id=account_id, sent=report.sent, failed=report.failed)
    return report
