"""Attach category and key facts to a normalized email."""

from __future__ import annotations

from mailbridge.email.models import NormalizedEmail
from mailbridge.enrichment.categorizer import DEFAULT_ORGANIZATION_TOKEN, categorize_email
from mailbridge.enrichment.key_facts import extract_key_facts
from mailbridge.enrichment.models import EmailEnrichment


def enrich_email(
    email: NormalizedEmail,
    *,
    organization_token: str = DEFAULT_ORGANIZATION_TOKEN,
) -> EmailEnrichment:
    """Compute the enrichment for *email* without modifying it.

    Args:
        email: The normalized record.
        organization_token: Forwarded to ``categorize_email``.

    Returns:
        A separate ``EmailEnrichment`` value.
    """
    return EmailEnrichment(
        category=categorize_email(
            email.subject,
            email.from_email,
            email.plain_text_body,
            organization_token=organization_token,
        ),
        key_facts=extract_key_facts(email.subject, email.plain_text_body),
    )
