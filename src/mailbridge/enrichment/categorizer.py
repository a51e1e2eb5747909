"""Keyword-based email categorization.

Rules are evaluated in a fixed priority order and the first match wins, so a
subject mentioning both "verify" and "deal" is always ``security``.
"""

from __future__ import annotations

import re

from mailbridge.enrichment.models import EmailCategory

SECURITY_SUBJECT_KEYWORDS: tuple[str, ...] = ("security", "verification", "verify", "code")
SOCIAL_SENDER_KEYWORDS: tuple[str, ...] = ("instagram", "facebook", "linkedin", "twitter")
WORK_SUBJECT_KEYWORDS: tuple[str, ...] = ("employee", "work", "project")
MARKETING_SUBJECT_KEYWORDS: tuple[str, ...] = ("update", "launch", "new", "deal")

DEFAULT_ORGANIZATION_TOKEN = "kalvium"

_SIX_DIGITS_RE = re.compile(r"\d{6}", re.ASCII)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize_email(
    subject: str | None,
    sender: str | None,
    body: str | None = None,
    *,
    organization_token: str = DEFAULT_ORGANIZATION_TOKEN,
) -> EmailCategory:
    """Assign one ``EmailCategory`` to an email.

    Matching is case-insensitive substring search:

    1. ``security`` -- subject mentions security/verification/verify/code,
       or contains six consecutive digits.
    2. ``social`` -- sender address names a social network.
    3. ``work`` -- sender contains *organization_token*, or subject mentions
       employee/work/project.
    4. ``marketing`` -- subject mentions update/launch/new/deal.
    5. ``general`` otherwise.

    Args:
        subject: The email subject.  ``None`` is treated as empty.
        sender: The sender address.  ``None`` is treated as empty.
        body: Accepted for call-site symmetry with ``extract_key_facts``;
            no rule reads it.
        organization_token: Sender substring identifying colleagues.  An
            empty token disables the sender half of the ``work`` rule.

    Returns:
        The first matching category.
    """
    subject_text = subject or ""
    subject_lower = subject_text.lower()
    sender_lower = (sender or "").lower()

    if _contains_any(subject_lower, SECURITY_SUBJECT_KEYWORDS) or _SIX_DIGITS_RE.search(
        subject_text
    ):
        return EmailCategory.SECURITY

    if _contains_any(sender_lower, SOCIAL_SENDER_KEYWORDS):
        return EmailCategory.SOCIAL

    token = organization_token.lower()
    if (token and token in sender_lower) or _contains_any(subject_lower, WORK_SUBJECT_KEYWORDS):
        return EmailCategory.WORK

    if _contains_any(subject_lower, MARKETING_SUBJECT_KEYWORDS):
        return EmailCategory.MARKETING

    return EmailCategory.GENERAL
