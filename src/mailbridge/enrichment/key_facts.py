"""Extraction of verification codes, links, and action words from email text."""

from __future__ import annotations

import re
from collections.abc import Iterable

from mailbridge.enrichment.models import KeyFacts

ACTION_WORDS: tuple[str, ...] = ("verify", "confirm", "activate", "login", "reset", "update")
MAX_LINKS = 3

_CODE_RE = re.compile(r"\b\d{4,8}\b", re.ASCII)
_LINK_RE = re.compile(r"https?://[^\s<>\"]+")


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def extract_key_facts(subject: str | None, body: str | None) -> KeyFacts:
    """Pull quick-glance facts out of an email.

    Args:
        subject: The email subject.  ``None`` is treated as empty.
        body: The plain-text body.  ``None`` is treated as empty.

    Returns:
        ``KeyFacts`` with standalone 4-8 digit codes from subject and body,
        up to ``MAX_LINKS`` distinct http(s) links from the body only, and
        the ``ACTION_WORDS`` found anywhere in the text, in vocabulary order.
    """
    subject_text = subject or ""
    body_text = body or ""
    full_text = f"{subject_text} {body_text}"
    full_lower = full_text.lower()

    return KeyFacts(
        codes=_unique(_CODE_RE.findall(full_text)),
        links=_unique(_LINK_RE.findall(body_text))[:MAX_LINKS],
        actions=tuple(word for word in ACTION_WORDS if word in full_lower),
    )
