"""Normalization of raw provider email records into ``NormalizedEmail``.

Unipile (and the mail providers behind it) return loosely typed JSON whose
field names and shapes vary between listing and detail responses.  This
module turns one such record into the canonical, fully decoded record used by
every downstream consumer.  All functions are pure: nothing here performs
I/O, logs, or mutates its input.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping
from typing import Any

from mailbridge.email.content import DEFAULT_PREVIEW_LENGTH, select_preview
from mailbridge.email.identity import extract_identity, extract_identity_list
from mailbridge.email.markup import html_to_text
from mailbridge.email.models import NO_SUBJECT, EmailDebugInfo, NormalizedEmail

WORDS_PER_MINUTE = 200


def count_words(text: str) -> int:
    """Count whitespace-delimited, non-empty tokens in *text*."""
    return len(text.split())


def estimate_read_time(word_count: int) -> int:
    """Estimated reading time in whole minutes, never less than one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item if isinstance(item, str) else str(item) for item in value)


def _any_tuple(value: Any) -> tuple[Any, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(copy.deepcopy(item) for item in value)


def build_debug_info(raw: Mapping[str, Any], sender_resolved: bool) -> EmailDebugInfo:
    """Collect the diagnostic side channel for a raw record.

    Args:
        raw: The raw provider record.
        sender_resolved: Whether sender extraction found a real address.

    Returns:
        An ``EmailDebugInfo`` with the original ``from_attendee`` value and
        the record's field names in received order.
    """
    return EmailDebugInfo(
        original_from_attendee=copy.deepcopy(raw.get("from_attendee")),
        available_fields=tuple(str(key) for key in raw),
        sender_extraction_success=sender_resolved,
    )


def normalize_email(
    raw: Mapping[str, Any],
    *,
    max_preview_length: int = DEFAULT_PREVIEW_LENGTH,
    include_debug: bool = False,
) -> NormalizedEmail:
    """Normalize one raw provider email record.

    Sender and recipients are resolved from the ``*_attendee(s)`` fields.
    The plain-text body is the provider's ``body_plain`` when non-empty,
    otherwise it is decoded from the HTML ``body``.  Word count, reading
    time, content length and preview are all derived from that plain text.
    ``read_date`` acts as the read marker: any non-null value means read.

    Every field has a default, so a record missing any (or all) fields still
    normalizes.

    Args:
        raw: The raw record as deserialized from the provider's JSON.
        max_preview_length: Preview length before the ellipsis is appended.
        include_debug: Attach ``EmailDebugInfo`` as the ``_debug`` field.

    Returns:
        A new, frozen ``NormalizedEmail`` sharing no mutable values with
        *raw*.
    """
    sender = extract_identity(raw.get("from_attendee"))

    raw_body = raw.get("body")
    html_body = raw_body if isinstance(raw_body, str) else ""
    raw_plain = raw.get("body_plain")
    if isinstance(raw_plain, str) and raw_plain:
        plain_text_body = raw_plain
    else:
        plain_text_body = html_to_text(html_body)

    word_count = count_words(plain_text_body)

    subject = raw.get("subject")
    if not isinstance(subject, str) or not subject:
        subject = NO_SUBJECT

    debug = build_debug_info(raw, sender.resolved) if include_debug else None

    return NormalizedEmail(
        id=_optional_str(raw.get("id")),
        message_id=_optional_str(raw.get("message_id")),
        thread_id=_optional_str(raw.get("thread_id")),
        provider_id=_optional_str(raw.get("provider_id")),
        subject=subject,
        date=_optional_str(raw.get("date")),
        is_read=raw.get("read_date") is not None,
        has_attachments=bool(raw.get("has_attachments")),
        from_email=sender.email,
        from_name=sender.name,
        sender=sender,
        to=extract_identity_list(raw.get("to_attendees")),
        cc=extract_identity_list(raw.get("cc_attendees")),
        bcc=extract_identity_list(raw.get("bcc_attendees")),
        reply_to=extract_identity_list(raw.get("reply_to_attendees")),
        html_body=html_body,
        plain_text_body=plain_text_body,
        preview=select_preview(html_body, plain_text_body, max_preview_length),
        content_length=len(plain_text_body),
        word_count=word_count,
        estimated_read_time=estimate_read_time(word_count),
        folders=_str_tuple(raw.get("folders")),
        folder_ids=_str_tuple(raw.get("folderIds") or raw.get("folder_ids")),
        attachments=_any_tuple(raw.get("attachments")),
        email_type=_optional_str(raw.get("type")),
        origin=_optional_str(raw.get("origin")),
        role=_optional_str(raw.get("role")),
        debug=debug,
    )
