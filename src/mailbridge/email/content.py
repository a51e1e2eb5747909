"""Body source selection and bounded preview generation."""

from __future__ import annotations

from typing import Any

from mailbridge.email.markup import collapse_whitespace, html_to_text

DEFAULT_PREVIEW_LENGTH = 200
# Plain bodies at or below this length are treated as placeholders and the
# HTML body is preferred instead.
MIN_PLAIN_TEXT_LENGTH = 10
ELLIPSIS = "..."

NO_CONTENT = "No content available"
EMPTY_MESSAGE = "Empty message"
# Smallest max_length for which every sentinel stays within max_length + 3.
MIN_BOUNDED_PREVIEW_LENGTH = len(NO_CONTENT) - len(ELLIPSIS)


def select_preview(
    html_body: Any,
    plain_body: Any,
    max_length: int = DEFAULT_PREVIEW_LENGTH,
) -> str:
    """Build a short, single-line preview of an email body.

    The plain-text body is used when it is a string longer than
    ``MIN_PLAIN_TEXT_LENGTH`` characters; otherwise the HTML body is decoded.
    Longer content is cut at exactly *max_length* characters (no word
    boundary handling) and ``"..."`` is appended.

    Args:
        html_body: The raw HTML body.
        plain_body: The plain-text body, if the provider sent one.
        max_length: Maximum number of content characters before the ellipsis.

    Returns:
        The preview text, ``"No content available"`` when neither source
        produced any text, or ``"Empty message"`` when the selected source
        held only whitespace.  These sentinels are returned as-is and are
        not cut to *max_length*; they fit the bound for any *max_length* of
        ``MIN_BOUNDED_PREVIEW_LENGTH`` or more.
    """
    if isinstance(plain_body, str) and len(plain_body) > MIN_PLAIN_TEXT_LENGTH:
        content = plain_body
    elif isinstance(html_body, str) and html_body:
        content = html_to_text(html_body)
    else:
        content = ""

    if not content:
        return NO_CONTENT

    content = collapse_whitespace(content)
    if len(content) > max_length:
        return content[:max_length] + ELLIPSIS

    return content or EMPTY_MESSAGE
