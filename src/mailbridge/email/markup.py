"""HTML to plain text decoding for provider email bodies.

Provides helpers for:
- Stripping markup (including ``<script>`` and ``<style>`` content) from an
  HTML fragment
- Decoding the small set of HTML entities providers emit in email bodies
- Collapsing whitespace runs into single spaces
"""

from __future__ import annotations

import re
from typing import Any

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

# Applied in order.  ``&amp;`` must stay last so ``&amp;lt;`` decodes to the
# literal text ``&lt;`` rather than ``<``.
HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
    ("&#x60;", "`"),
    ("&#x3D;", "="),
    ("&amp;", "&"),
)


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run (newlines included) with one space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def decode_entities(text: str) -> str:
    """Decode the entities listed in ``HTML_ENTITIES``, leaving others untouched."""
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)
    return text


def html_to_text(html: Any) -> str:
    """Convert an HTML fragment to a single line of plain text.

    Script and style blocks are removed together with their content before
    any other tag is stripped, so their text never leaks into the output.
    Every remaining tag is replaced with a space to keep words on either side
    of a tag boundary apart.

    Args:
        html: The markup to decode.  Any non-string value is accepted and
            yields an empty string.

    Returns:
        The decoded, whitespace-collapsed text.  Returns ``""`` for empty or
        non-string input.
    """
    if not html or not isinstance(html, str):
        return ""

    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = decode_entities(text)
    return collapse_whitespace(text)
