"""Email domain: markup decoding, identity resolution, normalization, and replies."""

from mailbridge.email.content import select_preview
from mailbridge.email.identity import extract_identity, extract_identity_list
from mailbridge.email.markup import collapse_whitespace, html_to_text
from mailbridge.email.models import (
    UNKNOWN_EMAIL,
    EmailDebugInfo,
    Identity,
    NormalizedEmail,
    OutboundEmail,
)
from mailbridge.email.normalizer import normalize_email
from mailbridge.email.reply import build_reply

__all__ = [
    "UNKNOWN_EMAIL",
    "EmailDebugInfo",
    "Identity",
    "NormalizedEmail",
    "OutboundEmail",
    "build_reply",
    "collapse_whitespace",
    "extract_identity",
    "extract_identity_list",
    "html_to_text",
    "normalize_email",
    "select_preview",
]
