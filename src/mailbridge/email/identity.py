"""Sender and recipient identity resolution.

Providers describe a participant ("attendee") in several shapes: an object
with provider-specific key names, an RFC 5322 style ``Name <address>``
string, a bare address, or free text.  ``extract_identity`` resolves all of
them into an ``Identity`` through a fixed-priority dispatch; each shape has
its own helper so the rules can be tested independently.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from mailbridge.email.models import UNKNOWN_EMAIL, Identity

# Ordered fallback keys; the first non-empty string value wins.
EMAIL_KEYS: tuple[str, ...] = ("email", "identifier", "address", "mail")
NAME_KEYS: tuple[str, ...] = (
    "name",
    "display_name",
    "displayName",
    "personal",
    "full_name",
    "fullName",
)

_BRACKETED_RE = re.compile(r"(.*?)\s*<(.+?)>", re.DOTALL)
_BARE_ADDRESS_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _first_value(field: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = field.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _from_mapping(field: Mapping[str, Any]) -> Identity:
    return Identity(
        email=_first_value(field, EMAIL_KEYS) or UNKNOWN_EMAIL,
        name=_first_value(field, NAME_KEYS) or "",
    )


def _from_bracketed(text: str) -> Identity | None:
    match = _BRACKETED_RE.match(text)
    if match is None:
        return None
    address = match.group(2).strip()
    name = match.group(1).replace('"', "").strip()
    return Identity(email=address or UNKNOWN_EMAIL, name=name)


def _from_bare_address(text: str) -> Identity | None:
    if _BARE_ADDRESS_RE.match(text):
        return Identity(email=text)
    return None


def extract_identity(field: Any) -> Identity:
    """Resolve a participant field of any shape into an ``Identity``.

    Shapes are tried in this order:

    1. Mapping -- address from ``EMAIL_KEYS``, name from ``NAME_KEYS``,
       each falling back independently.
    2. ``Display Name <address@domain>`` string.
    3. Bare ``local@domain.tld`` string.
    4. Any other non-blank string -- kept as a display name with no address.
    5. Anything else -- the empty ``Unknown`` identity.

    Args:
        field: The raw attendee value from a provider record.

    Returns:
        The resolved identity.  ``identity.email`` is ``"Unknown"`` when no
        address could be found.
    """
    if isinstance(field, Mapping):
        return _from_mapping(field)

    if isinstance(field, str):
        text = field.strip()
        if not text:
            return Identity()
        return _from_bracketed(text) or _from_bare_address(text) or Identity(name=text)

    return Identity()


def extract_identity_list(field: Any) -> tuple[Identity, ...]:
    """Resolve a list of attendee fields, preserving order and duplicates.

    Args:
        field: The raw attendee array.  Anything other than a list or tuple
            yields an empty result.

    Returns:
        One ``Identity`` per element, in input order.
    """
    if not isinstance(field, (list, tuple)):
        return ()
    return tuple(extract_identity(item) for item in field)
