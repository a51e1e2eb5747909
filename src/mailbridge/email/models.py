"""Pydantic v2 models for the email domain.

Provides frozen (immutable) models for resolved participant identities, the
canonical normalized email record, its optional diagnostic side channel, and
outbound messages handed to the provider client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN_EMAIL = "Unknown"
NO_SUBJECT = "No Subject"


class Identity(BaseModel):
    """A resolved email participant (sender or recipient).

    Two identities are equal when their addresses are equal; the display name
    is descriptive only.  An identity whose address could not be resolved
    carries the ``"Unknown"`` sentinel in ``email``.
    """

    model_config = ConfigDict(frozen=True)

    email: str = UNKNOWN_EMAIL
    name: str = ""

    @property
    def resolved(self) -> bool:
        """Whether a real address was found for this participant."""
        return self.email != UNKNOWN_EMAIL

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return self.email == other.email

    def __hash__(self) -> int:
        return hash(self.email)


class EmailDebugInfo(BaseModel):
    """Diagnostic data attached to a normalized email outside production."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    original_from_attendee: Any = None
    available_fields: tuple[str, ...] = ()
    sender_extraction_success: bool = False


class NormalizedEmail(BaseModel):
    """The canonical email record produced by ``normalize_email``.

    Field names serialize in camelCase (``by_alias=True``) to match the JSON
    API.  ``from_email`` serializes as ``from`` and ``debug`` as ``_debug``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    message_id: str | None = None
    thread_id: str | None = None
    provider_id: str | None = None

    subject: str = NO_SUBJECT
    date: str | None = None
    is_read: bool = False
    has_attachments: bool = False

    from_email: str = Field(default=UNKNOWN_EMAIL, alias="from")
    from_name: str = ""
    sender: Identity = Field(default_factory=Identity)
    to: tuple[Identity, ...] = ()
    cc: tuple[Identity, ...] = ()
    bcc: tuple[Identity, ...] = ()
    reply_to: tuple[Identity, ...] = ()

    html_body: str = ""
    plain_text_body: str = ""
    preview: str = ""
    content_length: int = 0
    word_count: int = 0
    estimated_read_time: int = 1

    folders: tuple[str, ...] = ()
    folder_ids: tuple[str, ...] = ()
    attachments: tuple[Any, ...] = ()

    email_type: str | None = None
    origin: str | None = None
    role: str | None = None

    debug: EmailDebugInfo | None = Field(default=None, alias="_debug")

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize for the JSON API, omitting ``_debug`` when not attached."""
        exclude = {"debug"} if self.debug is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


class OutboundEmail(BaseModel):
    """An email to be sent through the provider client."""

    model_config = ConfigDict(frozen=True)

    to: tuple[Identity, ...]
    subject: str
    body: str
    cc: tuple[Identity, ...] = ()
    bcc: tuple[Identity, ...] = ()
    reply_to: tuple[Identity, ...] = ()
    is_html: bool = True
