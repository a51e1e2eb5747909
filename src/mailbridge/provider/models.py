"""Pydantic v2 models for the Unipile provider client.

Covers connected accounts, email listing queries and pages, connection checks,
and send results.  Raw email records stay plain dicts until they reach
``normalize_email``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EmailAccount(BaseModel):
    """A mail account connected to the provider."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    provider: str
    email: str | None = None
    name: str = "Unknown"
    status: str = "unknown"
    created_at: str


class ConnectionStatus(BaseModel):
    """Result of a provider connectivity check."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_accounts: int
    accounts: list[Any] = Field(default_factory=list)


class EmailQuery(BaseModel):
    """Filters and pagination for listing emails.

    ``to_params`` renders the query in the provider's parameter names; unset
    filters are omitted.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    limit: int = Field(default=50, ge=1, le=250)
    offset: int = Field(default=0, ge=0)
    folder_id: str | None = None
    query: str | None = None
    from_address: str | None = Field(default=None, alias="from")
    subject: str | None = None
    since: str | None = None
    until: str | None = None
    has_attachments: bool | None = None
    is_read: bool | None = None

    def to_params(self, account_id: str) -> dict[str, Any]:
        """Build the query-string parameters for ``GET /emails``."""
        params: dict[str, Any] = {
            "account_id": account_id,
            "limit": self.limit,
            "offset": self.offset,
        }
        optional = {
            "folder_id": self.folder_id,
            "q": self.query,
            "from": self.from_address,
            "subject": self.subject,
            "since": self.since,
            "until": self.until,
        }
        params.update({key: value for key, value in optional.items() if value})
        if self.has_attachments is not None:
            params["has_attachments"] = str(self.has_attachments).lower()
        if self.is_read is not None:
            params["is_read"] = str(self.is_read).lower()
        return params


class EmailPage(BaseModel):
    """One page of raw email records returned by the provider."""

    model_config = ConfigDict(frozen=True)

    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False
    limit: int
    offset: int


class SendResult(BaseModel):
    """Provider acknowledgement of a sent email."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    message_id: str
    sent_at: str
