"""Unipile provider client and its data models."""

from mailbridge.provider.client import UnipileClient, format_recipients, parse_email_page
from mailbridge.provider.models import (
    ConnectionStatus,
    EmailAccount,
    EmailPage,
    EmailQuery,
    SendResult,
)

__all__ = [
    "ConnectionStatus",
    "EmailAccount",
    "EmailPage",
    "EmailQuery",
    "SendResult",
    "UnipileClient",
    "format_recipients",
    "parse_email_page",
]
