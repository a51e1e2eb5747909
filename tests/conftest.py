"""Shared pytest fixtures for the mailbridge test suite."""

from typing import Any

import pytest

from mailbridge.email.models import Identity, NormalizedEmail
from mailbridge.email.normalizer import normalize_email


@pytest.fixture
def raw_email() -> dict[str, Any]:
    """A representative raw Unipile email record with an HTML body."""
    return {
        "id": "em_123",
        "message_id": "<abc@mail.example.com>",
        "thread_id": "th_9",
        "provider_id": "prov_1",
        "subject": "Your code is 482913",
        "date": "2024-05-01T10:00:00Z",
        "read_date": None,
        "has_attachments": False,
        "from_attendee": {"identifier": "noreply@bank.com", "display_name": "Bank"},
        "to_attendees": [{"identifier": "me@example.com", "display_name": "Me"}],
        "body": "<p>Use code <b>482913</b> to verify.</p><p>https://bank.com/v</p>",
        "folders": ["INBOX"],
    }


@pytest.fixture
def raw_jane_email() -> dict[str, Any]:
    """A raw record with a bracketed sender string and a plain-text body."""
    return {
        "id": "em_456",
        "subject": "Project kickoff",
        "date": "2024-05-02T09:30:00Z",
        "read_date": "2024-05-02T10:00:00Z",
        "from_attendee": '"Jane Doe" <jane@corp.com>',
        "to_attendees": ["team@corp.com"],
        "body": "<p>Hi team</p>",
        "body_plain": "Hi team, the project starts Monday.",
    }


@pytest.fixture
def normalized_email(raw_email: dict[str, Any]) -> NormalizedEmail:
    """``raw_email`` passed through ``normalize_email``."""
    return normalize_email(raw_email)


@pytest.fixture
def jane() -> Identity:
    """A resolved identity with a display name."""
    return Identity(email="jane@corp.com", name="Jane Doe")
