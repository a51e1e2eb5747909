"""Exception classes for the mailbridge service.

The normalization core never raises; these errors belong to the provider
client and the HTTP layer around it.
"""

from __future__ import annotations

from typing import Any

import httpx


class MailBridgeError(Exception):
    """Base class for all mailbridge errors."""


class ProviderError(MailBridgeError):
    """Raised when a call to the remote email provider fails.

    Attributes:
        operation: Short name of the provider operation (e.g. ``"list_emails"``).
        status_code: HTTP status returned by the provider, or ``None`` for
            transport-level failures.
        detail: The provider's own error message, when it sent one.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{operation} failed: {message}")

    @classmethod
    def from_response(cls, operation: str, response: httpx.Response) -> ProviderError:
        """Build an error from a non-2xx provider response.

        Unipile reports errors as JSON with either a ``detail`` or a ``message``
        key; whichever is present wins, falling back to the reason phrase.

        Args:
            operation: Short name of the provider operation.
            response: The failed HTTP response.

        Returns:
            A ``ProviderError`` carrying the status code and provider detail.
        """
        detail: str | None = None
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            raw_detail = payload.get("detail") or payload.get("message")
            if raw_detail:
                detail = str(raw_detail)

        message = detail or response.reason_phrase or f"HTTP {response.status_code}"
        return cls(operation, message, status_code=response.status_code, detail=detail)
