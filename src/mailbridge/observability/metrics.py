"""Prometheus metrics instrumentation for the mailbridge service.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI app,
  exposing ``/metrics`` with HTTP request duration/count plus the counters below.
- ``EMAILS_NORMALIZED``: Counter of provider records passed through ``normalize_email``.
- ``UNRESOLVED_SENDERS``: Counter of normalized records whose sender address
  resolved to the ``"Unknown"`` sentinel.
- ``EMAILS_SENT``: Counter of send attempts, labelled by ``outcome``.

Counters are updated by the HTTP layer; the normalization core stays pure.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from mailbridge.email.models import NormalizedEmail

EMAILS_NORMALIZED: Counter = Counter(
    "mailbridge_emails_normalized_total",
    "Total number of provider email records normalized",
)

UNRESOLVED_SENDERS: Counter = Counter(
    "mailbridge_unresolved_senders_total",
    "Normalized emails whose sender address could not be resolved",
)

EMAILS_SENT: Counter = Counter(
    "mailbridge_emails_sent_total",
    "Emails submitted to the provider, by outcome",
    ["outcome"],
)


def record_normalized(email: NormalizedEmail) -> None:
    """Count one normalized record, and its sender if unresolved."""
    EMAILS_NORMALIZED.inc()
    if not email.sender.resolved:
        UNRESOLVED_SENDERS.inc()


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Excludes health/ready/metrics endpoints from instrumentation to avoid
    noise in dashboards.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
