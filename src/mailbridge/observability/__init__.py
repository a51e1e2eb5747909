"""Observability: request tracing, Prometheus metrics, and Sentry reporting."""
