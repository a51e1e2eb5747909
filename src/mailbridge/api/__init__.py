"""HTTP API: email routes, request schemas, and bulk sending."""

from mailbridge.api.routes import router

__all__ = ["router"]
