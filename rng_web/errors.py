"""Error types for the RNG web service.

Each error carries a short message and an optional ``details`` dict that
ends up in logs and, for caller-facing errors, in the JSON error body.
"""

from typing import Any, Dict, Optional


class RngWebError(Exception):
    """Base exception for all rng-web errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidRequest(RngWebError):
    """Range parameters are malformed or inconsistent."""

    kind = "invalid_request"
    status_code = 400


class UpstreamError(RngWebError):
    """A provider call failed or returned something unusable."""

    kind = "upstream_error"
    status_code = 502


class UpstreamFailure(RngWebError):
    """Raised by the orchestrator when the provider could not serve a request."""

    kind = "upstream_failure"
    status_code = 502


class NotFoundOrExpired(RngWebError):
    """A proof reference does not resolve to a live entry."""

    kind = "not_found_or_expired"
    status_code = 404
