"""Error taxonomy for the image relay.

Every error carries the HTTP status it maps to and an optional ``details``
payload (the raw upstream response, when there is one). The exception
handler in ``app.main`` renders all of them as ``{"error": ..., "details": ...}``.
"""

from __future__ import annotations

from typing import Any


class RelayError(Exception):
    """Base class for errors surfaced to the caller."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidRequest(RelayError):
    status_code = 400
    default_message = "Missing required request parameters (promptText, image.data, image.mimeType, or model)."


class MethodNotAllowed(RelayError):
    status_code = 405
    default_message = "Only POST requests are supported."


class ServerMisconfigured(RelayError):
    status_code = 500
    default_message = "Server configuration error: GEMINI_API_KEY is not set."


class UpstreamUnavailable(RelayError):
    """Retries exhausted on transient upstream faults."""

    status_code = 500
    default_message = "Upstream service unavailable"

    def __init__(self, message: str | None = None, attempts: int = 0, last_error: str = ""):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class UpstreamRejected(RelayError):
    """Non-retriable HTTP error from the upstream provider."""

    status_code = 500
    default_message = "Upstream request rejected"

    def __init__(self, upstream_status: int, body: str, details: Any = None):
        super().__init__(f"API request failed with status {upstream_status}: {body}", details=details)
        self.upstream_status = upstream_status
        self.body = body


class GenerationBlockedOrFailed(RelayError):
    """Upstream answered 2xx but produced no usable image."""

    status_code = 500
    default_message = "Image generation failed. Please check the prompt or try again."


class InternalError(RelayError):
    status_code = 500
