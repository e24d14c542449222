"""Gateway error taxonomy.

Every failure leaving the gateway is one of these, rendered as a JSON body
with at least an ``error`` field.
"""
from __future__ import annotations
from typing import Any

PROMPT_EXAMPLE = {"prompt": "Explain how AI works"}


class GatewayError(Exception):
    """Base error carrying the HTTP status and the JSON body to return."""

    status_code = 500

    def __init__(self, error: str, status_code: int | None = None, **extra: Any) -> None:
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        body.update({k: v for k, v in self.extra.items() if v is not None})
        return body


class ValidationError(GatewayError):
    """Client input defect."""

    status_code = 400

    def __init__(self, error: str = "Prompt is required") -> None:
        super().__init__(error, example=PROMPT_EXAMPLE)


class ConfigurationError(GatewayError):
    """Server misconfiguration, e.g. the Gemini API key is not set."""

    def __init__(self, error: str = "Server configuration error: API key not found") -> None:
        super().__init__(error)


class UpstreamError(GatewayError):
    """The remote service answered with a non-success status, mirrored to the client."""

    def __init__(self, upstream_status: int) -> None:
        if upstream_status == 403:
            details = "Invalid API key or quota exceeded"
        else:
            details = "Service temporarily unavailable"
        # Only error statuses are mirrored; anything else non-2xx becomes a bad gateway.
        status = upstream_status if upstream_status >= 400 else 502
        super().__init__("AI service error", status_code=status, details=details)
        self.upstream_status = upstream_status


class UpstreamFormatError(GatewayError):
    """The remote service succeeded but its payload has no extractable text."""

    def __init__(self, raw_response: Any = None) -> None:
        super().__init__("Unexpected response format from AI service", rawResponse=raw_response)
        self.raw_response = raw_response


class RateLimitExceeded(GatewayError):
    status_code = 429

    def __init__(self, error: str = "Too many requests from this IP, please try again later.") -> None:
        super().__init__(error)


class InternalError(GatewayError):
    def __init__(self, message: str | None = None, error: str = "Internal server error") -> None:
        super().__init__(error, message=message)
