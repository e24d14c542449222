"""Gateway handler: validate a prompt request, make one upstream call, map the result."""
from __future__ import annotations
import logging
from typing import Any

import pydantic

from gemini_gateway.common.config import GatewaySettings
from gemini_gateway.common.errors import (
    ConfigurationError,
    GatewayError,
    InternalError,
    UpstreamFormatError,
    ValidationError,
)
from gemini_gateway.common.schema import PromptRequest, PromptResult
from gemini_gateway.serve.gemini import GeminiClient, build_payload, extract_text

LOGGER = logging.getLogger("gemini_gateway.gateway")

SELF_TEST_PROMPT = "Say hello and confirm the API is working"


def parse_request(body: Any) -> PromptRequest:
    """Parse the raw JSON body; any structural defect is a ValidationError."""
    if not isinstance(body, dict):
        raise ValidationError()
    try:
        req = PromptRequest.model_validate(body)
    except pydantic.ValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        if "maxTokens" in fields and "prompt" not in fields:
            raise ValidationError("maxTokens must be an integer")
        raise ValidationError()
    if not req.prompt:
        raise ValidationError()
    return req


class PromptGateway:
    """Forwards prompts to Gemini using the configured credential and defaults."""

    def __init__(self, settings: GatewaySettings) -> None:
        self.settings = settings
        self.client = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.upstream_timeout,
        )

    def _require_api_key(self) -> None:
        if not self.settings.has_api_key:
            LOGGER.error("GEMINI_API_KEY is not configured")
            raise ConfigurationError()

    def handle(self, body: Any) -> PromptResult:
        """
        Run one prompt request to completion.

        Raises:
            GatewayError: every failure, already classified.
        """
        req = parse_request(body)
        self._require_api_key()

        max_tokens = req.max_tokens if req.max_tokens is not None else self.settings.default_max_tokens
        payload = build_payload(req.prompt, max_tokens=max_tokens, temperature=self.settings.temperature)
        try:
            return self.client.generate(payload)
        except UpstreamFormatError as e:
            LOGGER.error("Unexpected Gemini response format: %s", e.raw_response)
            if not self.settings.expose_upstream_payload:
                raise UpstreamFormatError() from e
            raise
        except GatewayError:
            raise
        except Exception as e:
            LOGGER.exception("Prompt forwarding failed")
            raise InternalError(str(e)) from e

    def self_test(self) -> str:
        """Send the fixed smoke-test prompt; returns the reply text or 'No response'."""
        self._require_api_key()
        r = self.client.post(build_payload(SELF_TEST_PROMPT))
        if not r.is_success:
            LOGGER.warning("Self-test got upstream status %s: %s", r.status_code, r.text)
        try:
            data = r.json()
        except ValueError:
            data = None
        return extract_text(data) or "No response"
