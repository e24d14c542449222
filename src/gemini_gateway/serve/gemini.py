"""Gemini generateContent boundary: request body, HTTP call and response adapter.

Everything that depends on the remote schema lives here so the gateway's
control flow does not change when the upstream contract does.
"""
from __future__ import annotations
import logging
from typing import Any

import httpx

from gemini_gateway.common.errors import UpstreamError, UpstreamFormatError
from gemini_gateway.common.schema import PromptResult

LOGGER = logging.getLogger("gemini_gateway.gemini")


def build_payload(prompt: str, max_tokens: int | None = None, temperature: float | None = None) -> dict[str, Any]:
    """
    Build a generateContent request body.

    Args:
        prompt: User prompt text.
        max_tokens: maxOutputTokens; generationConfig is omitted when both
            parameters are None.
        temperature: Sampling temperature.
    """
    payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    generation_config: dict[str, Any] = {}
    if max_tokens is not None:
        generation_config["maxOutputTokens"] = max_tokens
    if temperature is not None:
        generation_config["temperature"] = temperature
    if generation_config:
        payload["generationConfig"] = generation_config
    return payload


def extract_text(data: Any) -> str | None:
    """Return candidates[0].content.parts[0].text, or None if the path is absent."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


def to_prompt_result(data: Any) -> PromptResult:
    """Map a raw generateContent success payload to a PromptResult."""
    text = extract_text(data)
    if text is None:
        raise UpstreamFormatError(raw_response=data)
    usage = data.get("usageMetadata") if isinstance(data, dict) else None
    return PromptResult(text=text, usage=usage)


class GeminiClient:
    """Thin synchronous client for one model's generateContent endpoint."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def post(self, payload: dict[str, Any]) -> httpx.Response:
        """Send exactly one request; no retry.

        The key travels in a header so it never shows up in logged URLs.
        """
        with httpx.Client(timeout=self.timeout, follow_redirects=True, transport=self.transport) as client:
            return client.post(
                self.url,
                headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key or ""},
                json=payload,
            )

    def generate(self, payload: dict[str, Any]) -> PromptResult:
        """
        Call generateContent and adapt the response.

        Raises:
            UpstreamError: non-success upstream status.
            UpstreamFormatError: success status without extractable text.
            httpx.HTTPError: transport failures, left to the caller.
        """
        r = self.post(payload)
        if not r.is_success:
            LOGGER.error("Gemini API error (status %s): %s", r.status_code, r.text)
            raise UpstreamError(r.status_code)
        try:
            data = r.json()
        except ValueError:
            LOGGER.error("Gemini API returned non-JSON body: %s", r.text)
            raise UpstreamFormatError(raw_response=r.text)
        return to_prompt_result(data)
