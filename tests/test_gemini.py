from __future__ import annotations

import logging

import httpx
import pytest

from gemini_gateway.common.errors import UpstreamError, UpstreamFormatError
from gemini_gateway.serve.gemini import GeminiClient, build_payload, extract_text, to_prompt_result

from conftest import PARIS_BODY, FakeUpstream


def test_build_payload_with_generation_config() -> None:
    assert build_payload("hi", max_tokens=5, temperature=0.7) == {
        "contents": [{"parts": [{"text": "hi"}]}],
        "generationConfig": {"maxOutputTokens": 5, "temperature": 0.7},
    }


def test_build_payload_without_generation_config() -> None:
    assert build_payload("hi") == {"contents": [{"parts": [{"text": "hi"}]}]}


@pytest.mark.parametrize(
    "data",
    [
        {},
        None,
        "text",
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        {"candidates": [{"content": {"parts": [{"text": 3}]}}]},
    ],
)
def test_extract_text_missing_path(data: object) -> None:
    assert extract_text(data) is None


def test_to_prompt_result() -> None:
    result = to_prompt_result(PARIS_BODY)
    assert result.success is True
    assert result.text == "Paris is the capital of France."
    assert result.usage == PARIS_BODY["usageMetadata"]


def test_to_prompt_result_format_error_keeps_payload() -> None:
    with pytest.raises(UpstreamFormatError) as info:
        to_prompt_result({"error": "nope"})
    assert info.value.to_body()["rawResponse"] == {"error": "nope"}


def test_upstream_error_mapping() -> None:
    assert UpstreamError(403).to_body()["details"] == "Invalid API key or quota exceeded"
    assert UpstreamError(403).status_code == 403
    assert UpstreamError(503).to_body()["details"] == "Service temporarily unavailable"
    assert UpstreamError(304).status_code == 502


def test_client_url_and_single_call(upstream: FakeUpstream) -> None:
    gc = GeminiClient(api_key="abc", model="gemini-2.0-flash", base_url="https://example.test/v1beta/", timeout=5.0)
    assert gc.url == "https://example.test/v1beta/models/gemini-2.0-flash:generateContent"
    result = gc.generate(build_payload("q"))
    assert result.text == "Paris is the capital of France."
    assert len(upstream.calls) == 1
    assert upstream.calls[0]["timeout"] == 5.0


def test_client_non_json_success_is_format_error(upstream: FakeUpstream) -> None:
    upstream.respond(200, None, text="<html>oops</html>")
    gc = GeminiClient(api_key="abc", model="m", base_url="https://example.test")
    with pytest.raises(UpstreamFormatError) as info:
        gc.generate(build_payload("q"))
    assert info.value.raw_response == "<html>oops</html>"


def test_api_key_sent_as_header_and_kept_out_of_logs(caplog: pytest.LogCaptureFixture) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PARIS_BODY)

    gc = GeminiClient(
        api_key="SUPERSECRET",
        model="m",
        base_url="https://x.test",
        transport=httpx.MockTransport(handler),
    )
    with caplog.at_level(logging.INFO):
        result = gc.generate(build_payload("q"))

    assert result.text == "Paris is the capital of France."
    assert seen[0].headers["x-goog-api-key"] == "SUPERSECRET"
    assert "key" not in seen[0].url.params
    assert any(r.name == "httpx" for r in caplog.records)
    assert "SUPERSECRET" not in caplog.text
