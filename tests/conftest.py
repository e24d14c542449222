from __future__ import annotations

import json as jsonlib
from typing import Any

import pytest
from fastapi.testclient import TestClient

import gemini_gateway.serve.gemini as gemini_mod
from gemini_gateway.common.config import ENV_FIELDS, GatewaySettings
from gemini_gateway.serve.app import create_app

PARIS_BODY: dict[str, Any] = {
    "candidates": [
        {
            "content": {"role": "model", "parts": [{"text": "Paris is the capital of France."}]},
            "finishReason": "STOP",
        }
    ],
    "usageMetadata": {"promptTokenCount": 8, "candidatesTokenCount": 7, "totalTokenCount": 15},
}


class _FakeResponse:
    def __init__(self, status_code: int, json_data: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else jsonlib.dumps(json_data)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("not JSON")
        return self._json


class FakeUpstream:
    """Scripted Gemini backend that records every outbound call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.status_code = 200
        self.json_data: Any = PARIS_BODY
        self.text: str | None = None
        self.exc: Exception | None = None

    def respond(self, status_code: int = 200, json_data: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self.json_data = json_data
        self.text = text

    def fail(self, exc: Exception) -> None:
        self.exc = exc


class _FakeClient:
    backend: FakeUpstream

    def __init__(self, timeout: float | None = None, follow_redirects: bool = False, transport: Any = None) -> None:  # signature-compatible
        self.timeout = timeout

    def __enter__(self) -> "_FakeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    def post(self, url: str, headers: dict[str, str] | None = None, json: Any = None) -> _FakeResponse:  # noqa: A002
        self.backend.calls.append({"url": url, "headers": headers, "json": json, "timeout": self.timeout})
        if self.backend.exc is not None:
            raise self.backend.exc
        return _FakeResponse(self.backend.status_code, self.backend.json_data, self.backend.text)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so teardown also clears values that load_dotenv() writes
    for name in [*ENV_FIELDS, "GATEWAY_CONFIG"]:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def upstream(monkeypatch: pytest.MonkeyPatch) -> FakeUpstream:
    fake = FakeUpstream()

    class _BoundClient(_FakeClient):
        backend = fake

    # Patch httpx.Client as seen by the gemini module to avoid network calls
    monkeypatch.setattr(gemini_mod.httpx, "Client", _BoundClient)
    return fake


@pytest.fixture
def settings() -> GatewaySettings:
    return GatewaySettings(gemini_api_key="test-key", rate_limit_max=100)


@pytest.fixture
def client(settings: GatewaySettings, upstream: FakeUpstream) -> TestClient:
    return TestClient(create_app(settings))
