"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, StrictInt, StrictStr


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PromptRequest(BaseModel):
    """Inbound body of POST /api/prompt."""

    prompt: StrictStr | None = None
    # None means "use the configured default"; other values pass through un-clamped.
    max_tokens: StrictInt | None = Field(default=None, alias="maxTokens")


@dataclass
class PromptResult:
    """Successful generation as seen by the gateway."""
    text: str
    usage: dict[str, Any] | None = None
    timestamp: str = field(default_factory=utc_now_iso)
    success: bool = True


class PromptOut(BaseModel):
    success: bool = True
    response: str
    tokensUsed: dict[str, Any] | None = None
    timestamp: str

    @classmethod
    def from_result(cls, result: PromptResult) -> "PromptOut":
        return cls(
            success=result.success,
            response=result.text,
            tokensUsed=result.usage,
            timestamp=result.timestamp,
        )


class HealthOut(BaseModel):
    status: str
    timestamp: str
    uptime: int
    version: str


class UptimeOut(BaseModel):
    seconds: int
    formatted: str


class StatsOut(BaseModel):
    totalRequests: int
    uptime: UptimeOut
    startTime: str
    memoryUsage: dict[str, int]
    pythonVersion: str


class SelfTestOut(BaseModel):
    status: str
    testResponse: str
    timestamp: str
