"""Gateway settings: defaults, optional YAML file, .env and environment."""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

LOGGER = logging.getLogger("gemini_gateway.config")

DEFAULT_CONFIG_PATH = "configs/gateway.yaml"

# Environment variable -> settings field. Environment wins over the YAML file.
ENV_FIELDS: dict[str, str] = {
    "HOST": "host",
    "PORT": "port",
    "GEMINI_API_KEY": "gemini_api_key",
    "GEMINI_MODEL": "gemini_model",
    "GEMINI_BASE_URL": "gemini_base_url",
    "TEMPERATURE": "temperature",
    "MAX_TOKENS": "default_max_tokens",
    "UPSTREAM_TIMEOUT": "upstream_timeout",
    "CORS_ORIGIN": "cors_origin",
    "RATE_LIMIT_WINDOW_SECONDS": "rate_limit_window_seconds",
    "RATE_LIMIT_MAX": "rate_limit_max",
    "TRUST_FORWARDED_FOR": "trust_forwarded_for",
    "EXPOSE_UPSTREAM_PAYLOAD": "expose_upstream_payload",
    "LOG_LEVEL": "log_level",
}


class GatewaySettings(BaseModel):
    """Runtime configuration for the gateway."""

    host: str = "0.0.0.0"
    port: int = 3001

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.7
    default_max_tokens: int = 1000
    upstream_timeout: float = Field(default=30.0, gt=0)

    cors_origin: str = "https://take-movie-website.vercel.app"

    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    rate_limit_max: int = Field(default=15, gt=0)
    trust_forwarded_for: bool = False

    expose_upstream_payload: bool = True
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def rate_limit(self) -> str:
        """Limit string in the notation understood by slowapi/limits."""
        return f"{self.rate_limit_max}/{self.rate_limit_window_seconds} seconds"


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(cfg_path: str | None = None, env_file: str | None = None) -> GatewaySettings:
    """
    Build settings from the YAML file (if present) overlaid with environment variables.

    Args:
        cfg_path: YAML config path. Defaults to $GATEWAY_CONFIG or configs/gateway.yaml.
        env_file: Optional .env file to load before reading the environment.
    """
    load_dotenv(env_file)

    path = cfg_path or os.getenv("GATEWAY_CONFIG", DEFAULT_CONFIG_PATH)
    data: dict[str, Any] = {}
    if Path(path).exists():
        data = load_cfg(path)
        LOGGER.debug("Loaded settings file %s", path)
    elif cfg_path:
        raise FileNotFoundError(f"Config file not found at {path}")

    for env_name, field in ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value is not None:
            data[field] = value

    return GatewaySettings(**data)
