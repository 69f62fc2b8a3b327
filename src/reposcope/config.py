"""Environment-based configuration."""

from __future__ import annotations

import httpx
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Generation service (chat completions, streamed)
    ai_gateway_api_key: str = ""
    ai_gateway_url: str = (
        "https://ai.gateway.lovable.dev/v1/chat/completions"
    )
    ai_model: str = "google/gemini-3-flash-preview"
    generation_connect_timeout_seconds: float = 30.0

    # Repository metadata API
    github_api_url: str = "https://api.github.com"
    github_timeout_seconds: float = 15.0

    # Logging
    log_level: str = "INFO"

    # API
    cors_origins: str = "*"

    # Client / CLI
    api_base_url: str = "http://127.0.0.1:8000"

    @field_validator("github_api_url", "api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origin_list(self) -> list[str]:
        """Comma-separated ``cors_origins`` as a list."""
        return [
            o.strip()
            for o in self.cors_origins.split(",")
            if o.strip()
        ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }


def create_github_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client for the repository metadata API.

    Bounded timeout: a slow metadata source only degrades its own
    result, it never stalls the whole request.
    """
    return httpx.AsyncClient(
        base_url=settings.github_api_url,
        timeout=settings.github_timeout_seconds,
        headers={"User-Agent": "reposcope"},
    )


def create_generation_client(
    settings: Settings,
) -> httpx.AsyncClient:
    """HTTP client for the generation service.

    Only connecting is bounded. Reads have no timeout: an open stream
    that goes quiet is held until the upstream closes it.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            None, connect=settings.generation_connect_timeout_seconds
        ),
    )
