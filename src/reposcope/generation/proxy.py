"""Streaming proxy to the chat-completions generation service.

The upstream status is known before any body arrives, so every failure
is mapped to a caller-facing error before streaming starts. On success
the body is relayed byte-for-byte and never parsed here: frame decoding
is the consumer's job.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from reposcope.config import Settings
from reposcope.constants import ERROR_TRUNCATION_CHARS
from reposcope.resilience.errors import (
    ConfigurationError,
    GenerationFailureError,
    error_for_generation_status,
)

logger = logging.getLogger(__name__)


def require_credential(settings: Settings) -> str:
    """Return the generation API key or raise ConfigurationError."""
    if not settings.ai_gateway_api_key:
        raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
    return settings.ai_gateway_api_key


def build_generation_payload(
    messages: list[dict[str, str]], model: str
) -> dict[str, Any]:
    return {
        "model": model,
        "messages": messages,
        "stream": True,
    }


async def open_generation_stream(
    client: httpx.AsyncClient,
    settings: Settings,
    messages: list[dict[str, str]],
) -> httpx.Response:
    """Issue the streamed completion request and return the unread response.

    The caller owns the returned response and must close it, normally
    by draining it through ``relay_stream``.

    Raises:
        ConfigurationError: no API key; the request is never issued.
        RateLimitedError: upstream answered 429.
        QuotaExhaustedError: upstream answered 402.
        GenerationFailureError: any other non-success status, or the
            request could not be sent.
    """
    api_key = require_credential(settings)
    request = client.build_request(
        "POST",
        settings.ai_gateway_url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        json=build_generation_payload(messages, settings.ai_model),
    )

    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        logger.error(
            "event=generation_request_failed error=%s",
            str(exc)[:ERROR_TRUNCATION_CHARS] or type(exc).__name__,
        )
        raise GenerationFailureError() from exc

    if response.is_success:
        logger.info(
            "event=generation_stream_opened model=%s status=%d",
            settings.ai_model,
            response.status_code,
        )
        return response

    try:
        body = (await response.aread()).decode("utf-8", "replace")
    except httpx.HTTPError as exc:
        body = f"<unreadable body: {type(exc).__name__}>"
    finally:
        await response.aclose()

    # Body is logged for operators only, never relayed to the caller.
    logger.error(
        "event=generation_upstream_error status=%d body=%s",
        response.status_code,
        body[:ERROR_TRUNCATION_CHARS],
    )
    raise error_for_generation_status(response.status_code)


async def relay_stream(
    response: httpx.Response,
) -> AsyncIterator[bytes]:
    """Yield the upstream body chunk by chunk, closing it when done.

    An upstream connection that drops mid-body ends the relay instead
    of raising: the consumer keeps whatever text it already received.
    """
    relayed = 0
    try:
        async for chunk in response.aiter_bytes():
            relayed += len(chunk)
            yield chunk
    except httpx.TransportError as exc:
        logger.warning(
            "event=generation_stream_interrupted bytes=%d error=%s",
            relayed,
            type(exc).__name__,
        )
    finally:
        await response.aclose()
        logger.info(
            "event=generation_stream_closed bytes=%d", relayed
        )
