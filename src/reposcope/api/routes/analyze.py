"""Repository analysis route: aggregate, prompt, stream."""

from __future__ import annotations

import logging
import time

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from reposcope.api.dependencies import (
    get_generation_client,
    get_github_client,
    get_settings,
)
from reposcope.api.schemas import AnalyzeRequest, ErrorResponse
from reposcope.config import Settings
from reposcope.constants import EVENT_STREAM_MEDIA_TYPE
from reposcope.generation.proxy import (
    open_generation_stream,
    relay_stream,
    require_credential,
)
from reposcope.ingestion.collector import collect_repository
from reposcope.prompts import build_messages
from reposcope.resilience.errors import InvalidInputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


async def _read_request(request: Request) -> tuple[str, str]:
    """Return ``(owner, repo)`` or raise InvalidInputError."""
    try:
        payload = await request.json()
        body = AnalyzeRequest.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        raise InvalidInputError() from exc
    if not body.owner or not body.repo:
        raise InvalidInputError()
    return body.owner, body.repo


@router.post(
    "/analyze-repo",
    response_class=StreamingResponse,
    responses={
        200: {"content": {EVENT_STREAM_MEDIA_TYPE: {}}},
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_repo(
    request: Request,
    settings: Settings = Depends(get_settings),
    github_client: httpx.AsyncClient = Depends(get_github_client),
    generation_client: httpx.AsyncClient = Depends(
        get_generation_client
    ),
) -> StreamingResponse:
    """Stream an AI structural report for ``{owner, repo}``.

    Errors are detected before the first byte is streamed and returned
    as ``{"error": ...}``; on success the generation service's event
    stream is relayed unchanged.
    """
    owner, repo = await _read_request(request)
    require_credential(settings)

    start = time.monotonic()
    snapshot = await collect_repository(github_client, owner, repo)
    upstream = await open_generation_stream(
        generation_client, settings, build_messages(snapshot)
    )
    logger.info(
        "event=analysis_stream_started repo=%s/%s prep_ms=%d",
        owner,
        repo,
        int((time.monotonic() - start) * 1000),
    )
    return StreamingResponse(
        relay_stream(upstream),
        media_type=EVENT_STREAM_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
