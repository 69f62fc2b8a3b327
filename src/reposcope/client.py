"""Client session for the streaming analysis endpoint.

Consumes the event stream of ``POST /api/analyze-repo`` chunk by chunk,
decodes frames, appends each delta to the accumulated report and
re-segments it, notifying a callback after every change. One analysis
runs per session at a time: starting a new one cancels the previous
stream and discards its partial text.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable

import httpx

from reposcope.constants import (
    CLIENT_FALLBACK_ERROR_MESSAGE,
    INVALID_REFERENCE_MESSAGE,
)
from reposcope.resilience.errors import InvalidInputError
from reposcope.streaming.frame_decoder import FrameDecoder
from reposcope.streaming.segmenter import IncrementalSegmenter, Section

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-repo"

_REPO_REFERENCE_RE = re.compile(
    r"^(?:https?://github\.com/)?([^/\s]+)/([^/\s]+)/?$"
)

type UpdateCallback = Callable[[str, list[Section]], None]


def parse_repo_reference(text: str) -> tuple[str, str]:
    """Parse ``owner/repo`` or a GitHub URL into ``(owner, repo)``."""
    match = _REPO_REFERENCE_RE.match(text.strip())
    if not match:
        raise InvalidInputError(INVALID_REFERENCE_MESSAGE)
    return match.group(1), match.group(2)


class AnalysisRequestError(Exception):
    """The server rejected the analysis before streaming started."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    @classmethod
    def from_response(
        cls, response: httpx.Response
    ) -> AnalysisRequestError:
        message = CLIENT_FALLBACK_ERROR_MESSAGE
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            message = data["error"] or message
        return cls(response.status_code, message)


class AnalysisSession:
    """Owns the accumulated report of the current analysis.

    Args:
        client: HTTP client used for the streaming request. Should not
            impose a read timeout: an idle stream is held open.
        base_url: Server root, e.g. ``http://127.0.0.1:8000``.
        on_update: Called with ``(report, sections)`` after every
            non-empty delta.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self._client = client
        self._url = base_url.rstrip("/") + ANALYZE_PATH
        self._on_update = on_update
        self._segmenter = IncrementalSegmenter()
        self._report = ""
        self._sections: list[Section] = []
        self._task: asyncio.Task[str] | None = None
        self._stream_lock = asyncio.Lock()

    @property
    def report(self) -> str:
        return self._report

    @property
    def sections(self) -> list[Section]:
        return list(self._sections)

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def analyze(self, owner: str, repo: str) -> str:
        """Run one analysis to completion and return the full report.

        Supersedes any analysis still in flight: the new task is
        installed and the previous one cancelled in the same step, and
        the new run starts streaming only once the previous stream has
        closed. If this analysis is itself superseded, the awaiting
        caller receives CancelledError.

        Raises:
            AnalysisRequestError: the server answered with an error.
        """
        previous = self._task
        task = asyncio.create_task(self._run(owner, repo))
        self._task = task
        if previous is not None and not previous.done():
            previous.cancel()
            logger.info("event=analysis_superseded repo=%s/%s", owner, repo)
        return await task

    async def cancel(self) -> None:
        """Cancel the in-flight analysis and wait for its stream to close."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})
        logger.info("event=analysis_cancelled")

    def _reset(self) -> None:
        self._report = ""
        self._sections = []
        self._segmenter.reset()

    def _append(self, delta: str) -> None:
        if not delta:
            return
        self._report += delta
        self._sections = self._segmenter.update(self._report)
        if self._on_update is not None:
            self._on_update(self._report, list(self._sections))

    async def _run(self, owner: str, repo: str) -> str:
        # Held for the whole run: at most one stream writes the report.
        async with self._stream_lock:
            self._reset()
            try:
                async with self._client.stream(
                    "POST", self._url, json={"owner": owner, "repo": repo}
                ) as response:
                    if response.status_code != 200:
                        await response.aread()
                        raise AnalysisRequestError.from_response(response)
                    await self._consume(response)
            except asyncio.CancelledError:
                # A superseding run resets on its own once it holds the lock.
                if self._task is asyncio.current_task():
                    self._reset()
                raise

        logger.info(
            "event=analysis_complete repo=%s/%s chars=%d sections=%d",
            owner,
            repo,
            len(self._report),
            len(self._sections),
        )
        return self._report

    async def _consume(self, response: httpx.Response) -> None:
        decoder = FrameDecoder()
        try:
            async for chunk in response.aiter_bytes():
                for frame in decoder.feed(chunk):
                    self._append(frame.delta)
                if decoder.done:
                    break
        except httpx.TransportError as exc:
            # Mid-stream disconnect counts as completion; keep partial text.
            logger.warning(
                "event=stream_interrupted chars=%d error=%s",
                len(self._report),
                type(exc).__name__,
            )
        finally:
            tail = decoder.close()
            if tail:
                logger.debug(
                    "event=unterminated_frame_dropped chars=%d",
                    len(tail),
                )
