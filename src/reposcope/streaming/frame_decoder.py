"""Incremental decoder for the generation event stream.

The transport fragments the stream arbitrarily: a chunk may end inside
a UTF-8 character, inside the ``data: `` prefix, or inside a JSON
payload. The decoder keeps one pending buffer and, per chunk, drains
every complete newline-terminated line out of it. A data line whose
JSON does not parse yet is left in the buffer untouched and the pass
stops there, to be retried once more bytes arrive.
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from reposcope.constants import (
    DONE_SENTINEL,
    FRAME_DELIMITER,
    FRAME_PREFIX,
    FrameKind,
)


@dataclass(frozen=True)
class GenerationFrame:
    """One decoded frame: a text delta or the end-of-stream marker."""

    kind: FrameKind
    delta: str = ""

    @property
    def is_done(self) -> bool:
        return self.kind is FrameKind.DONE


DONE_FRAME = GenerationFrame(kind=FrameKind.DONE)


class DecoderState(Enum):
    IDLE = "idle"  # no partial frame held across the last chunk boundary
    PARTIAL = "partial"  # an incomplete line is held for the next chunk
    DRAINING = "draining"
    FINISHED = "finished"  # sentinel seen or transport closed


class _LineOutcome(Enum):
    SKIP = "skip"  # not a frame line
    DEFER = "defer"  # frame payload incomplete; wait for more bytes


def extract_delta(record: Any) -> str:
    """Return ``choices[0].delta.content``; missing or non-text → ``""``."""
    if not isinstance(record, dict):
        return ""
    choices = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def decode_line(line: str) -> GenerationFrame | _LineOutcome:
    """Classify one delimiter-stripped line."""
    if not line.startswith(FRAME_PREFIX):
        return _LineOutcome.SKIP
    payload = line[len(FRAME_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return DONE_FRAME
    try:
        record = json.loads(payload)
    except ValueError:
        return _LineOutcome.DEFER
    return GenerationFrame(
        kind=FrameKind.DELTA, delta=extract_delta(record)
    )


class FrameDecoder:
    """Reassembles frames from arbitrarily split chunks.

    Owned by a single consumer; ``feed`` runs to completion between
    chunks, so the buffer has exactly one writer.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(
            errors="replace"
        )
        self._state = DecoderState.IDLE

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is DecoderState.FINISHED

    @property
    def pending(self) -> str:
        """Text received but not yet consumed as a frame."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[GenerationFrame]:
        """Append one transport chunk and return the frames it completed.

        Returns at most one terminal frame, always last. After the
        terminal frame every further chunk is ignored.
        """
        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk
        self._state = DecoderState.DRAINING
        frames = self._drain()
        if self._state is DecoderState.DRAINING:
            self._state = (
                DecoderState.PARTIAL if self._buffer else DecoderState.IDLE
            )
        return frames

    def close(self) -> str:
        """Signal end of transport; returns the discarded unterminated tail."""
        tail = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        self._state = DecoderState.FINISHED
        return tail

    def _drain(self) -> list[GenerationFrame]:
        frames: list[GenerationFrame] = []
        while True:
            idx = self._buffer.find(FRAME_DELIMITER)
            if idx == -1:
                break
            line = self._buffer[:idx]
            if line.endswith("\r"):
                line = line[:-1]

            outcome = decode_line(line)
            if outcome is _LineOutcome.DEFER:
                # Line and delimiter stay at the front of the buffer.
                break

            self._buffer = self._buffer[idx + len(FRAME_DELIMITER):]
            if not isinstance(outcome, GenerationFrame):
                continue

            frames.append(outcome)
            if outcome.is_done:
                self._buffer = ""
                self._state = DecoderState.FINISHED
                break
        return frames
