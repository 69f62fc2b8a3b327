"""Tests for the incremental event-stream frame decoder."""

from __future__ import annotations

import json

import pytest

from reposcope.constants import FrameKind
from reposcope.streaming.frame_decoder import (
    DONE_FRAME,
    DecoderState,
    FrameDecoder,
    GenerationFrame,
    extract_delta,
)


def _frame(content: str | None, *, crlf: bool = False) -> str:
    delta = {} if content is None else {"content": content}
    record = json.dumps({"choices": [{"delta": delta}]}, ensure_ascii=False)
    return f"data: {record}" + ("\r\n" if crlf else "\n")


STREAM = (
    ": keep-alive\n"
    "\n"
    + _frame(None, crlf=True)
    + _frame("## 🏗️ Project")
    + _frame(" Overview\n\nHéllo")
    + "event: ping\n"
    + _frame("")
    + 'data: {"choices":[{"delta":{"content":null}}]}\n'
    + _frame(" wörld ✓")
    + "data: [DONE]\n\n"
    + _frame("after the sentinel")
).encode("utf-8")

EXPECTED_DELTAS = [
    "",
    "## 🏗️ Project",
    " Overview\n\nHéllo",
    "",
    "",
    " wörld ✓",
]
EXPECTED_FRAMES = [
    *(GenerationFrame(kind=FrameKind.DELTA, delta=d) for d in EXPECTED_DELTAS),
    DONE_FRAME,
]


def _decode(chunks: list[bytes] | list[str]) -> list[GenerationFrame]:
    decoder = FrameDecoder()
    frames: list[GenerationFrame] = []
    for chunk in chunks:
        frames.extend(decoder.feed(chunk))
    return frames


class TestChunkBoundaryInvariance:
    def test_single_chunk(self) -> None:
        assert _decode([STREAM]) == EXPECTED_FRAMES

    def test_byte_by_byte(self) -> None:
        chunks = [STREAM[i:i + 1] for i in range(len(STREAM))]
        assert _decode(chunks) == EXPECTED_FRAMES

    def test_every_two_way_split(self) -> None:
        for i in range(len(STREAM) + 1):
            assert _decode([STREAM[:i], STREAM[i:]]) == EXPECTED_FRAMES, i

    def test_three_way_splits_inside_prefix_and_payload(self) -> None:
        first = STREAM.index(b"data: ")
        for a in range(first, first + 8):
            for b in range(a, len(STREAM), 17):
                chunks = [STREAM[:a], STREAM[a:b], STREAM[b:]]
                assert _decode(chunks) == EXPECTED_FRAMES, (a, b)

    def test_str_chunks_accepted(self) -> None:
        text = STREAM.decode("utf-8")
        chunks = [text[i:i + 5] for i in range(0, len(text), 5)]
        assert _decode(chunks) == EXPECTED_FRAMES

    def test_concatenated_deltas_rebuild_text(self) -> None:
        frames = _decode([STREAM[i:i + 3] for i in range(0, len(STREAM), 3)])
        text = "".join(f.delta for f in frames)
        assert text == "## 🏗️ Project Overview\n\nHéllo wörld ✓"


class TestScenario:
    def test_frame_split_across_three_chunks(self) -> None:
        decoder = FrameDecoder()
        report = ""

        first = decoder.feed(b'data: {"choices":[{"delta":{"content":"He')
        assert first == []
        assert decoder.state is DecoderState.PARTIAL

        second = decoder.feed(b'llo"}}]}\n')
        assert [f.delta for f in second] == ["Hello"]
        assert decoder.state is DecoderState.IDLE
        report += "".join(f.delta for f in second)

        third = decoder.feed(b"data: [DONE]\n")
        assert third == [DONE_FRAME]
        assert decoder.done
        assert report == "Hello"


class TestLineHandling:
    def test_crlf_terminated_sentinel(self) -> None:
        assert _decode([b"data: [DONE]\r\n"]) == [DONE_FRAME]

    def test_payload_whitespace_trimmed(self) -> None:
        assert _decode([b"data:   [DONE]   \n"]) == [DONE_FRAME]

    def test_prefix_without_space_is_not_a_frame(self) -> None:
        assert _decode([b"data:[DONE]\n"]) == []

    def test_comment_and_blank_lines_ignored(self) -> None:
        assert _decode([b": ping\n\n\nevent: x\n"]) == []

    def test_frames_after_sentinel_ignored(self) -> None:
        decoder = FrameDecoder()
        decoder.feed(b"data: [DONE]\n")
        assert decoder.feed(_frame("late").encode()) == []
        assert decoder.state is DecoderState.FINISHED
        assert decoder.pending == ""

    def test_multibyte_character_split_across_chunks(self) -> None:
        raw = _frame("é").encode("utf-8")
        cut = raw.index("é".encode("utf-8")) + 1
        frames = _decode([raw[:cut], raw[cut:]])
        assert [f.delta for f in frames] == ["é"]


class TestDeferral:
    def test_unparseable_line_stays_buffered(self) -> None:
        decoder = FrameDecoder()
        assert decoder.feed(b'data: {"choices": [\n') == []
        assert decoder.pending == 'data: {"choices": [\n'
        assert decoder.state is DecoderState.PARTIAL

    def test_deferred_line_blocks_later_frames(self) -> None:
        decoder = FrameDecoder()
        decoder.feed(b"data: {broken\n")
        assert decoder.feed(_frame("x").encode()) == []
        assert decoder.pending.startswith("data: {broken\n")

    def test_close_discards_unterminated_tail(self) -> None:
        decoder = FrameDecoder()
        assert decoder.feed(b'data: {"choices":[{"delta":') == []
        tail = decoder.close()
        assert tail == 'data: {"choices":[{"delta":'
        assert decoder.done
        assert decoder.pending == ""

    def test_close_on_clean_stream_returns_empty(self) -> None:
        decoder = FrameDecoder()
        decoder.feed(_frame("a").encode())
        assert decoder.close() == ""


class TestExtractDelta:
    @pytest.mark.parametrize(
        "record",
        [
            None,
            [],
            42,
            {},
            {"choices": []},
            {"choices": ["x"]},
            {"choices": [{"delta": "x"}]},
            {"choices": [{"delta": {}}]},
            {"choices": [{"delta": {"content": 7}}]},
        ],
    )
    def test_missing_or_invalid_content_is_empty(self, record: object) -> None:
        assert extract_delta(record) == ""

    def test_content_returned(self) -> None:
        record = {"choices": [{"delta": {"content": "abc"}}]}
        assert extract_delta(record) == "abc"
