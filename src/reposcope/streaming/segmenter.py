"""Split a growing markdown report into titled sections.

A second-level heading (``## Title``, optionally led by one emoji)
opens a section; text before the first heading becomes a title-less
leading section. ``parse_sections`` is the reference: a total,
deterministic rescan of the whole text. ``IncrementalSegmenter`` gives
the same result for append-only text while rescanning only from the
last heading it has seen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from reposcope.constants import (
    DEFAULT_SECTION_ICON,
    PREAMBLE_SECTION_ICON,
    SECTION_ICONS,
)

# One non-ASCII, non-word symbol (plus optional U+FE0F) may precede the title.
HEADING_RE = re.compile(r"^##\s+(?:[^\x00-\x7f\w\s]\ufe0f?\s*)?(.+)")


@dataclass(frozen=True)
class Section:
    icon: str
    title: str
    body: str


def icon_for(title: str) -> str:
    for name, icon in SECTION_ICONS.items():
        if name in title:
            return icon
    return DEFAULT_SECTION_ICON


def _trim_blank_lines(lines: list[str]) -> str:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def _scan(text: str) -> tuple[Section | None, list[tuple[int, Section]]]:
    """Split into the title-less leading section and the headed sections.

    Each headed section is paired with the offset of its heading line.
    """
    preamble: list[str] = []
    headed: list[tuple[int, Section]] = []
    heading: tuple[int, str] | None = None
    body: list[str] = []

    pos = 0
    for line in text.split("\n"):
        match = HEADING_RE.match(line)
        if match:
            if heading is not None:
                headed.append((heading[0], _close(heading[1], body)))
            heading = (pos, match.group(1).strip())
            body = []
        elif heading is None:
            preamble.append(line)
        else:
            body.append(line)
        pos += len(line) + 1

    if heading is not None:
        headed.append((heading[0], _close(heading[1], body)))
    return _preamble(preamble), headed


def _preamble(lines: list[str]) -> Section | None:
    if not any(line.strip() for line in lines):
        return None
    return Section(
        icon=PREAMBLE_SECTION_ICON,
        title="",
        body=_trim_blank_lines(lines),
    )


def _close(title: str, body: list[str]) -> Section:
    return Section(
        icon=icon_for(title),
        title=title,
        body=_trim_blank_lines(body),
    )


def _join(
    preamble: Section | None, headed: list[tuple[int, Section]]
) -> list[Section]:
    leading = [preamble] if preamble is not None else []
    return [*leading, *(section for _, section in headed)]


def parse_sections(text: str) -> list[Section]:
    """Segment the full report text. Pure and idempotent."""
    return _join(*_scan(text))


class IncrementalSegmenter:
    """Section list maintained across append-only updates of one report.

    Sections followed by a later heading can no longer change, so they
    are kept and the next update rescans from the last heading line.
    An update that is not an extension of the previous text triggers a
    full rescan.
    """

    def __init__(self) -> None:
        self._text = ""
        self._closed: list[Section] = []
        self._offset = 0

    def reset(self) -> None:
        self._text = ""
        self._closed = []
        self._offset = 0

    def update(self, text: str) -> list[Section]:
        if not text.startswith(self._text):
            self.reset()
        self._text = text

        preamble, headed = _scan(text[self._offset:])
        sections = _join(preamble, headed)
        if len(sections) > 1:
            # More than one section means the last one is headed.
            self._closed.extend(sections[:-1])
            self._offset += headed[-1][0]
            return [*self._closed, sections[-1]]
        return [*self._closed, *sections]
