"""Shared constants used across modules.

Limits that bound the prompt, the event-stream wire format and the
report section table all live here so the server and the client agree
on them without importing each other.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class UpstreamSource(StrEnum):
    """The three independent data providers consulted before generation."""

    STATS = "stats"
    README = "readme"
    ISSUES = "issues"


class FrameKind(StrEnum):
    """Kinds of decoded generation frames."""

    DELTA = "delta"
    DONE = "done"


# ── Prompt bounds ────────────────────────────────────────

README_MAX_CHARS = 6000
MAX_ISSUES = 15

README_FALLBACK = "README not found."
NO_ISSUES_FALLBACK = "No open issues found."
NO_LABELS = "none"
NO_TOPICS = "None"
NO_LICENSE = "None"
LABEL_DELIMITER = ", "

# ── GitHub REST API ──────────────────────────────────────

GITHUB_JSON_ACCEPT = "application/vnd.github+json"
GITHUB_RAW_ACCEPT = "application/vnd.github.raw"

# ── Event-stream wire format ─────────────────────────────

FRAME_DELIMITER = "\n"
FRAME_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"

# ── Report sections ──────────────────────────────────────

# Lookup is a substring match against the heading text; first entry wins.
SECTION_ICONS: dict[str, str] = {
    "Project Overview": "🏗️",
    "Tech Stack Analysis": "⚙️",
    "Architecture Pattern": "🧩",
    "Repository Health Score": "📊",
    "Good First Issues": "🐛",
    "Contribution Difficulty": "🎯",
    "Open Source Onboarding Plan": "🚀",
}
DEFAULT_SECTION_ICON = "📄"
PREAMBLE_SECTION_ICON = "📋"

# ── User-facing messages ─────────────────────────────────

MISSING_INPUT_MESSAGE = "Please provide owner and repo"
INVALID_REFERENCE_MESSAGE = (
    "Invalid format. Use owner/repo or a GitHub URL."
)
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
QUOTA_EXHAUSTED_MESSAGE = "AI usage limit reached. Please add credits."
GENERATION_FAILED_MESSAGE = "AI analysis failed."
UNKNOWN_ERROR_MESSAGE = "Unknown error"
CLIENT_FALLBACK_ERROR_MESSAGE = "Analysis failed"

# ── Logging ──────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 500
