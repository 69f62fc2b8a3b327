"""Error taxonomy for a repository analysis.

Every error a caller can see is an ``AnalysisError`` carrying the HTTP
status it maps to and a message safe to show verbatim. Per-source
upstream failures are not errors here: the collector absorbs them and
degrades to defaults. A transport that closes mid-stream is not an
error either: the client treats it as completion.
"""

from __future__ import annotations

from reposcope.constants import (
    GENERATION_FAILED_MESSAGE,
    MISSING_INPUT_MESSAGE,
    QUOTA_EXHAUSTED_MESSAGE,
    RATE_LIMITED_MESSAGE,
)


class AnalysisError(Exception):
    """Base class: an analysis failure surfaced as ``{"error": message}``."""

    status_code: int = 500
    default_message: str = "Analysis failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AnalysisError):
    status_code = 400
    default_message = MISSING_INPUT_MESSAGE


class RepositoryNotFoundError(AnalysisError):
    """The statistics source was unavailable, so the repository is treated as absent."""

    status_code = 404

    def __init__(self, owner: str, repo: str) -> None:
        self.owner = owner
        self.repo = repo
        super().__init__(
            f"Repository {owner}/{repo} not found or inaccessible."
        )


class RateLimitedError(AnalysisError):
    status_code = 429
    default_message = RATE_LIMITED_MESSAGE


class QuotaExhaustedError(AnalysisError):
    status_code = 402
    default_message = QUOTA_EXHAUSTED_MESSAGE


class GenerationFailureError(AnalysisError):
    status_code = 500
    default_message = GENERATION_FAILED_MESSAGE


class ConfigurationError(AnalysisError):
    """A required setting is missing; detected at request time."""

    status_code = 500


_UPSTREAM_STATUS_ERRORS: dict[int, type[AnalysisError]] = {
    429: RateLimitedError,
    402: QuotaExhaustedError,
}


def error_for_generation_status(status_code: int) -> AnalysisError:
    """Map a non-success generation-service status to a caller-facing error.

    429 and 402 keep their meaning; every other status collapses to a
    generic failure so upstream internals are not relayed.
    """
    error_cls = _UPSTREAM_STATUS_ERRORS.get(
        status_code, GenerationFailureError
    )
    return error_cls()
