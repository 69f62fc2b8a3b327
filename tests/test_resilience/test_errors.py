"""Tests for the analysis error taxonomy."""

from __future__ import annotations

import pytest

from reposcope.resilience.errors import (
    AnalysisError,
    ConfigurationError,
    GenerationFailureError,
    InvalidInputError,
    QuotaExhaustedError,
    RateLimitedError,
    RepositoryNotFoundError,
    error_for_generation_status,
)


class TestAnalysisError:
    @pytest.mark.parametrize(
        ("error_cls", "status"),
        [
            (InvalidInputError, 400),
            (RateLimitedError, 429),
            (QuotaExhaustedError, 402),
            (GenerationFailureError, 500),
            (ConfigurationError, 500),
        ],
    )
    def test_status_codes(
        self, error_cls: type[AnalysisError], status: int
    ) -> None:
        err = error_cls()
        assert err.status_code == status
        assert isinstance(err, AnalysisError)
        assert err.message

    def test_default_message(self) -> None:
        assert InvalidInputError().message == "Please provide owner and repo"

    def test_message_override(self) -> None:
        err = InvalidInputError("bad reference")
        assert err.message == "bad reference"
        assert str(err) == "bad reference"

    def test_not_found_message(self) -> None:
        err = RepositoryNotFoundError("foo", "bar")
        assert err.status_code == 404
        assert err.owner == "foo"
        assert err.repo == "bar"
        assert err.message == "Repository foo/bar not found or inaccessible."


class TestGenerationStatusMapping:
    def test_rate_limited(self) -> None:
        assert isinstance(error_for_generation_status(429), RateLimitedError)

    def test_quota(self) -> None:
        assert isinstance(
            error_for_generation_status(402), QuotaExhaustedError
        )

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 500, 502, 503])
    def test_everything_else_is_generic(self, status: int) -> None:
        err = error_for_generation_status(status)
        assert type(err) is GenerationFailureError
        assert err.message == "AI analysis failed."
