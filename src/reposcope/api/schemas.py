"""Request/response schemas for the HTTP API."""

from pydantic import BaseModel


class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze-repo.

    Both fields are optional at the schema level so that a missing
    field is reported with the endpoint's own 400 message instead of
    FastAPI's generic 422.
    """

    owner: str | None = None
    repo: str | None = None


class ErrorResponse(BaseModel):
    """Body of every non-streaming error response."""

    error: str
