"""Pydantic models for the collected repository data."""

from pydantic import BaseModel, ConfigDict, Field


class RepositoryStats(BaseModel):
    """Repository metadata. Its presence is the proxy for "repository exists"."""

    model_config = ConfigDict(frozen=True)

    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    language: str | None = None
    license: str = "None"  # SPDX id
    last_updated: str | None = None
    description: str | None = None
    topics: tuple[str, ...] = ()


class IssueSummary(BaseModel):
    """One open issue, in the order the API returned it."""

    model_config = ConfigDict(frozen=True)

    title: str
    labels: tuple[str, ...] = ()
    state: str = "open"
    comments: int = 0
    url: str = ""


class RepositorySnapshot(BaseModel):
    """Joined collector output handed to the prompt assembler."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    stats: RepositoryStats
    readme: str = ""  # empty when the source was unavailable
    issues: tuple[IssueSummary, ...] = Field(default=())
