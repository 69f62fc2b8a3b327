"""Concurrent collection of repository stats, README and open issues.

The three sources are fetched as independent tasks and joined with
per-task result capture: one failing source never aborts the others.
Stats are load-bearing (their absence means the repository does not
exist); README and issues are enrichments that degrade to empty
defaults.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from reposcope.constants import (
    ERROR_TRUNCATION_CHARS,
    GITHUB_JSON_ACCEPT,
    GITHUB_RAW_ACCEPT,
    MAX_ISSUES,
    NO_LICENSE,
    README_MAX_CHARS,
    UpstreamSource,
)
from reposcope.ingestion.schemas import (
    IssueSummary,
    RepositorySnapshot,
    RepositoryStats,
)
from reposcope.resilience.errors import RepositoryNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _repo_path(owner: str, repo: str) -> str:
    return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


def truncate_readme(text: str) -> str:
    """Prefix-truncate README text to README_MAX_CHARS."""
    return text[:README_MAX_CHARS]


def parse_stats(data: Any) -> RepositoryStats:
    """Build stats from a ``GET /repos/{owner}/{repo}`` body.

    Raises ValueError on a body that is not a repository object.
    """
    if not isinstance(data, dict):
        raise ValueError("repository body is not an object")
    license_info = data.get("license") or {}
    return RepositoryStats(
        stars=data.get("stargazers_count") or 0,
        forks=data.get("forks_count") or 0,
        open_issues=data.get("open_issues_count") or 0,
        language=data.get("language"),
        license=license_info.get("spdx_id") or NO_LICENSE,
        last_updated=data.get("updated_at"),
        description=data.get("description"),
        topics=tuple(data.get("topics") or ()),
    )


def parse_issues(data: Any) -> list[IssueSummary]:
    """Build issue summaries from a ``GET .../issues`` body, capped at MAX_ISSUES."""
    if not isinstance(data, list):
        raise ValueError("issues body is not a list")
    return [
        IssueSummary(
            title=item.get("title") or "",
            labels=tuple(
                label["name"]
                for label in item.get("labels") or ()
                if isinstance(label, dict) and label.get("name")
            ),
            state=item.get("state") or "open",
            comments=item.get("comments") or 0,
            url=item.get("html_url") or "",
        )
        for item in data[:MAX_ISSUES]
    ]


async def fetch_stats(
    client: httpx.AsyncClient, owner: str, repo: str
) -> RepositoryStats:
    resp = await client.get(
        _repo_path(owner, repo),
        headers={"Accept": GITHUB_JSON_ACCEPT},
    )
    resp.raise_for_status()
    return parse_stats(resp.json())


async def fetch_readme(
    client: httpx.AsyncClient, owner: str, repo: str
) -> str:
    resp = await client.get(
        f"{_repo_path(owner, repo)}/readme",
        headers={"Accept": GITHUB_RAW_ACCEPT},
    )
    resp.raise_for_status()
    return truncate_readme(resp.text)


async def fetch_issues(
    client: httpx.AsyncClient, owner: str, repo: str
) -> list[IssueSummary]:
    resp = await client.get(
        f"{_repo_path(owner, repo)}/issues",
        params={"state": "open", "per_page": MAX_ISSUES},
        headers={"Accept": GITHUB_JSON_ACCEPT},
    )
    resp.raise_for_status()
    return parse_issues(resp.json())


async def _settle(
    source: UpstreamSource, awaitable: Awaitable[T]
) -> T | None:
    """Await one source; any failure becomes ``None`` for that source alone."""
    try:
        return await awaitable
    except Exception as exc:
        logger.warning(
            "event=upstream_unavailable source=%s reason=%s",
            source.value,
            str(exc)[:ERROR_TRUNCATION_CHARS] or type(exc).__name__,
        )
        return None


async def collect_repository(
    client: httpx.AsyncClient, owner: str, repo: str
) -> RepositorySnapshot:
    """Fetch all three sources concurrently and join the settled results.

    Raises RepositoryNotFoundError when the stats source is unavailable.
    """
    stats, readme, issues = await asyncio.gather(
        _settle(UpstreamSource.STATS, fetch_stats(client, owner, repo)),
        _settle(
            UpstreamSource.README, fetch_readme(client, owner, repo)
        ),
        _settle(
            UpstreamSource.ISSUES, fetch_issues(client, owner, repo)
        ),
    )

    if stats is None:
        raise RepositoryNotFoundError(owner, repo)

    logger.info(
        "event=repository_collected repo=%s/%s readme_chars=%d issues=%d",
        owner,
        repo,
        len(readme or ""),
        len(issues or ()),
    )
    return RepositorySnapshot(
        owner=owner,
        repo=repo,
        stats=stats,
        readme=readme or "",
        issues=tuple(issues or ()),
    )
