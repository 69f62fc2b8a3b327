"""Shared test fixtures: fake upstream services, app wiring and wire helpers."""

import os

# Never reach a real generation service from tests.
os.environ["AI_GATEWAY_API_KEY"] = "for-demo-purposes-only"

import json
from collections.abc import Callable
from typing import Any

import httpx

from reposcope.api.app_state import AppState
from reposcope.config import Settings
from reposcope.main import app

type Reply = httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]

REPO_JSON: dict[str, Any] = {
    "stargazers_count": 1200,
    "forks_count": 85,
    "open_issues_count": 17,
    "language": "Python",
    "license": {"spdx_id": "MIT"},
    "updated_at": "2026-09-30T12:00:00Z",
    "description": "A tiny web framework",
    "topics": ["web", "asgi"],
}

ISSUES_JSON: list[dict[str, Any]] = [
    {
        "title": "Docs typo in quickstart",
        "labels": [{"name": "good first issue"}, {"name": "docs"}],
        "state": "open",
        "comments": 2,
        "html_url": "https://github.com/foo/bar/issues/1",
    },
    {
        "title": "Crash on empty body",
        "labels": [],
        "state": "open",
        "comments": 0,
        "html_url": "https://github.com/foo/bar/issues/2",
    },
]

README_TEXT = "# bar\n\nA tiny web framework.\n"


def sse_line(content: str | None = None) -> str:
    """One ``data:`` frame line carrying a content delta."""
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    return "data: " + json.dumps({"choices": [{"delta": delta}]}) + "\n"


def sse_body(*deltas: str, done: bool = True) -> bytes:
    """Wire bytes for a generation stream emitting ``deltas`` in order."""
    text = "".join(sse_line(d) for d in deltas)
    if done:
        text += "data: [DONE]\n\n"
    return text.encode("utf-8")


def _resolve(reply: Reply, request: httpx.Request) -> httpx.Response:
    if isinstance(reply, Exception):
        raise reply
    if callable(reply):
        return reply(request)
    return reply


class FakeGitHub:
    """MockTransport handler for the three repository endpoints."""

    def __init__(
        self,
        *,
        stats: Reply | None = None,
        readme: Reply | None = None,
        issues: Reply | None = None,
    ) -> None:
        if stats is None:
            stats = httpx.Response(200, json=REPO_JSON)
        if readme is None:
            readme = httpx.Response(200, text=README_TEXT)
        if issues is None:
            issues = httpx.Response(200, json=ISSUES_JSON)
        self.stats = stats
        self.readme = readme
        self.issues = issues
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/readme"):
            return _resolve(self.readme, request)
        if path.endswith("/issues"):
            return _resolve(self.issues, request)
        return _resolve(self.stats, request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self),
            base_url="https://api.github.test",
        )


class FakeGateway:
    """MockTransport handler for the chat-completions endpoint."""

    def __init__(self, reply: Reply | None = None) -> None:
        if reply is None:
            reply = httpx.Response(
                200,
                headers={"Content-Type": "text/event-stream"},
                content=sse_body("Hello"),
            )
        self.reply = reply
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return _resolve(self.reply, request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "ai_gateway_api_key": "test-key",
        "ai_gateway_url": "https://gateway.test/v1/chat/completions",
        "ai_model": "test/model",
    }
    values.update(overrides)
    return Settings(**values)


def setup_test_app(
    github: FakeGitHub,
    gateway: FakeGateway,
    settings: Settings | None = None,
) -> AppState:
    """Install fake upstream clients on the app (lifespan does not run under ASGITransport)."""
    state = AppState(
        settings=settings or make_settings(),
        github_client=github.client(),
        generation_client=gateway.client(),
    )
    app.state.typed = state
    return state
