"""Typed application state held on ``app.state.typed``."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from reposcope.config import Settings


@dataclass
class AppState:
    """Typed container for app.state attributes."""

    settings: Settings
    github_client: httpx.AsyncClient
    generation_client: httpx.AsyncClient

    async def aclose(self) -> None:
        await self.github_client.aclose()
        await self.generation_client.aclose()
