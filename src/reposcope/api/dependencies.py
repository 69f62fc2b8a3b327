"""FastAPI dependency injection for shared clients and settings."""

from __future__ import annotations

import httpx
from fastapi import Request

from reposcope.api.app_state import AppState
from reposcope.config import Settings


def get_app_state(request: Request) -> AppState:
    state: AppState = request.app.state.typed
    return state


def get_settings(request: Request) -> Settings:
    return get_app_state(request).settings


def get_github_client(request: Request) -> httpx.AsyncClient:
    return get_app_state(request).github_client


def get_generation_client(request: Request) -> httpx.AsyncClient:
    return get_app_state(request).generation_client
