"""FastAPI application with lifespan startup."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reposcope import __version__
from reposcope.api.app_state import AppState
from reposcope.api.routes import analyze, health
from reposcope.config import (
    Settings,
    create_generation_client,
    create_github_client,
)
from reposcope.constants import UNKNOWN_ERROR_MESSAGE
from reposcope.logging_config import setup_logging
from reposcope.resilience.errors import AnalysisError

_settings = Settings()
setup_logging(_settings.log_level)

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = _settings
    state = AppState(
        settings=settings,
        github_client=create_github_client(settings),
        generation_client=create_generation_client(settings),
    )
    app.state.typed = state

    # Credential absence is reported per request, not at startup.
    if not settings.ai_gateway_api_key:
        _logger.warning(
            "event=no_generation_api_key action=requests_will_fail"
        )

    yield

    await state.aclose()


app = FastAPI(
    title="reposcope",
    description=(
        "Streams an AI-generated structural report"
        " for a public GitHub repository"
    ),
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origin_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    allow_credentials=False,
)


@app.exception_handler(AnalysisError)
async def _analysis_error_handler(
    request: Request, exc: AnalysisError
) -> JSONResponse:
    _logger.warning(
        "event=analysis_rejected path=%s status=%d error=%s",
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.message}
    )


@app.exception_handler(Exception)
async def _unhandled_error_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    _logger.error(
        "event=unhandled_error path=%s", request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=500, content={"error": UNKNOWN_ERROR_MESSAGE}
    )


# Routes
app.include_router(health.router)
app.include_router(analyze.router)
