"""CLI entry point: ``reposcope serve`` and ``reposcope analyze``."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from typing import TextIO

import httpx

from reposcope import __version__
from reposcope.client import (
    AnalysisRequestError,
    AnalysisSession,
    parse_repo_reference,
)
from reposcope.config import Settings
from reposcope.logging_config import setup_logging
from reposcope.resilience.errors import InvalidInputError
from reposcope.streaming.segmenter import Section


def main() -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"reposcope {__version__}")
        return

    if args.command == "serve":
        _run_serve(args)
    elif args.command == "analyze":
        sys.exit(_run_analyze(args))
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reposcope",
        description=(
            "Streamed AI structural reports"
            " for public GitHub repositories."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Start the HTTP API")
    serve.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port (default: 8000)",
    )
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development)",
    )

    analyze = sub.add_parser(
        "analyze",
        help="Analyze a repository through a running server",
    )
    analyze.add_argument(
        "repository",
        type=str,
        help="owner/repo or GitHub URL",
    )
    analyze.add_argument(
        "--server",
        default=None,
        help="Server base URL (default: API_BASE_URL setting)",
    )
    analyze.add_argument(
        "--format",
        "-f",
        choices=["markdown", "json"],
        default="markdown",
        help=(
            "markdown streams the report as it is written;"
            " json prints the final sections"
        ),
    )
    analyze.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def _run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run(
        "reposcope.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


class _LivePrinter:
    """Writes only the newly appended part of the report on each update."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._written = 0

    def __call__(self, report: str, sections: list[Section]) -> None:
        self._out.write(report[self._written:])
        self._out.flush()
        self._written = len(report)


def sections_to_json(sections: list[Section]) -> str:
    return json.dumps(
        [asdict(s) for s in sections], ensure_ascii=False, indent=2
    )


def _run_analyze(args: argparse.Namespace) -> int:
    settings = Settings()
    setup_logging("DEBUG" if args.verbose else "WARNING")

    try:
        owner, repo = parse_repo_reference(args.repository)
    except InvalidInputError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2

    live = args.format == "markdown"
    base_url = args.server or settings.api_base_url

    async def _analyze() -> list[Section]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(None, connect=30.0)
        ) as client:
            session = AnalysisSession(
                client,
                base_url,
                on_update=_LivePrinter(sys.stdout) if live else None,
            )
            await session.analyze(owner, repo)
            return session.sections

    try:
        sections = asyncio.run(_analyze())
    except AnalysisRequestError as exc:
        print(f"Error ({exc.status_code}): {exc.message}", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"Error: could not reach {base_url}: {exc}", file=sys.stderr)
        return 1

    if live:
        print()
    else:
        print(sections_to_json(sections))
    return 0


if __name__ == "__main__":
    main()
