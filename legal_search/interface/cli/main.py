"""CLI for legal search: query the index from a shell, or run the HTTP server.

Prints the same JSON bodies the HTTP API returns.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from legal_search.application.dto.search_dto import QAQuery
from legal_search.config.compose import Container, build_container
from legal_search.config.logging import configure_logging
from legal_search.config.settings import AppSettings
from legal_search.domain.errors import DomainError
from legal_search.domain.models import Filters, SearchQuery
from legal_search.interface.http.schemas import (
    DiscoveryModel,
    QAResponseModel,
    SearchResponseModel,
    SynthesisResponseModel,
)


def _filters(args: argparse.Namespace) -> Filters:
    return Filters.from_mapping(
        {
            "court_name": args.court_name,
            "city": args.city,
            "court_type": args.court_type,
            "content_type": args.content_type,
            "legal_category": args.legal_category,
            "decision_id": args.decision_id,
        }
    )


def _emit(body: dict[str, Any]) -> None:
    print(json.dumps(body, ensure_ascii=False, indent=2))


async def cmd_search(args: argparse.Namespace, container: Container) -> int:
    """Hybrid search (or synthesis with --synthesis)."""
    query = SearchQuery(
        query_text=args.query,
        limit=args.limit,
        filters=_filters(args),
        use_hybrid=not args.dense_only,
    )
    if args.synthesis:
        synthesis = await container.get_synthesis_use_case().execute(query)
        if not synthesis.ok:
            return _fail(synthesis.error)
        assert synthesis.value is not None
        _emit(SynthesisResponseModel.from_dto(synthesis.value).to_body())
        return 0

    result = await container.get_search_use_case().execute(query)
    if not result.ok:
        return _fail(result.error)
    assert result.value is not None
    _emit(SearchResponseModel.from_dto(result.value).to_body())
    return 0


async def cmd_qa(args: argparse.Namespace, container: Container) -> int:
    req = QAQuery(
        question=args.question,
        filters=_filters(args),
        limit=args.limit,
        score_threshold=args.threshold,
    )
    result = await container.get_qa_use_case().execute(req)
    if not result.ok:
        return _fail(result.error)
    assert result.value is not None
    _emit(QAResponseModel.from_dto(result.value).to_body())
    return 0


async def cmd_facets(args: argparse.Namespace, container: Container) -> int:
    try:
        data = await container.get_facet_cache().get()
    except DomainError as ex:
        return _fail(ex)
    _emit(DiscoveryModel.from_dto(data).to_body())
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "legal_search.interface.http.api:app",
        host=args.host,
        port=args.port,
        workers=args.workers,
        log_config=None,  # structlog owns logging
    )
    return 0


def _fail(error: BaseException | None) -> int:
    print(f"✗ {type(error).__name__}: {error}", file=sys.stderr)
    return 1


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    group = p.add_argument_group("filters (ANDed, exact match)")
    for name in ("court-name", "city", "court-type", "content-type", "legal-category"):
        group.add_argument(f"--{name}")
    group.add_argument("--decision-id")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="legal-search",
        description="Hybrid search over judicial decisions",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # search
    p_search = subparsers.add_parser("search", help="Search decision chunks")
    p_search.add_argument("query", help="Query text")
    p_search.add_argument("--limit", type=int, default=10, help="Results (1-100, default: 10)")
    p_search.add_argument("--dense-only", action="store_true", help="Skip sparse path and fusion")
    p_search.add_argument("--synthesis", action="store_true", help="Aggregate top results")
    _add_filter_args(p_search)

    # qa
    p_qa = subparsers.add_parser("qa", help="Match a question against Q&A pairs")
    p_qa.add_argument("question", help="Question text")
    p_qa.add_argument("--limit", type=int, default=10, help="Results (1-50, default: 10)")
    p_qa.add_argument("--threshold", type=float, default=0.7, help="Minimum score (default: 0.7)")
    _add_filter_args(p_qa)

    # facets
    subparsers.add_parser("facets", help="Print discovery facets")

    # serve
    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.add_argument("--workers", type=int, default=1)

    return parser


Command = Callable[[argparse.Namespace, Container], Awaitable[int]]
COMMANDS: dict[str, Command] = {"search": cmd_search, "qa": cmd_qa, "facets": cmd_facets}


async def _run(command: Command, args: argparse.Namespace, container: Container) -> int:
    try:
        return await command(args, container)
    finally:
        await container.aclose()


def main(argv: list[str] | None = None, container: Container | None = None) -> int:
    """Main CLI entry point with subcommands.

    Returns:
        Exit code (0=success, 1=failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "serve":
        # the app builds its own container at startup
        return cmd_serve(args)

    try:
        settings = container.settings if container is not None else AppSettings()
        # stdout carries only the JSON body
        configure_logging(settings.log_level, settings.log_json)
        if container is None:
            container = build_container(settings)
        return asyncio.run(_run(COMMANDS[args.command], args, container))
    except DomainError as ex:
        # configuration and invalid filter arguments
        return _fail(ex)


if __name__ == "__main__":
    sys.exit(main())
