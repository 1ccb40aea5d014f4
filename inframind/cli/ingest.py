"""Standalone CLI for ingesting documents into and querying InfraMind.

Usage::

    python -m inframind.cli ingest docs/runbooks/ notes.md --source-type upload

    python -m inframind.cli query "database outage runbook" --docs docs/runbooks/

    python -m inframind.cli query "how do we rotate TLS certs?" --stream

    python -m inframind.cli status

Documents and their embedded chunks persist in the SQLite store
(``DOCUMENT_DB_PATH``); every command rebuilds the in-memory vector index
from it, so ``query`` sees everything earlier ``ingest`` runs stored.
``--docs`` ingests extra files just before asking.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from inframind.config.loader import apply_config, load_config
from inframind.config.settings import Settings
from inframind.models.document import UploadedFile
from inframind.models.rag import StreamEventKind
from inframind.services.ingestion.source_processors.file_processor import SUPPORTED_EXTENSIONS
from inframind.utils.errors import InfraMindError


def _collect_files(paths: list[str]) -> list[Path]:
    """Expand *paths* into files; directories contribute their supported files, recursively."""
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(
                sorted(
                    p
                    for p in path.rglob("*")
                    if p.is_file() and p.suffix.lstrip(".").lower() in SUPPORTED_EXTENSIONS
                )
            )
        elif path.is_file():
            files.append(path)
        else:
            print(f"Warning: {raw} does not exist, skipping", file=sys.stderr)
    return files


def _load_items(paths: list[str]) -> list[UploadedFile]:
    return [
        UploadedFile(filename=f.name, content=f.read_bytes(), metadata={"path": str(f)})
        for f in _collect_files(paths)
    ]


async def _build_components(app_settings: Settings) -> dict[str, Any]:
    # Deferred so ``--help`` does not construct the web app.
    from inframind.main import _build_all

    components = _build_all(app_settings)
    await components["document_store"].initialize()
    await components["knowledge_base"].restore_index()
    return components


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _ingest_paths(components: dict[str, Any], paths: list[str], source_type: str) -> int:
    items = _load_items(paths)
    if not items:
        print("Error: no files to ingest.", file=sys.stderr)
        return 1

    kb = components["knowledge_base"]
    print(f"Ingesting {len(items)} file(s) as '{source_type}'...")
    job = kb.job_status(await kb.ingest(items, source_type=source_type))

    print("\nIngestion finished:")
    print(f"  Job:        {job.id}")
    print(f"  Status:     {job.status.value}")
    print(f"  Processed:  {job.processed_items}/{job.total_items}")
    if job.errors:
        print(f"  Errors ({len(job.errors)}):")
        for error in job.errors:
            print(f"    - {error}")
    return 0 if job.processed_items else 1


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    components = await _build_components(app_settings)
    return await _ingest_paths(components, args.paths, args.source_type)


async def _handle_query(args: argparse.Namespace, app_settings: Settings) -> int:
    components = await _build_components(app_settings)
    kb = components["knowledge_base"]

    if args.docs:
        exit_code = await _ingest_paths(components, args.docs, "upload")
        if exit_code:
            return exit_code
        print()

    if args.stream:
        async for event in kb.query_stream(args.text):
            if event.kind is StreamEventKind.SOURCES:
                _print_sources(event.payload)
                print()
            else:
                print(event.payload, end="", flush=True)
        print()
        return 0

    response = await kb.query(args.text)
    print(response.answer)
    print()
    _print_sources(response.sources)
    print(f"\nConfidence: {response.confidence:.0%}")
    return 0


async def _handle_status(app_settings: Settings) -> int:
    components = await _build_components(app_settings)
    kb = components["knowledge_base"]
    stats = await kb.index_stats()

    print("InfraMind Status")
    print("=" * 40)
    print(f"  LLM provider:        {components['provider_registry']['llm']}")
    print(f"  Embedding provider:  {components['provider_registry']['embedding']}")
    print(f"  Stored documents:    {await kb.document_count()}")
    print(f"  Indexed chunks:      {stats.total_chunks}")
    print(f"  Document store:      {app_settings.document_db_path}")
    return 0


def _print_sources(sources: list) -> None:
    if not sources:
        print("Sources: none above the relevance threshold")
        return
    print("Sources:")
    for i, source in enumerate(sources, start=1):
        location = f" <{source.url}>" if source.url else ""
        print(f"  [{i}] {source.title} ({source.type}, {source.relevance:.0%}){location}")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m inframind.cli",
        description="Ingest documents into and query the InfraMind knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest files or directories")
    ingest_parser.add_argument("paths", nargs="+", help="Files or directories to ingest")
    ingest_parser.add_argument(
        "--source-type",
        default="upload",
        help="Source type label stored on each document (default: upload)",
    )

    # -- query --
    query_parser = subparsers.add_parser("query", help="Ask the knowledge base a question")
    query_parser.add_argument("text", help="The question")
    query_parser.add_argument("--stream", action="store_true", help="Stream the answer")
    query_parser.add_argument(
        "--docs",
        nargs="+",
        default=[],
        help="Files or directories to ingest before asking",
    )

    # -- status --
    subparsers.add_parser("status", help="Show knowledge-base statistics")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse the subcommand and dispatch to its handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    base_settings = Settings()
    app_settings = apply_config(base_settings, load_config(settings=base_settings))

    try:
        if args.command == "ingest":
            exit_code = asyncio.run(_handle_ingest(args, app_settings))
        elif args.command == "query":
            exit_code = asyncio.run(_handle_query(args, app_settings))
        else:
            exit_code = asyncio.run(_handle_status(app_settings))
    except InfraMindError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
