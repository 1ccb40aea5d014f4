"""Unit tests for the CLI module inframind.cli.ingest."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from inframind.cli.ingest import (
    _build_parser,
    _collect_files,
    _handle_ingest,
    _handle_query,
    _ingest_paths,
    main,
)
from inframind.config.settings import Settings
from inframind.services.ingestion.chunker import TextChunker
from inframind.services.ingestion.document_processor import DocumentProcessor
from inframind.services.ingestion.job_tracker import IngestionJobTracker
from inframind.services.knowledge_base import KnowledgeBase
from inframind.services.rag_orchestrator import RAGOrchestrator
from tests.conftest import FakeEmbeddingProvider, FakeLLMProvider


@pytest.fixture
def components(embedding_provider, vector_index, llm, query_analyzer, document_store) -> dict:
    tracker = IngestionJobTracker(
        processor=DocumentProcessor(),
        chunker=TextChunker(),
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        document_store=document_store,
    )
    orchestrator = RAGOrchestrator(
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        llm=llm,
        query_analyzer=query_analyzer,
        document_store=document_store,
    )
    return {
        "knowledge_base": KnowledgeBase(
            job_tracker=tracker,
            orchestrator=orchestrator,
            vector_index=vector_index,
            document_store=document_store,
        ),
        "provider_registry": {"llm": "fake-llm", "embedding": "fake-embedding"},
    }


@pytest.fixture
def docs_dir(tmp_path: Path, sample_markdown: bytes) -> Path:
    (tmp_path / "runbooks").mkdir()
    (tmp_path / "runbooks" / "db.md").write_bytes(sample_markdown)
    (tmp_path / "runbooks" / "notes.txt").write_text("Rotate TLS certificates every 90 days.")
    (tmp_path / "runbooks" / "diagram.png").write_bytes(b"\x89PNG")
    return tmp_path / "runbooks"


# ======================================================================
# Argument parsing and file collection
# ======================================================================


class TestParser:
    def test_ingest_defaults(self) -> None:
        args = _build_parser().parse_args(["ingest", "docs/"])
        assert args.command == "ingest"
        assert args.paths == ["docs/"]
        assert args.source_type == "upload"

    def test_query_flags(self) -> None:
        args = _build_parser().parse_args(["query", "who owns dns?", "--stream", "--docs", "a.md", "b.md"])
        assert args.text == "who owns dns?"
        assert args.stream is True
        assert args.docs == ["a.md", "b.md"]

    def test_no_command_prints_help_and_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1


class TestCollectFiles:
    def test_directory_contributes_supported_files_only(self, docs_dir: Path) -> None:
        assert [p.name for p in _collect_files([str(docs_dir)])] == ["db.md", "notes.txt"]

    def test_explicit_file_kept_even_if_unsupported(self, docs_dir: Path) -> None:
        assert [p.name for p in _collect_files([str(docs_dir / "diagram.png")])] == ["diagram.png"]

    def test_missing_path_warns(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _collect_files([str(tmp_path / "absent")]) == []
        assert "does not exist" in capsys.readouterr().err


# ======================================================================
# Subcommand handlers
# ======================================================================


class TestIngestPaths:
    @pytest.mark.asyncio
    async def test_ingest_directory(
        self, components: dict, docs_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = await _ingest_paths(components, [str(docs_dir)], "upload")

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Ingesting 2 file(s) as 'upload'" in out
        assert "Status:     completed" in out
        assert "Processed:  2/2" in out

    @pytest.mark.asyncio
    async def test_errors_listed(
        self, components: dict, docs_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = await _ingest_paths(
            components, [str(docs_dir / "db.md"), str(docs_dir / "diagram.png")], "upload"
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Status:     failed" in out
        assert "- diagram.png: Unsupported file type: png" in out

    @pytest.mark.asyncio
    async def test_nothing_to_ingest(
        self, components: dict, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = await _ingest_paths(components, [str(tmp_path / "absent")], "upload")

        assert exit_code == 1
        assert "no files to ingest" in capsys.readouterr().err


class TestHandleQuery:
    @pytest.mark.asyncio
    async def test_query_with_docs_prints_answer_and_sources(
        self, components: dict, docs_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = Namespace(text="database outage", stream=False, docs=[str(docs_dir / "db.md")])

        with patch("inframind.cli.ingest._build_components", AsyncMock(return_value=components)):
            exit_code = await _handle_query(args, Settings())

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Restart the primary, then fail over." in out
        assert "[1] Database Outage Runbook (upload," in out
        assert "Confidence:" in out

    @pytest.mark.asyncio
    async def test_streamed_query_without_sources(
        self, components: dict, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = Namespace(text="anything", stream=True, docs=[])

        with patch("inframind.cli.ingest._build_components", AsyncMock(return_value=components)):
            exit_code = await _handle_query(args, Settings())

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Sources: none above the relevance threshold" in out
        assert "Restart the primary." in out


class TestSeparateRuns:
    @pytest.mark.asyncio
    async def test_query_run_sees_chunks_from_earlier_ingest_run(
        self, tmp_path: Path, docs_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        app_settings = Settings(document_db_path=str(tmp_path / "kb.db"))

        with (
            patch("inframind.main._build_llm_provider", return_value=FakeLLMProvider()),
            patch("inframind.main._build_embedding_provider", return_value=FakeEmbeddingProvider()),
        ):
            ingest_code = await _handle_ingest(
                Namespace(paths=[str(docs_dir / "db.md")], source_type="upload"), app_settings
            )
            capsys.readouterr()
            query_code = await _handle_query(
                Namespace(text="database outage", stream=False, docs=[]), app_settings
            )

        out = capsys.readouterr().out
        assert (ingest_code, query_code) == (0, 0)
        assert "[1] Database Outage Runbook (upload," in out
        assert "none above the relevance threshold" not in out
