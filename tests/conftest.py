"""Shared pytest fixtures for the InfraMind test suite.

Providers that would call external services are replaced by small
in-process fakes implementing the same interfaces, so ingestion and RAG
tests exercise the real tracker / orchestrator / index code end to end.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

import pytest

from inframind.interfaces.document_store import IDocumentStore
from inframind.interfaces.embedding_provider import IEmbeddingProvider
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.interfaces.query_analyzer import IQueryAnalyzer
from inframind.models.document import Document, DocumentCreate
from inframind.models.rag import ChatMessage, Chunk, QueryAnalysis
from inframind.providers.vector_index.memory_vector_index import InMemoryVectorIndex
from inframind.utils.errors import EmbeddingError, StoreError

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def unit_vector_with_similarity(similarity: float) -> list[float]:
    """Return a 2-d vector whose cosine with ``[1, 0]`` is *similarity*."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity))]


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings: explicit per-text vectors, else a default.

    Texts containing any substring in ``fail_on`` raise ``EmbeddingError``.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        fail_on: tuple[str, ...] = (),
    ) -> None:
        self.vectors = dict(vectors or {})
        self.default = default or [1.0, 0.0]
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise EmbeddingError(message="embedding backend rejected input", provider_name="fake")
        return list(self.vectors.get(text, self.default))

    def get_dimension(self) -> int:
        return len(self.default)

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


class FakeLLMProvider(ILLMProvider):
    """Records prompts; returns a canned answer or canned stream deltas."""

    def __init__(
        self,
        answer: str = "Restart the primary, then fail over.",
        deltas: tuple[str, ...] = ("Restart ", "the primary", "."),
        error: Exception | None = None,
    ) -> None:
        self.answer = answer
        self.deltas = deltas
        self.error = error
        self.generate_calls: list[list[ChatMessage]] = []
        self.stream_calls: list[list[ChatMessage]] = []
        self.stream_closed = False
        self.deltas_sent = 0

    async def generate(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        self.generate_calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.answer

    def stream(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ):
        self.stream_calls.append(list(messages))
        return self._stream()

    async def _stream(self):
        try:
            for delta in self.deltas:
                self.deltas_sent += 1
                yield delta
            if self.error is not None:
                raise self.error
        finally:
            self.stream_closed = True

    def get_provider_name(self) -> str:
        return "fake-llm"

    def is_available(self) -> bool:
        return True


class FakeQueryAnalyzer(IQueryAnalyzer):
    def __init__(self, analysis: QueryAnalysis | None = None, error: Exception | None = None) -> None:
        self.analysis = analysis or QueryAnalysis(
            intent="find_runbook", entities=["database", "outage"], confidence=0.9
        )
        self.error = error
        self.calls: list[str] = []

    async def analyze(self, query: str) -> QueryAnalysis:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.analysis


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed IDocumentStore with the same id and ordering semantics as SQLite."""

    def __init__(self) -> None:
        self.documents: dict[int, Document] = {}
        self.conversations: dict[int, str] = {}
        self.messages: list[dict[str, Any]] = []
        self.chunks: list[Chunk] = []
        self.fail_messages = False

    async def initialize(self) -> None:
        return None

    async def create_document(self, doc: DocumentCreate) -> Document:
        document = Document(id=len(self.documents) + 1, **doc.model_dump())
        self.documents[document.id] = document
        return document

    async def get_document(self, document_id: int) -> Document | None:
        return self.documents.get(document_id)

    async def list_documents(self, source_type: str | None = None) -> list[Document]:
        return [
            d
            for d in reversed(self.documents.values())
            if source_type is None or d.source_type == source_type
        ]

    async def count_documents(self) -> int:
        return len(self.documents)

    async def create_conversation(self, title: str) -> int:
        conversation_id = len(self.conversations) + 1
        self.conversations[conversation_id] = title
        return conversation_id

    async def add_message(
        self,
        conversation_id: int,
        role: str,
        content: str,
        sources: list[dict[str, Any]] | None = None,
    ) -> int:
        if self.fail_messages or conversation_id not in self.conversations:
            raise StoreError(message=f"Conversation {conversation_id} does not exist")
        self.messages.append(
            {
                "id": len(self.messages) + 1,
                "conversation_id": conversation_id,
                "role": role,
                "content": content,
                "sources": sources,
                "created_at": datetime.now(tz=timezone.utc).isoformat(),
            }
        )
        return len(self.messages)

    async def get_messages(self, conversation_id: int) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["conversation_id"] == conversation_id]

    async def save_chunks(self, chunks: list[Chunk]) -> None:
        self.chunks.extend(chunks)

    async def list_chunks(self) -> list[Chunk]:
        return sorted(self.chunks, key=lambda c: (c.document_id, c.chunk_index))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def query_analyzer() -> FakeQueryAnalyzer:
    return FakeQueryAnalyzer()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def vector_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()


@pytest.fixture
def make_chunk():
    """Factory for index-ready chunks."""

    def _make(
        document_id: int,
        chunk_index: int = 0,
        embedding: list[float] | None = None,
        content: str | None = None,
    ) -> Chunk:
        return Chunk(
            document_id=document_id,
            chunk_index=chunk_index,
            content=content or f"Passage {chunk_index} of document {document_id}.",
            embedding=embedding or [1.0, 0.0],
        )

    return _make


@pytest.fixture
def sample_markdown() -> bytes:
    return (
        b"# Database Outage Runbook\n\n"
        b"When the primary database stops accepting writes, page the on-call DBA. "
        b"Check replication lag on every replica before promoting one. "
        b"**Never** promote a replica that is more than 30 seconds behind.\n\n"
        b"- Promote the healthiest replica\n"
        b"- Point the [connection pooler](https://wiki.example.com/pgbouncer) at it\n"
    )

