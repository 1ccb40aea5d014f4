"""Pydantic models for the RAG (Retrieval-Augmented Generation) layer.

Defines the indexed chunk, the per-query search result, query analysis,
the answer envelope with its cited sources, and the events emitted by a
streamed answer.  All models are frozen.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Chunk: one indexed passage of a document.
# ---------------------------------------------------------------------------


class Chunk(BaseModel):
    """A bounded slice of a document's text with its embedding vector."""

    model_config = ConfigDict(frozen=True)

    document_id: int = Field(description="Id of the owning document in the store.")
    chunk_index: int = Field(ge=0, description="Position within the document, from 0.")
    content: str = Field(description="The passage text.")
    embedding: list[float] = Field(description="Embedding vector for the passage.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk content must not be empty")
        return value


# ---------------------------------------------------------------------------
# SearchResult: a chunk returned from a similarity query.
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    """A chunk returned from a similarity search, with its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    chunk_index: int
    content: str
    similarity: float = Field(ge=-1.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# IndexStats: summary of the vector index.
# ---------------------------------------------------------------------------


class IndexStats(BaseModel):
    """Summary statistics for the vector index."""

    model_config = ConfigDict(frozen=True)

    total_chunks: int = 0
    total_documents: int = 0
    dimension: int | None = None


# ---------------------------------------------------------------------------
# Query side.
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    """One message of a chat-completion prompt."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class QueryAnalysis(BaseModel):
    """Intent, key entities and confidence extracted from a raw query."""

    model_config = ConfigDict(frozen=True)

    intent: str = "search_docs"
    entities: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


DEFAULT_ANALYSIS = QueryAnalysis()


class QueryFilters(BaseModel):
    """Optional restrictions applied to retrieved passages."""

    model_config = ConfigDict(frozen=True)

    source_types: list[str] | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class SourceRef(BaseModel):
    """A cited source in an answer."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str | None = None
    type: str
    relevance: float
    snippet: str


class RAGResponse(BaseModel):
    """A generated answer with its cited sources and a confidence score."""

    model_config = ConfigDict(frozen=True)

    answer: str
    sources: list[SourceRef] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)


class StreamEventKind(str, Enum):  # noqa: UP042
    SOURCES = "sources"
    CONTENT = "content"


class StreamEvent(BaseModel):
    """One item of a streamed answer.

    The first event of every stream is ``sources`` (payload: the cited
    sources); every later event is ``content`` (payload: a text delta).
    """

    model_config = ConfigDict(frozen=True)

    kind: StreamEventKind
    payload: Union[list[SourceRef], str]

    @classmethod
    def sources(cls, sources: list[SourceRef]) -> StreamEvent:
        return cls(kind=StreamEventKind.SOURCES, payload=list(sources))

    @classmethod
    def content(cls, text: str) -> StreamEvent:
        return cls(kind=StreamEventKind.CONTENT, payload=text)
