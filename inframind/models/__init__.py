"""InfraMind domain models — re-exports all public model classes.

The models are organized by domain concern:
    - document.py   — Stored documents and the items fed to ingestion
    - ingestion.py  — Ingestion job state machine
    - rag.py        — Indexed chunks, search results, answers and stream events
"""

from __future__ import annotations

from inframind.models.document import (
    ConnectorPayload,
    Document,
    DocumentCreate,
    IngestionItem,
    ProcessedDocument,
    SourceType,
    UploadedFile,
)
from inframind.models.ingestion import IngestionJob, ItemOutcome, JobKind, JobStatus
from inframind.models.rag import (
    DEFAULT_ANALYSIS,
    ChatMessage,
    Chunk,
    IndexStats,
    QueryAnalysis,
    QueryFilters,
    RAGResponse,
    SearchResult,
    SourceRef,
    StreamEvent,
    StreamEventKind,
)

__all__ = [
    "DEFAULT_ANALYSIS",
    "ChatMessage",
    "Chunk",
    "ConnectorPayload",
    "Document",
    "DocumentCreate",
    "IndexStats",
    "IngestionItem",
    "IngestionJob",
    "ItemOutcome",
    "JobKind",
    "JobStatus",
    "ProcessedDocument",
    "QueryAnalysis",
    "QueryFilters",
    "RAGResponse",
    "SearchResult",
    "SourceRef",
    "SourceType",
    "StreamEvent",
    "StreamEventKind",
    "UploadedFile",
]
