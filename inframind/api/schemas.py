"""Pydantic request/response schemas for the InfraMind API.

Request schemas end with ``Request`` and response schemas with
``Response``.  FastAPI validates incoming JSON against them (422 on
mismatch) and serialises outgoing bodies through ``response_model``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from inframind.models.document import ConnectorPayload
from inframind.models.ingestion import IngestionJob
from inframind.models.rag import QueryFilters, SourceRef


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class StatusResponse(BaseModel):
    """Knowledge-base statistics and provider availability."""

    total_documents: int
    total_chunks: int
    indexed_documents: int
    embedding_dimension: int | None = None
    jobs: dict[str, int] = Field(default_factory=dict, description="Job counts keyed by status")
    providers: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    """A question for the knowledge base."""

    query: str = Field(..., min_length=1, max_length=4000)
    conversation_id: int | None = None
    filters: QueryFilters | None = None


class QueryResponse(BaseModel):
    """A generated answer with cited sources."""

    answer: str
    sources: list[SourceRef]
    confidence: float = Field(ge=0.0, le=1.0)
    conversation_id: int | None = None


class StreamRequest(BaseModel):
    """A question answered over Server-Sent Events."""

    query: str = Field(..., min_length=1, max_length=4000)
    filters: QueryFilters | None = None


class ConversationCreateRequest(BaseModel):
    title: str = Field(default="New conversation", min_length=1, max_length=200)


class ConversationResponse(BaseModel):
    conversation_id: int
    title: str


class MessageResponse(BaseModel):
    id: int
    role: str
    content: str
    sources: list[dict[str, Any]] | None = None
    created_at: datetime


class ConversationMessagesResponse(BaseModel):
    conversation_id: int
    messages: list[MessageResponse]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class JobCreatedResponse(BaseModel):
    """Returned as soon as an ingestion job is registered."""

    job_id: str
    status: str
    total_items: int


class SourceSyncRequest(BaseModel):
    """Documents handed over by one connector sync run."""

    source_type: str = Field(..., min_length=1)
    items: list[ConnectorPayload] = Field(..., min_length=1)


class JobResponse(BaseModel):
    """Snapshot of one ingestion job."""

    id: str
    kind: str
    source_type: str
    status: str
    total_items: int
    processed_items: int
    progress: int
    errors: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: IngestionJob) -> JobResponse:
        return cls(
            id=job.id,
            kind=job.kind.value,
            source_type=job.source_type,
            status=job.status.value,
            total_items=job.total_items,
            processed_items=job.processed_items,
            progress=job.progress,
            errors=list(job.errors),
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
