"""FastAPI API routes for InfraMind.

REST endpoints for asking questions (blocking and streamed), submitting
documents and connector syncs for ingestion, polling ingestion jobs, and
reading conversation history.  Services are resolved from ``app.state``
via ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                  Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/health                            GET     Liveness + provider names
# /api/v1/status                            GET     Index / store / job statistics
# /api/v1/chat/query                        POST    Ask a question (blocking)
# /api/v1/chat/stream                       POST    Ask a question (SSE stream)
# /api/v1/documents/upload                  POST    Upload files → ingestion job
# /api/v1/sources/sync                      POST    Connector payloads → ingestion job
# /api/v1/jobs                              GET     List ingestion jobs
# /api/v1/jobs/{job_id}                     GET     One ingestion job
# /api/v1/conversations                     POST    Start a conversation
# /api/v1/conversations/{cid}/messages      GET     Conversation history
#
# Ingestion endpoints register a pending job, respond 202 with its id,
# and run it as a BackgroundTask.  Progress is pushed on /ws/jobs/{job_id}.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse

from inframind.api.schemas import (
    ConversationCreateRequest,
    ConversationMessagesResponse,
    ConversationResponse,
    ErrorResponse,
    HealthResponse,
    JobCreatedResponse,
    JobListResponse,
    JobResponse,
    MessageResponse,
    QueryRequest,
    QueryResponse,
    SourceSyncRequest,
    StatusResponse,
    StreamRequest,
)
from inframind.interfaces.document_store import IDocumentStore
from inframind.models.document import UploadedFile
from inframind.models.ingestion import JobKind, JobStatus
from inframind.models.rag import StreamEventKind
from inframind.services.knowledge_base import KnowledgeBase
from inframind.utils.errors import GenerationError, JobNotFoundError
from inframind.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"
_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_knowledge_base(request: Request) -> KnowledgeBase:
    """Return the knowledge-base façade from application state."""
    return request.app.state.knowledge_base


def _get_document_store(request: Request) -> IDocumentStore:
    """Return the document store from application state."""
    return request.app.state.document_store


KnowledgeBaseDep = Annotated[KnowledgeBase, Depends(_get_knowledge_base)]
DocumentStoreDep = Annotated[IDocumentStore, Depends(_get_document_store)]


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return liveness and the names of the configured providers."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    status = "healthy" if providers.get("llm") and providers.get("embedding") else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)


@router.get("/status", response_model=StatusResponse, summary="Knowledge-base statistics")
async def knowledge_base_status(request: Request, kb: KnowledgeBaseDep) -> StatusResponse:
    """Return index/store sizes, job counts by status, and provider availability."""
    stats = await kb.index_stats()
    jobs = {status.value: 0 for status in JobStatus}
    for job in kb.list_jobs():
        jobs[job.status.value] += 1

    return StatusResponse(
        total_documents=await kb.document_count(),
        total_chunks=stats.total_chunks,
        indexed_documents=stats.total_documents,
        embedding_dimension=stats.dimension,
        jobs=jobs,
        providers=dict(getattr(request.app.state, "provider_availability", {})),
    )


# ---------------------------------------------------------------------------
# Chat endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/chat/query",
    response_model=QueryResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Ask the knowledge base a question",
)
async def chat_query(body: QueryRequest, kb: KnowledgeBaseDep) -> QueryResponse:
    """Answer a question with cited sources; 502 if the LLM call fails."""
    try:
        result = await kb.query(
            body.query,
            conversation_id=body.conversation_id,
            filters=body.filters,
        )
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc

    return QueryResponse(
        answer=result.answer,
        sources=result.sources,
        confidence=result.confidence,
        conversation_id=body.conversation_id,
    )


def _sse(data: dict[str, Any] | str) -> str:
    payload = data if isinstance(data, str) else json.dumps(data)
    return f"data: {payload}\n\n"


async def _sse_events(kb: KnowledgeBase, body: StreamRequest) -> AsyncIterator[str]:
    """Adapt the answer stream to Server-Sent Events, ending with ``[DONE]``.

    A generation failure after the response has started is reported as an
    ``error`` event, since the status code has already been sent.
    """
    events = kb.query_stream(body.query, filters=body.filters)
    try:
        async for event in events:
            if event.kind is StreamEventKind.SOURCES:
                yield _sse(
                    {"type": "sources", "sources": [s.model_dump() for s in event.payload]}
                )
            else:
                yield _sse({"type": "content", "content": event.payload})
    except GenerationError as exc:
        _logger.error("stream_generation_failed", error=exc.message)
        yield _sse({"type": "error", "error": type(exc).__name__, "detail": exc.message})
    finally:
        await events.aclose()
    yield _sse("[DONE]")


@router.post("/chat/stream", summary="Ask a question, streamed as Server-Sent Events")
async def chat_stream(body: StreamRequest, kb: KnowledgeBaseDep) -> StreamingResponse:
    """Stream ``sources`` first, then ``content`` deltas, then ``[DONE]``."""
    return StreamingResponse(
        _sse_events(kb, body),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ---------------------------------------------------------------------------
# Ingestion endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=JobCreatedResponse,
    status_code=202,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload documents for ingestion",
)
async def upload_documents(
    files: Annotated[list[UploadFile], File()],
    background_tasks: BackgroundTasks,
    kb: KnowledgeBaseDep,
    source_type: Annotated[str, Form()] = "upload",
) -> JobCreatedResponse:
    """Register an ingestion job for the uploaded files and run it in the background.

    Unsupported or unreadable files do not fail the request; they show up
    as errors on the job.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    items: list[UploadedFile] = []
    for upload in files:
        content = await upload.read()
        if len(content) > _MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=413,
                detail=f"{upload.filename}: file exceeds {_MAX_UPLOAD_BYTES // (1024 * 1024)} MB",
            )
        items.append(
            UploadedFile(
                filename=upload.filename or "upload",
                content=content,
                metadata={"content_type": upload.content_type} if upload.content_type else {},
            )
        )

    job_id = kb.submit(items, source_type=source_type, kind=JobKind.UPLOAD)
    background_tasks.add_task(kb.run_job, job_id)
    _logger.info("upload_accepted", job_id=job_id, files=len(items), source_type=source_type)

    return JobCreatedResponse(job_id=job_id, status=JobStatus.PENDING.value, total_items=len(items))


@router.post(
    "/sources/sync",
    response_model=JobCreatedResponse,
    status_code=202,
    summary="Ingest documents handed over by a source connector",
)
async def sync_source(
    body: SourceSyncRequest,
    background_tasks: BackgroundTasks,
    kb: KnowledgeBaseDep,
) -> JobCreatedResponse:
    """Register a connector-sync job for the payloads and run it in the background."""
    job_id = kb.submit(body.items, source_type=body.source_type, kind=JobKind.CONNECTOR_SYNC)
    background_tasks.add_task(kb.run_job, job_id)
    _logger.info("sync_accepted", job_id=job_id, items=len(body.items), source_type=body.source_type)

    return JobCreatedResponse(
        job_id=job_id,
        status=JobStatus.PENDING.value,
        total_items=len(body.items),
    )


@router.get("/jobs", response_model=JobListResponse, summary="List ingestion jobs")
async def list_jobs(kb: KnowledgeBaseDep) -> JobListResponse:
    jobs = [JobResponse.from_job(job) for job in kb.list_jobs()]
    return JobListResponse(jobs=jobs, total=len(jobs))


@router.get(
    "/jobs/{job_id}",
    response_model=JobResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get an ingestion job",
)
async def get_job(job_id: str, kb: KnowledgeBaseDep) -> JobResponse:
    try:
        job = kb.job_status(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return JobResponse.from_job(job)


# ---------------------------------------------------------------------------
# Conversation endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    status_code=201,
    summary="Start a conversation",
)
async def create_conversation(
    body: ConversationCreateRequest,
    store: DocumentStoreDep,
) -> ConversationResponse:
    conversation_id = await store.create_conversation(body.title)
    return ConversationResponse(conversation_id=conversation_id, title=body.title)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=ConversationMessagesResponse,
    summary="Get a conversation's messages",
)
async def get_conversation_messages(
    conversation_id: int,
    store: DocumentStoreDep,
) -> ConversationMessagesResponse:
    """Return the conversation's messages oldest first (empty if none)."""
    messages = await store.get_messages(conversation_id)
    return ConversationMessagesResponse(
        conversation_id=conversation_id,
        messages=[MessageResponse(**m) for m in messages],
    )
