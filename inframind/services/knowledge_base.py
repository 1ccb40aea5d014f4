"""KnowledgeBase -- the single entry point wrapped by the API and CLI.

Bundles the ingestion job tracker and the RAG orchestrator behind the
operations callers actually need: ingest items, poll a job, ask a question
(blocking or streamed), sync a connector, and rebuild the vector index
from the chunks persisted in the document store.

Two ingestion styles are offered:

- :meth:`ingest` / :meth:`sync_source` run the job to completion before
  returning its id (CLI, tests).
- :meth:`submit` registers a ``pending`` job and returns immediately; the
  caller runs it later with :meth:`run_job` (API background tasks).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

import structlog

from inframind.models.ingestion import IngestionJob, JobKind
from inframind.utils.errors import RAGError

if TYPE_CHECKING:
    from inframind.interfaces.document_store import IDocumentStore
    from inframind.interfaces.vector_index import IVectorIndex
    from inframind.models.document import ConnectorPayload, IngestionItem
    from inframind.models.rag import IndexStats, QueryFilters, RAGResponse, StreamEvent
    from inframind.services.ingestion.job_tracker import IngestionJobTracker
    from inframind.services.rag_orchestrator import RAGOrchestrator

logger = structlog.get_logger(logger_name=__name__)


class KnowledgeBase:
    """Façade over ingestion and querying."""

    def __init__(
        self,
        job_tracker: IngestionJobTracker,
        orchestrator: RAGOrchestrator,
        vector_index: IVectorIndex,
        document_store: IDocumentStore,
    ) -> None:
        self._jobs = job_tracker
        self._orchestrator = orchestrator
        self._index = vector_index
        self._store = document_store

    # -- Ingestion --------------------------------------------------------

    async def ingest(self, items: list[IngestionItem], source_type: str = "upload") -> str:
        """Ingest *items* and return the (now terminal) job's id."""
        return await self._jobs.start(items, source_type=source_type, kind=JobKind.UPLOAD)

    async def sync_source(self, source_type: str, items: list[ConnectorPayload]) -> str:
        """Ingest one connector sync run and return the job id."""
        logger.info("source_sync_started", source_type=source_type, items=len(items))
        return await self._jobs.start(items, source_type=source_type, kind=JobKind.CONNECTOR_SYNC)

    def submit(
        self,
        items: list[IngestionItem],
        source_type: str = "upload",
        kind: JobKind = JobKind.UPLOAD,
    ) -> str:
        """Register a pending job without running it."""
        return self._jobs.create_job(items, source_type=source_type, kind=kind)

    async def run_job(self, job_id: str) -> IngestionJob:
        return await self._jobs.run_job(job_id)

    def job_status(self, job_id: str) -> IngestionJob:
        """Return the job snapshot; raises ``JobNotFoundError`` if unknown."""
        return self._jobs.status(job_id)

    def list_jobs(self) -> list[IngestionJob]:
        return self._jobs.list_jobs()

    # -- Querying ---------------------------------------------------------

    async def query(
        self,
        text: str,
        conversation_id: int | None = None,
        filters: QueryFilters | None = None,
    ) -> RAGResponse:
        return await self._orchestrator.query(text, conversation_id=conversation_id, filters=filters)

    def query_stream(
        self,
        text: str,
        filters: QueryFilters | None = None,
    ) -> AsyncIterator[StreamEvent]:
        return self._orchestrator.query_stream(text, filters=filters)

    # -- Index persistence ------------------------------------------------

    async def restore_index(self) -> int:
        """Load the chunks persisted by earlier runs into the vector index.

        Chunks whose vector dimension differs from the first restored one
        (written under a different embedding model) are skipped.  Returns
        the number of chunks indexed.
        """
        restored = skipped = 0
        for chunk in await self._store.list_chunks():
            try:
                await self._index.insert(chunk)
            except RAGError as exc:
                skipped += 1
                logger.debug("chunk_restore_skipped", document_id=chunk.document_id, error=exc.message)
                continue
            restored += 1

        if skipped:
            logger.warning(
                "index_restore_incomplete",
                restored=restored,
                skipped=skipped,
                message="Re-ingest documents embedded with a different model",
            )
        logger.info("index_restored", chunks=restored)
        return restored

    # -- Introspection ----------------------------------------------------

    async def index_stats(self) -> IndexStats:
        return await self._index.get_stats()

    async def document_count(self) -> int:
        return await self._store.count_documents()
