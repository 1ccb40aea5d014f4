"""Ingestion job tracker: drives process -> chunk -> store -> embed -> index.

Every ingestion request becomes one :class:`IngestionJob`.  The tracker
walks its items in submission order and folds each item's
:class:`ItemOutcome` into the job snapshot, so the job always reflects the
accumulated ``(processed items, errors)`` pair:

    1. DocumentProcessor  -- item -> title / plain text / metadata
    2. TextChunker        -- split the text into overlapping passages
    3. IDocumentStore     -- persist the document, obtaining its id
    4. IEmbeddingProvider -- embed passages concurrently (bounded)
    5. IDocumentStore     -- persist the embedded chunks (rebuilds the index on startup)
    6. IVectorIndex       -- insert the embedded passages in chunking order

Failure policy:
    - A chunk whose embedding fails is skipped and reported as
      ``"<item>: chunk <n>: <message>"``; the document still counts as
      processed.
    - Any other failure of an item (unsupported type, bad content, store
      error, per-item timeout) is reported as ``"<item>: <message>"`` and
      the batch moves on to the next item.

The job finishes ``completed`` when no errors were recorded and ``failed``
otherwise.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from inframind.models.document import ConnectorPayload, DocumentCreate, IngestionItem
from inframind.models.ingestion import IngestionJob, ItemOutcome, JobKind
from inframind.models.rag import Chunk
from inframind.utils.concurrency import throttled_gather
from inframind.utils.errors import EmbeddingError, JobNotFoundError

if TYPE_CHECKING:
    from inframind.interfaces.document_store import IDocumentStore
    from inframind.interfaces.embedding_provider import IEmbeddingProvider
    from inframind.interfaces.vector_index import IVectorIndex
    from inframind.pipeline.progress_tracker import ProgressTracker
    from inframind.services.ingestion.chunker import TextChunker
    from inframind.services.ingestion.document_processor import DocumentProcessor

logger = structlog.get_logger(logger_name=__name__)


class IngestionJobTracker:
    """Creates, runs and reports on ingestion jobs.

    Parameters
    ----------
    processor:
        Converts items into processed documents.
    chunker:
        Splits document text into passages.
    embedding_provider:
        Embeds each passage.
    vector_index:
        Receives the embedded passages.
    document_store:
        Persists documents before their chunks are indexed.
    progress_tracker:
        Optional; receives a progress update after every item.
    embedding_concurrency:
        Maximum embedding requests in flight across all running jobs.
    item_timeout:
        Seconds allowed per item; ``None`` or ``0`` disables the limit.
    """

    def __init__(
        self,
        processor: DocumentProcessor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_index: IVectorIndex,
        document_store: IDocumentStore,
        progress_tracker: ProgressTracker | None = None,
        embedding_concurrency: int = 4,
        item_timeout: float | None = None,
    ) -> None:
        self._processor = processor
        self._chunker = chunker
        self._embedding = embedding_provider
        self._index = vector_index
        self._store = document_store
        self._progress = progress_tracker
        self._embed_semaphore = asyncio.Semaphore(max(1, embedding_concurrency))
        self._item_timeout = item_timeout or None

        self._jobs: dict[str, IngestionJob] = {}
        self._pending_items: dict[str, list[IngestionItem]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_job(
        self,
        items: list[IngestionItem],
        source_type: str = "upload",
        kind: JobKind = JobKind.UPLOAD,
    ) -> str:
        """Register a ``pending`` job for *items* and return its id."""
        job = IngestionJob(kind=kind, source_type=source_type, total_items=len(items))
        self._jobs[job.id] = job
        self._pending_items[job.id] = list(items)
        logger.info(
            "ingestion_job_created",
            job_id=job.id,
            kind=kind.value,
            source_type=source_type,
            total_items=len(items),
        )
        return job.id

    async def run_job(self, job_id: str) -> IngestionJob:
        """Process every item of a pending job and return the terminal snapshot.

        Raises
        ------
        JobNotFoundError
            If *job_id* is unknown.
        JobStateError
            If the job has already been started.
        """
        job = self.status(job_id)
        job = self._save(job.start_processing())
        items = self._pending_items.pop(job_id, [])
        await self._publish(job, "Processing started")

        start = time.monotonic()
        for item in items:
            outcome = await self._process_item(item, job.source_type)
            job = self._save(job.record(outcome))
            verb = "Processed" if outcome.processed else "Failed"
            await self._publish(job, f"{verb} {outcome.item_name}")

        job = self._save(job.finish())
        await self._publish(job, f"{job.processed_items}/{job.total_items} items processed")

        logger.info(
            "ingestion_job_complete",
            job_id=job.id,
            status=job.status.value,
            processed=job.processed_items,
            total=job.total_items,
            errors=len(job.errors),
            elapsed_s=round(time.monotonic() - start, 2),
        )
        return job

    async def start(
        self,
        items: list[IngestionItem],
        source_type: str = "upload",
        kind: JobKind = JobKind.UPLOAD,
    ) -> str:
        """Create a job for *items*, run it to completion, and return its id."""
        job_id = self.create_job(items, source_type=source_type, kind=kind)
        await self.run_job(job_id)
        return job_id

    def status(self, job_id: str) -> IngestionJob:
        """Return the current snapshot of a job.

        Raises
        ------
        JobNotFoundError
            If *job_id* is unknown.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(message=f"Ingestion job not found: {job_id}")
        return job

    def list_jobs(self) -> list[IngestionJob]:
        """Return all jobs in creation order."""
        return list(self._jobs.values())

    # ------------------------------------------------------------------
    # Per-item processing
    # ------------------------------------------------------------------

    async def _process_item(self, item: IngestionItem, job_source_type: str) -> ItemOutcome:
        """Run one item, converting any failure into a recorded error."""
        try:
            if self._item_timeout:
                return await asyncio.wait_for(
                    self._ingest_item(item, job_source_type),
                    timeout=self._item_timeout,
                )
            return await self._ingest_item(item, job_source_type)
        except asyncio.TimeoutError:
            message = f"timed out after {self._item_timeout:g}s"
        except Exception as exc:
            message = str(exc) or type(exc).__name__

        logger.warning("ingestion_item_failed", item=item.name, error=message)
        return ItemOutcome(item_name=item.name, processed=False, errors=[f"{item.name}: {message}"])

    async def _ingest_item(self, item: IngestionItem, job_source_type: str) -> ItemOutcome:
        processed = self._processor.process(item)
        source_type = item.source_type if isinstance(item, ConnectorPayload) else job_source_type

        # Chunked before storing: a ChunkError leaves no document behind.
        passages = self._chunker.chunk(processed.content)

        document = await self._store.create_document(
            DocumentCreate(
                title=processed.title,
                content=processed.content,
                source_type=source_type,
                source_url=processed.source_url,
                metadata=processed.metadata,
            )
        )

        vectors, errors = await self._embed_passages(item.name, passages)

        chunks: list[Chunk] = []
        for position, vector in vectors:
            chunks.append(
                Chunk(
                    document_id=document.id,
                    chunk_index=len(chunks),
                    content=passages[position],
                    embedding=vector,
                    metadata={
                        "title": document.title,
                        "source_type": source_type,
                        "position": position,
                        "total_chunks": len(passages),
                    },
                )
            )
        # The index never holds chunks the store lacks.
        await self._store.save_chunks(chunks)
        await self._index.insert_many(chunks)

        logger.info(
            "ingestion_item_complete",
            item=item.name,
            document_id=document.id,
            chunks=len(chunks),
            skipped_chunks=len(errors),
        )
        return ItemOutcome(
            item_name=item.name,
            processed=True,
            document_id=document.id,
            chunks_indexed=len(chunks),
            errors=errors,
        )

    async def _embed_passages(
        self,
        item_name: str,
        passages: list[str],
    ) -> tuple[list[tuple[int, list[float]]], list[str]]:
        """Embed passages concurrently; return ``(position, vector)`` pairs and chunk errors.

        Only :class:`EmbeddingError` is treated as a per-chunk failure; any
        other exception fails the whole item.
        """
        results = await throttled_gather(
            [self._embedding.embed_single(p) for p in passages],
            semaphore=self._embed_semaphore,
            return_exceptions=True,
        )

        vectors: list[tuple[int, list[float]]] = []
        errors: list[str] = []
        for position, result in enumerate(results):
            if isinstance(result, EmbeddingError):
                errors.append(f"{item_name}: chunk {position}: {result}")
                logger.warning("chunk_embedding_failed", item=item_name, chunk=position, error=str(result))
            elif isinstance(result, BaseException):
                raise result
            elif not result:
                errors.append(f"{item_name}: chunk {position}: empty embedding")
            else:
                vectors.append((position, list(result)))
        return vectors, errors

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _save(self, job: IngestionJob) -> IngestionJob:
        self._jobs[job.id] = job
        return job

    async def _publish(self, job: IngestionJob, message: str) -> None:
        if self._progress is not None:
            await self._progress.update(job.id, job.status, job.progress, message)
