"""In-memory vector index over an append-only arena of chunks.

Each inserted chunk occupies a stable integer slot in the arena.  Writers
serialise on a :class:`threading.Lock`, fill the slot, and only then bump
the published length; readers snapshot the published length once and scan
slots below it.  A search therefore never observes a half-inserted chunk,
and searches never block each other.

Similarity is cosine, computed with numpy over the snapshot.  A zero
magnitude on either side yields similarity 0 instead of NaN.
"""

from __future__ import annotations

import threading

import numpy as np
import structlog

from inframind.interfaces.vector_index import IVectorIndex
from inframind.models.rag import Chunk, IndexStats, SearchResult
from inframind.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)


class _Slot:
    """Arena entry: the chunk plus its precomputed vector and norm."""

    __slots__ = ("chunk", "norm", "vector")

    def __init__(self, chunk: Chunk) -> None:
        self.chunk = chunk
        self.vector = np.asarray(chunk.embedding, dtype=np.float64)
        self.norm = float(np.linalg.norm(self.vector))


class InMemoryVectorIndex(IVectorIndex):
    """Linear-scan cosine index, adequate for an internal knowledge base."""

    def __init__(self) -> None:
        self._slots: list[_Slot] = []
        self._published = 0
        self._dimension: int | None = None
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # IVectorIndex implementation
    # ------------------------------------------------------------------

    async def insert(self, chunk: Chunk) -> None:
        self.insert_sync(chunk)

    async def search(self, query_vector: list[float], k: int) -> list[SearchResult]:
        return self.search_sync(query_vector, k)

    async def get_stats(self) -> IndexStats:
        slots = self._snapshot()
        return IndexStats(
            total_chunks=len(slots),
            total_documents=len({s.chunk.document_id for s in slots}),
            dimension=self._dimension,
        )

    # ------------------------------------------------------------------
    # Synchronous core (usable from worker threads)
    # ------------------------------------------------------------------

    def insert_sync(self, chunk: Chunk) -> int:
        """Append *chunk* and return its slot id."""
        if not chunk.content.strip():
            raise RAGError(
                message=(
                    f"Refusing to index empty chunk {chunk.chunk_index} "
                    f"of document {chunk.document_id}"
                ),
                provider_name="memory_index",
            )
        slot = _Slot(chunk)
        if slot.vector.ndim != 1 or slot.vector.size == 0:
            raise RAGError(
                message="Chunk embedding must be a non-empty flat vector",
                provider_name="memory_index",
            )

        with self._write_lock:
            if self._dimension is None:
                self._dimension = slot.vector.size
            elif slot.vector.size != self._dimension:
                raise RAGError(
                    message=(
                        f"Embedding dimension {slot.vector.size} does not match "
                        f"index dimension {self._dimension}"
                    ),
                    provider_name="memory_index",
                )
            slot_id = len(self._slots)
            self._slots.append(slot)
            # Publish only after the slot is fully in place.
            self._published = slot_id + 1

        return slot_id

    def search_sync(self, query_vector: list[float], k: int) -> list[SearchResult]:
        """Return the top *k* results by cosine similarity."""
        slots = self._snapshot()
        if not slots or k <= 0:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        if self._dimension is not None and query.size != self._dimension:
            raise RAGError(
                message=(
                    f"Query dimension {query.size} does not match "
                    f"index dimension {self._dimension}"
                ),
                provider_name="memory_index",
            )

        matrix = np.vstack([s.vector for s in slots])
        norms = np.array([s.norm for s in slots])
        denominators = norms * float(np.linalg.norm(query))
        dots = matrix @ query

        similarities = np.zeros(len(slots), dtype=np.float64)
        nonzero = denominators > 0
        similarities[nonzero] = dots[nonzero] / denominators[nonzero]
        np.clip(similarities, -1.0, 1.0, out=similarities)

        ranked = sorted(
            range(len(slots)),
            key=lambda i: (
                -similarities[i],
                slots[i].chunk.document_id,
                slots[i].chunk.chunk_index,
            ),
        )

        results = [
            SearchResult(
                document_id=slots[i].chunk.document_id,
                chunk_index=slots[i].chunk.chunk_index,
                content=slots[i].chunk.content,
                similarity=float(similarities[i]),
                metadata=dict(slots[i].chunk.metadata),
            )
            for i in ranked[:k]
        ]
        logger.debug("vector_search", indexed=len(slots), k=k, returned=len(results))
        return results

    def __len__(self) -> int:
        return self._published

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _snapshot(self) -> list[_Slot]:
        # The arena only grows, so slots below the published length are stable.
        published = self._published
        return self._slots[:published]
