"""Abstract base class for the vector index.

The index stores chunk vectors together with their content and metadata
and answers top-K cosine-similarity queries.  The contract fixes only the
ordering guarantees (similarity descending, ties by ``(document_id,
chunk_index)`` ascending) and the empty-index behaviour, so an approximate
nearest-neighbour backend can replace the linear-scan implementation
without touching the orchestrator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from inframind.models.rag import Chunk, IndexStats, SearchResult


# Concrete implementations:
#   InMemoryVectorIndex — append-only arena + numpy linear scan
# Located in: inframind/providers/vector_index/
class IVectorIndex(ABC):
    """Contract for the chunk vector index shared by ingestion and search.

    All methods are async so network-backed indexes can implement them
    without blocking the event loop.
    """

    @abstractmethod
    async def insert(self, chunk: Chunk) -> None:
        """Append one chunk.

        Insertion is atomic from a concurrent reader's point of view: a
        search either sees the whole chunk or does not see it at all.

        Raises
        ------
        inframind.utils.errors.RAGError
            If the chunk has empty content or its vector dimension does not
            match the vectors already indexed.
        """

    async def insert_many(self, chunks: list[Chunk]) -> int:
        """Insert *chunks* in order and return how many were inserted."""
        for chunk in chunks:
            await self.insert(chunk)
        return len(chunks)

    @abstractmethod
    async def search(self, query_vector: list[float], k: int) -> list[SearchResult]:
        """Return the *k* chunks most similar to *query_vector*.

        Returns fewer than *k* results when the index holds fewer chunks,
        and an empty list (never an error) on an empty index.
        """

    @abstractmethod
    async def get_stats(self) -> IndexStats:
        """Return chunk / document counts and the vector dimension."""
