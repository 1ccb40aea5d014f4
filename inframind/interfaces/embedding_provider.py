"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length vectors.
Implementations wrap OpenAI ``text-embedding-3-small`` or Nomic
``nomic-embed-text`` served locally by Ollama; the ingestion tracker and
the RAG orchestrator only ever see this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider  — text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider   — nomic-embed-text via Ollama (local)
# Located in: inframind/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline.

    Vectors produced here are stored in
    :class:`~inframind.interfaces.vector_index.IVectorIndex` at ingestion
    time and compared against query vectors at search time, so one
    deployment must use one provider (and model) for both.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally if the underlying API has a per-call limit.

        Returns
        -------
        list[list[float]]
            One vector per input text, in the same order.

        Raises
        ------
        inframind.utils.errors.EmbeddingError
            If the embedding service is unreachable or returns an error.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Raises
        ------
        inframind.utils.errors.EmbeddingError
            If the embedding service fails.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of vectors produced by this provider."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return whether the provider is configured and reachable."""
