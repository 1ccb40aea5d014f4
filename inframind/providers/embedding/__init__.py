"""Embedding provider implementations.

Embeddings turn chunk and query text into vectors for cosine-similarity
search in the vector index.

    - OpenAIEmbeddingProvider — text-embedding-3-small (1536 dims), batched.
    - NomicEmbeddingProvider  — nomic-embed-text via Ollama (768 dims), local.
"""

from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
