"""Abstract interfaces for every external collaborator of the RAG core.

Business logic depends only on these ABCs; concrete adapters live in
``inframind/providers/`` and are chosen in ``inframind/main.py``.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementations (in inframind/providers/)
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider         →  OpenAILLMProvider, AnthropicLLMProvider,
                            OllamaLLMProvider
    IEmbeddingProvider   →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IVectorIndex         →  InMemoryVectorIndex
    IQueryAnalyzer       →  LLMQueryAnalyzer
    IDocumentStore       →  SQLiteDocumentStore
"""

from inframind.interfaces.document_store import IDocumentStore
from inframind.interfaces.embedding_provider import IEmbeddingProvider
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.interfaces.query_analyzer import IQueryAnalyzer
from inframind.interfaces.vector_index import IVectorIndex

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IQueryAnalyzer",
    "IVectorIndex",
]
