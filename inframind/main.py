"""InfraMind FastAPI application entry point.

Wires together providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  ``_build_all`` is shared with the CLI so both surfaces
run on identical wiring.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from inframind.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from inframind.api.routes import router as api_router
from inframind.api.websocket import websocket_job_progress
from inframind.config.loader import apply_config, load_config
from inframind.config.settings import Settings
from inframind.interfaces.embedding_provider import IEmbeddingProvider
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.pipeline.progress_tracker import ProgressTracker
from inframind.providers.analysis.llm_query_analyzer import LLMQueryAnalyzer
from inframind.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from inframind.providers.llm.anthropic_provider import AnthropicLLMProvider
from inframind.providers.llm.ollama_provider import OllamaLLMProvider
from inframind.providers.llm.openai_provider import OpenAILLMProvider
from inframind.providers.vector_index.memory_vector_index import InMemoryVectorIndex
from inframind.services.ingestion.chunker import TextChunker
from inframind.services.ingestion.document_processor import DocumentProcessor
from inframind.services.ingestion.job_tracker import IngestionJobTracker
from inframind.services.knowledge_base import KnowledgeBase
from inframind.services.rag_orchestrator import RAGOrchestrator
from inframind.utils.errors import ConfigurationError
from inframind.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)
settings = apply_config(settings, config)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Return the LLM named by ``LLM_PROVIDER``, else the first configured one.

    Fallback priority: Anthropic -> OpenAI -> Ollama (always constructible).

    Raises
    ------
    ConfigurationError
        If ``LLM_PROVIDER`` names an unknown provider.
    """
    factories = {
        "anthropic": AnthropicLLMProvider,
        "openai": OpenAILLMProvider,
        "ollama": OllamaLLMProvider,
    }
    requested = app_settings.llm_provider.strip().lower()
    if requested:
        factory = factories.get(requested)
        if factory is None:
            raise ConfigurationError(
                message=f"Unknown LLM_PROVIDER '{app_settings.llm_provider}' "
                f"(expected one of: {', '.join(factories)})"
            )
        return factory(settings=app_settings)

    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``, else the first available.

    Priority: OpenAI (if an API key is set) -> Nomic via Ollama.

    Raises
    ------
    ConfigurationError
        If ``EMBEDDING_PROVIDER`` names an unknown provider.
    """
    requested = app_settings.embedding_provider.strip().lower()
    if requested == "openai":
        return OpenAIEmbeddingProvider(settings=app_settings)
    if requested == "nomic":
        return NomicEmbeddingProvider(settings=app_settings)
    if requested:
        raise ConfigurationError(
            message=f"Unknown EMBEDDING_PROVIDER '{app_settings.embedding_provider}' "
            "(expected 'openai' or 'nomic')"
        )

    if app_settings.openai_api_key:
        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=app_settings)
        if provider.is_available():
            return provider

    provider = NomicEmbeddingProvider(settings=app_settings)
    if not provider.is_available():
        _logger.warning(
            "embedding_provider_unavailable",
            provider=provider.get_provider_name(),
            message="Ingestion and retrieval will fail until Ollama is reachable",
        )
    return provider


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)

    vector_index = InMemoryVectorIndex()
    document_store = SQLiteDocumentStore(db_path=app_settings.document_db_path)
    progress_tracker = ProgressTracker()

    job_tracker = IngestionJobTracker(
        processor=DocumentProcessor(),
        chunker=TextChunker(
            max_size=app_settings.chunk_max_size,
            overlap=app_settings.chunk_overlap,
        ),
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        document_store=document_store,
        progress_tracker=progress_tracker,
        embedding_concurrency=app_settings.embedding_concurrency,
        item_timeout=app_settings.ingestion_item_timeout,
    )

    orchestrator = RAGOrchestrator(
        embedding_provider=embedding_provider,
        vector_index=vector_index,
        llm=llm,
        query_analyzer=LLMQueryAnalyzer(llm=llm),
        document_store=document_store,
        relevance_threshold=app_settings.rag_relevance_threshold,
        search_top_k=app_settings.rag_search_top_k,
        context_limit=app_settings.rag_context_limit,
        snippet_length=app_settings.rag_snippet_length,
        temperature=app_settings.generation_temperature,
        max_tokens=app_settings.generation_max_tokens,
    )

    knowledge_base = KnowledgeBase(
        job_tracker=job_tracker,
        orchestrator=orchestrator,
        vector_index=vector_index,
        document_store=document_store,
    )

    return {
        "llm": llm,
        "embedding_provider": embedding_provider,
        "vector_index": vector_index,
        "document_store": document_store,
        "progress_tracker": progress_tracker,
        "job_tracker": job_tracker,
        "orchestrator": orchestrator,
        "knowledge_base": knowledge_base,
        "provider_registry": {
            "llm": llm.get_provider_name(),
            "embedding": embedding_provider.get_provider_name(),
        },
        "provider_availability": {
            "llm": llm.is_available(),
            "embedding": embedding_provider.is_available(),
        },
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers and services on startup."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["document_store"].initialize()
    restored = await components["knowledge_base"].restore_index()

    _logger.info(
        "app_startup",
        restored_chunks=restored,
        version=_VERSION,
        environment=settings.app_env,
        llm=components["provider_registry"]["llm"],
        embedding=components["provider_registry"]["embedding"],
    )

    yield

    _logger.info("app_shutdown", jobs=len(components["job_tracker"].list_jobs()))


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="InfraMind API",
        version=_VERSION,
        description=(
            "Ask natural-language questions against your engineering knowledge base "
            "(docs, runbooks, tickets, wiki pages, chat transcripts) and get answers "
            "grounded in retrieved passages with cited sources."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    application.include_router(api_router)

    @application.websocket("/ws/jobs/{job_id}")
    async def ws_job_progress(websocket: WebSocket, job_id: str) -> None:
        await websocket_job_progress(websocket, job_id)

    return application


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "inframind.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
