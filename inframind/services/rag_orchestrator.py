"""Retrieval-augmented answering over the InfraMind knowledge base.

Turns a raw engineering question into a grounded answer with cited
sources.  Each query runs the same protocol, in blocking or streaming mode:

    1. ANALYZE   -- IQueryAnalyzer extracts intent / entities / confidence.
                    Advisory only: any failure falls back to the default
                    analysis.  Runs concurrently with step 2.
    2. RETRIEVE  -- Embed the query, take the top ``search_top_k`` chunks,
                    keep those strictly above ``relevance_threshold``,
                    resolve their documents and apply the caller's filters.
                    Any failure degrades to "nothing found".
    3. CONTEXT   -- Render at most ``context_limit`` passages (title, type,
                    content, URL, relevance %), or an explicit sentinel
                    when nothing qualified.
    4. PROMPT    -- Fixed system instruction + context block + analysis
                    block; the user message is the literal query.
    5. GENERATE  -- ILLMProvider.generate() or ILLMProvider.stream().
                    The only step allowed to fail the query.
    6. SOURCES   -- Cite the same passages used for the context.
    7. CONFIDENCE -- ``min(0.95, avg_similarity*0.7 + analysis*0.3)`` over
                    every hit above the threshold, including hits whose
                    document is gone from the store; 0.1 when none.

A streamed answer yields exactly one ``sources`` event, then ``content``
events in generation order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from inframind.models.rag import (
    DEFAULT_ANALYSIS,
    ChatMessage,
    QueryAnalysis,
    QueryFilters,
    RAGResponse,
    SearchResult,
    SourceRef,
    StreamEvent,
)
from inframind.utils.errors import GenerationError

if TYPE_CHECKING:
    from inframind.interfaces.document_store import IDocumentStore
    from inframind.interfaces.embedding_provider import IEmbeddingProvider
    from inframind.interfaces.llm_provider import ILLMProvider
    from inframind.interfaces.query_analyzer import IQueryAnalyzer
    from inframind.interfaces.vector_index import IVectorIndex
    from inframind.models.document import Document

logger = structlog.get_logger(logger_name=__name__)

NO_CONTEXT_SENTINEL = "No relevant documentation found."
_CONTEXT_HEADER = "Relevant documentation and information:\n\n"

_MIN_CONFIDENCE = 0.1
_MAX_CONFIDENCE = 0.95
_SIMILARITY_WEIGHT = 0.7
_ANALYSIS_WEIGHT = 0.3

SYSTEM_PROMPT = (
    "You are InfraMind, an AI assistant for engineering teams. You help developers "
    "find documentation, analyze past incidents, and provide technical guidance.\n\n"
    "Your knowledge base includes:\n"
    "- Internal documentation and runbooks\n"
    "- Past incident reports and solutions\n"
    "- Code repositories and issues\n"
    "- Confluence pages and Jira tickets\n"
    "- Slack conversations and discussions\n\n"
    "Guidelines:\n"
    "1. Always base your answers on the provided context\n"
    "2. Be specific and actionable in your responses\n"
    "3. Include relevant code examples or commands when helpful\n"
    "4. Mention the sources you're referencing\n"
    "5. If you don't have enough information, say so clearly\n"
    "6. For incident-related queries, focus on past solutions and prevention\n"
    "7. For documentation queries, provide clear steps and procedures"
)


@dataclass(frozen=True)
class RetrievedPassage:
    """A search hit joined with the document it belongs to."""

    result: SearchResult
    document: Document

    @property
    def similarity(self) -> float:
        return self.result.similarity


class RAGOrchestrator:
    """Answers questions from indexed knowledge, blocking or streamed.

    Parameters
    ----------
    embedding_provider:
        Embeds the query for similarity search.
    vector_index:
        Holds the chunk vectors searched per query.
    llm:
        Generates (or streams) the answer.
    query_analyzer:
        Extracts intent / entities / confidence from the query.
    document_store:
        Resolves each retrieved chunk's document; also records the
        conversation when ``conversation_id`` is passed to :meth:`query`.
    relevance_threshold:
        Results must score strictly above this cosine similarity.
    search_top_k:
        How many nearest chunks to fetch before thresholding.
    context_limit:
        Maximum passages rendered into the prompt and cited as sources.
    snippet_length:
        Characters of chunk content quoted in each source snippet.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_index: IVectorIndex,
        llm: ILLMProvider,
        query_analyzer: IQueryAnalyzer,
        document_store: IDocumentStore,
        relevance_threshold: float = 0.7,
        search_top_k: int = 10,
        context_limit: int = 5,
        snippet_length: int = 200,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self._embedding = embedding_provider
        self._index = vector_index
        self._llm = llm
        self._analyzer = query_analyzer
        self._store = document_store
        self._relevance_threshold = relevance_threshold
        self._search_top_k = search_top_k
        self._context_limit = context_limit
        self._snippet_length = snippet_length
        self._temperature = temperature
        self._max_tokens = max_tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def query(
        self,
        text: str,
        conversation_id: int | None = None,
        filters: QueryFilters | None = None,
    ) -> RAGResponse:
        """Answer *text* in one shot.

        Raises
        ------
        GenerationError
            If the LLM call fails.  Analysis and retrieval never fail the query.
        """
        start = time.monotonic()
        analysis, passages, similarities = await self._prepare(text, filters)
        messages = self.build_messages(text, self.build_context(passages), analysis)

        try:
            answer = await self._llm.generate(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(
                message=f"Answer generation failed: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        response = RAGResponse(
            answer=answer,
            sources=self.format_sources(passages),
            confidence=self.calculate_confidence(similarities, analysis),
        )

        if conversation_id is not None:
            await self._record_exchange(conversation_id, text, response)

        logger.info(
            "rag_query_complete",
            passages=len(passages),
            sources=len(response.sources),
            confidence=round(response.confidence, 3),
            intent=analysis.intent,
            elapsed_ms=round((time.monotonic() - start) * 1000),
        )
        return response

    async def query_stream(
        self,
        text: str,
        filters: QueryFilters | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Answer *text* incrementally.

        Yields one ``sources`` event, then ``content`` events.  Stopping
        iteration early (``aclose()`` or cancellation) closes the provider
        stream; events already yielded stay delivered.

        Raises
        ------
        GenerationError
            While iterating, if the LLM stream fails.
        """
        analysis, passages, _ = await self._prepare(text, filters)
        messages = self.build_messages(text, self.build_context(passages), analysis)

        yield StreamEvent.sources(self.format_sources(passages))

        stream = self._llm.stream(
            messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        deltas = 0
        try:
            async for delta in stream:
                if not delta:
                    continue
                deltas += 1
                yield StreamEvent.content(delta)
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(
                message=f"Answer streaming failed: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.info(
            "rag_stream_complete",
            passages=len(passages),
            deltas=deltas,
            intent=analysis.intent,
        )

    # ------------------------------------------------------------------
    # Prompt assembly
    # ------------------------------------------------------------------

    def build_context(self, passages: list[RetrievedPassage]) -> str:
        """Render the top passages as the knowledge-base context block."""
        if not passages:
            return NO_CONTEXT_SENTINEL

        parts = [_CONTEXT_HEADER]
        for passage in passages[: self._context_limit]:
            doc = passage.document
            parts.append(f"Source: {doc.title} ({doc.source_type})\n")
            parts.append(f"Content: {passage.result.content}\n")
            if doc.source_url:
                parts.append(f"URL: {doc.source_url}\n")
            parts.append(f"Relevance: {passage.similarity * 100:.1f}%\n\n")
        return "".join(parts)

    @staticmethod
    def build_messages(query: str, context: str, analysis: QueryAnalysis) -> list[ChatMessage]:
        system = (
            f"{SYSTEM_PROMPT}\n\n"
            f"Context from knowledge base:\n{context}\n\n"
            "Query analysis:\n"
            f"- Intent: {analysis.intent}\n"
            f"- Key entities: {', '.join(analysis.entities)}\n"
            f"- Confidence: {analysis.confidence * 100:.1f}%"
        )
        return [
            ChatMessage(role="system", content=system),
            ChatMessage(role="user", content=query),
        ]

    def format_sources(self, passages: list[RetrievedPassage]) -> list[SourceRef]:
        sources: list[SourceRef] = []
        for passage in passages[: self._context_limit]:
            content = passage.result.content
            snippet = content[: self._snippet_length]
            if len(content) > self._snippet_length:
                snippet += "..."
            sources.append(
                SourceRef(
                    title=passage.document.title,
                    url=passage.document.source_url,
                    type=passage.document.source_type,
                    relevance=passage.similarity,
                    snippet=snippet,
                )
            )
        return sources

    @staticmethod
    def calculate_confidence(similarities: list[float], analysis: QueryAnalysis) -> float:
        """Blend the mean similarity of the qualifying hits with analyzer confidence.

        Always within ``[0.1, 0.95]``; exactly 0.1 when nothing qualified.
        """
        if not similarities:
            return _MIN_CONFIDENCE
        avg_similarity = sum(similarities) / len(similarities)
        score = avg_similarity * _SIMILARITY_WEIGHT + analysis.confidence * _ANALYSIS_WEIGHT
        return max(_MIN_CONFIDENCE, min(_MAX_CONFIDENCE, score))

    # ------------------------------------------------------------------
    # Analysis and retrieval
    # ------------------------------------------------------------------

    async def _prepare(
        self,
        text: str,
        filters: QueryFilters | None,
    ) -> tuple[QueryAnalysis, list[RetrievedPassage], list[float]]:
        analysis, (passages, similarities) = await asyncio.gather(
            self._analyze(text),
            self._retrieve(text, filters),
        )
        return analysis, passages, similarities

    async def _analyze(self, text: str) -> QueryAnalysis:
        try:
            return await self._analyzer.analyze(text)
        except Exception as exc:
            logger.warning("query_analysis_failed", error=str(exc))
            return DEFAULT_ANALYSIS

    async def _retrieve(
        self,
        text: str,
        filters: QueryFilters | None,
    ) -> tuple[list[RetrievedPassage], list[float]]:
        """Return the citable passages and the similarities of every qualifying hit.

        A hit above the threshold whose document is no longer in the store
        still counts toward confidence but cannot be cited.  When filters
        are given such a hit is dropped, since it cannot be checked.
        """
        try:
            query_vector = await self._embedding.embed_single(text)
            results = await self._index.search(query_vector, self._search_top_k)

            documents: dict[int, Document | None] = {}
            passages: list[RetrievedPassage] = []
            similarities: list[float] = []
            for result in results:
                if result.similarity <= self._relevance_threshold:
                    continue
                if result.document_id not in documents:
                    documents[result.document_id] = await self._store.get_document(
                        result.document_id
                    )
                document = documents[result.document_id]
                if document is None:
                    if filters is None:
                        similarities.append(result.similarity)
                    continue
                if not _matches(document, filters):
                    continue
                similarities.append(result.similarity)
                passages.append(RetrievedPassage(result=result, document=document))
        except Exception as exc:
            logger.warning("retrieval_failed", error=str(exc))
            return [], []

        logger.debug(
            "retrieval_complete",
            candidates=len(results),
            passages=len(passages),
            orphaned=len(similarities) - len(passages),
            threshold=self._relevance_threshold,
        )
        return passages, similarities

    async def _record_exchange(self, conversation_id: int, text: str, response: RAGResponse) -> None:
        try:
            await self._store.add_message(conversation_id, "user", text)
            await self._store.add_message(
                conversation_id,
                "assistant",
                response.answer,
                sources=[s.model_dump() for s in response.sources],
            )
        except Exception as exc:
            logger.warning(
                "conversation_record_failed",
                conversation_id=conversation_id,
                error=str(exc),
            )


def _matches(document: Document, filters: QueryFilters | None) -> bool:
    if filters is None:
        return True
    if filters.source_types and document.source_type not in filters.source_types:
        return False
    created = _as_utc(document.created_at)
    if filters.date_from is not None and created < _as_utc(filters.date_from):
        return False
    if filters.date_to is not None and created > _as_utc(filters.date_to):
        return False
    return True


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC so they compare with stored values.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
