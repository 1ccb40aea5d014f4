"""LLM-backed query analyzer.

Asks the configured :class:`ILLMProvider` for a JSON object describing the
query's intent, key entities and a confidence score.  Results are cached
per normalised query in a ``cachetools.TTLCache`` so repeated questions
(common from chat retries) skip the extra LLM round trip.
"""

from __future__ import annotations

import json

import structlog
from cachetools import TTLCache
from pydantic import ValidationError

from inframind.interfaces.llm_provider import ILLMProvider
from inframind.interfaces.query_analyzer import IQueryAnalyzer
from inframind.models.rag import ChatMessage, QueryAnalysis
from inframind.utils.errors import AnalysisError, GenerationError

logger = structlog.get_logger(logger_name=__name__)

_ANALYSIS_PROMPT = """\
Analyze the user's query and extract:
1. Intent (search_docs, find_incident, get_code, troubleshoot, etc.)
2. Entities (technologies, services, error types, etc.)
3. Confidence (0-1)

Respond with JSON in this format: { "intent": "string", "entities": ["string"], "confidence": number }"""


class LLMQueryAnalyzer(IQueryAnalyzer):
    """Extracts ``{intent, entities, confidence}`` with one JSON-mode LLM call."""

    def __init__(
        self,
        llm: ILLMProvider,
        cache_size: int = 256,
        cache_ttl: int = 3600,
    ) -> None:
        self._llm = llm
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)

    async def analyze(self, query: str) -> QueryAnalysis:
        key = " ".join(query.lower().split())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        messages = [
            ChatMessage(role="system", content=_ANALYSIS_PROMPT),
            ChatMessage(role="user", content=query),
        ]
        try:
            raw = await self._llm.generate(messages, temperature=0.0, max_tokens=300, json_mode=True)
        except GenerationError as exc:
            raise AnalysisError(
                message=f"Query analysis call failed: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc

        analysis = parse_analysis(raw)
        self._cache[key] = analysis
        logger.debug(
            "query_analyzed",
            intent=analysis.intent,
            entities=len(analysis.entities),
            confidence=analysis.confidence,
        )
        return analysis


def parse_analysis(raw: str) -> QueryAnalysis:
    """Parse the analyzer's JSON reply, tolerating a fenced code block.

    Raises
    ------
    AnalysisError
        If the reply is not a JSON object with usable fields.
    """
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisError(message=f"Analyzer returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AnalysisError(message="Analyzer reply is not a JSON object")
    if not isinstance(data.get("entities") or [], list):
        raise AnalysisError(message="Analyzer 'entities' is not a list")

    try:
        return QueryAnalysis(
            intent=str(data.get("intent") or "search_docs"),
            entities=[str(e) for e in data.get("entities") or []],
            confidence=float(data.get("confidence", 0.5)),
        )
    except (TypeError, ValueError, ValidationError) as exc:
        raise AnalysisError(message=f"Analyzer reply has invalid fields: {exc}") from exc
