"""Abstract base class for query analysis.

A query analyzer extracts the intent, key entities and a confidence score
from a raw user question.  Its output is advisory: the orchestrator
substitutes a default analysis whenever the analyzer fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from inframind.models.rag import QueryAnalysis


class IQueryAnalyzer(ABC):
    """Contract for query intent/entity extraction."""

    @abstractmethod
    async def analyze(self, query: str) -> QueryAnalysis:
        """Analyze *query*.

        Raises
        ------
        inframind.utils.errors.AnalysisError
            If the analysis cannot be produced or parsed.
        """
