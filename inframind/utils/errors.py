"""Custom exception hierarchy for InfraMind.

All application exceptions inherit from :class:`InfraMindError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "ollama", "sqlite") caused the failure.

The hierarchy is organized by the unit of work each error is fatal to:

    InfraMindError  (base -- catch-all for any InfraMind error)
    +-- ChunkError               (malformed chunker input, fatal to one item)
    +-- EmbeddingError           (one chunk, skipped; document continues)
    +-- ItemProcessingError      (one batch item; recorded, batch continues)
    +-- GenerationError          (LLM answer generation, fatal to the query)
    +-- AnalysisError            (query analysis, absorbed by the orchestrator)
    +-- RAGError                 (vector index contract violation)
    +-- StoreError               (document / conversation store failure)
    +-- JobNotFoundError         (unknown ingestion job id)
    +-- JobStateError            (illegal ingestion job state transition)
    +-- ConfigurationError       (startup / missing config)

Errors local to one chunk or one item never abort the surrounding batch;
only :class:`GenerationError` is allowed to fail a user-facing query.
"""


class InfraMindError(Exception):
    """Base exception for all InfraMind errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ChunkError(InfraMindError):
    """Raised when text handed to the chunker is missing or not a string."""

    def __init__(
        self,
        message: str = "Cannot chunk missing text",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(InfraMindError):
    """Raised when an embedding provider fails to vectorise a text."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ItemProcessingError(InfraMindError):
    """Raised when one ingestion item cannot be turned into a document.

    Typical causes are an unsupported file extension, undecodable bytes,
    or a malformed connector payload.  The job tracker records the message
    against the item and moves on to the next one.
    """

    def __init__(
        self,
        message: str = "Item could not be processed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Query errors
# ---------------------------------------------------------------------------

class GenerationError(InfraMindError):
    """Raised when an LLM call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "Answer generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AnalysisError(InfraMindError):
    """Raised when query analysis output cannot be obtained or parsed."""

    def __init__(
        self,
        message: str = "Query analysis failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class RAGError(InfraMindError):
    """Raised when a vector index operation violates the index contract."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreError(InfraMindError):
    """Raised when the document or conversation store fails."""

    def __init__(
        self,
        message: str = "Persistent store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Job / configuration errors
# ---------------------------------------------------------------------------

class JobNotFoundError(InfraMindError):
    """Raised when an ingestion job id is unknown to the tracker."""

    def __init__(
        self,
        message: str = "Ingestion job not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class JobStateError(InfraMindError):
    """Raised on an illegal ingestion job transition (e.g. completed -> processing)."""

    def __init__(
        self,
        message: str = "Invalid ingestion job transition",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(InfraMindError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
