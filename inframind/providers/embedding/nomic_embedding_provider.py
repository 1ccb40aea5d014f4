"""Local embedding provider: ``nomic-embed-text`` served by Ollama.

Talks to the OpenAI-compatible ``/v1`` endpoint that Ollama exposes, so
no API key is needed.  Responses are checked for one 768-dimensional
vector per input text.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from inframind.config.settings import Settings
from inframind.interfaces.embedding_provider import IEmbeddingProvider
from inframind.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_MODEL = "nomic-embed-text"
_DIMENSION = 768
_BATCH_LIMIT = 512


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider for a local Ollama server."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key="ollama")

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _BATCH_LIMIT):
            batch = texts[start : start + _BATCH_LIMIT]
            try:
                response = await self._client.embeddings.create(input=batch, model=_MODEL)
            except openai.APIError as exc:
                raise EmbeddingError(
                    message=f"Ollama at {self._base_url} failed to embed {len(batch)} text(s): {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            vectors.extend(item.embedding for item in response.data)
            logger.debug("nomic_embedding_batch", offset=start, batch_size=len(batch))

        if len(vectors) != len(texts):
            raise EmbeddingError(
                message=f"Expected {len(texts)} embeddings, got {len(vectors)}",
                provider_name=self.get_provider_name(),
            )
        wrong = next((len(v) for v in vectors if len(v) != _DIMENSION), None)
        if wrong is not None:
            raise EmbeddingError(
                message=f"{_MODEL} returned a {wrong}-dimensional vector, expected {_DIMENSION}",
                provider_name=self.get_provider_name(),
            )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        (vector,) = await self.embed([text])
        return vector

    def get_dimension(self) -> int:
        return _DIMENSION

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server answers its model listing."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except httpx.HTTPError:
            return False
        return response.status_code == 200
