"""Unit tests for embedding provider adapters: OpenAI and Nomic (Ollama)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from inframind.config.settings import Settings
from inframind.utils.errors import EmbeddingError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "ollama_base_url": "http://localhost:11434",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _embedding_response(vectors: list[list[float]]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=len(vectors) * 3)
    return response


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        assert OpenAIEmbeddingProvider(settings).get_provider_name() == "openai_embedding"

    def test_is_available_without_key(self) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    def test_dimension_follows_model(self) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        assert OpenAIEmbeddingProvider(_settings()).get_dimension() == 1536
        large = OpenAIEmbeddingProvider(_settings(openai_embedding_model="text-embedding-3-large"))
        assert large.get_dimension() == 3072

    @pytest.mark.asyncio
    async def test_embed_success(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            return_value=_embedding_response([[0.1, 0.2], [0.3, 0.4]])
        )

        with patch(
            "inframind.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings)
            result = await provider.embed(["disk full", "oom killed"])

        assert result == [[0.1, 0.2], [0.3, 0.4]]
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs["model"] == "text-embedding-3-small"
        assert kwargs["input"] == ["disk full", "oom killed"]

    @pytest.mark.asyncio
    async def test_embed_empty_batch_skips_api(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        with patch(
            "inframind.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            assert await OpenAIEmbeddingProvider(settings).embed([]) == []

        mock_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_single(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.5, 0.5]]))

        with patch(
            "inframind.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OpenAIEmbeddingProvider(settings).embed_single("redis eviction")

        assert result == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_embed_error(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="quota", request=MagicMock(), body=None)
        )

        with patch(
            "inframind.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(EmbeddingError) as exc_info:
                await OpenAIEmbeddingProvider(settings).embed(["x"])

        assert exc_info.value.provider_name == "openai_embedding"

    @pytest.mark.asyncio
    async def test_short_response_rejected(self, settings: Settings) -> None:
        from inframind.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.1]]))

        with patch(
            "inframind.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(EmbeddingError, match="Expected 2 embeddings, got 1"):
                await OpenAIEmbeddingProvider(settings).embed(["a", "b"])


# ======================================================================
# Nomic Embedding Provider
# ======================================================================


class TestNomicEmbeddingProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name_and_dimension(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        provider = NomicEmbeddingProvider(settings)
        assert provider.get_provider_name() == "nomic_embedding"
        assert provider.get_dimension() == 768

    def test_is_available_success(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_response = MagicMock(status_code=200)
        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=mock_response,
        ):
            assert NomicEmbeddingProvider(settings).is_available() is True

    def test_is_available_failure(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert NomicEmbeddingProvider(settings).is_available() is False

    @pytest.mark.asyncio
    async def test_embed_success(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.2] * 768]))

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await NomicEmbeddingProvider(settings).embed_single("kafka lag")

        assert len(result) == 768
        assert mock_client.embeddings.create.call_args.kwargs["model"] == "nomic-embed-text"

    @pytest.mark.asyncio
    async def test_embed_error(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="not loaded", request=MagicMock(), body=None)
        )

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(EmbeddingError, match="not loaded"):
                await NomicEmbeddingProvider(settings).embed(["x"])

    @pytest.mark.asyncio
    async def test_short_response_rejected(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.2] * 768]))

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(EmbeddingError, match="Expected 2 embeddings, got 1"):
                await NomicEmbeddingProvider(settings).embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_embedding_response([[0.2] * 384]))

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            with pytest.raises(EmbeddingError, match="384-dimensional vector, expected 768"):
                await NomicEmbeddingProvider(settings).embed_single("kafka lag")

    @pytest.mark.asyncio
    async def test_large_input_split_into_batches(self, settings: Settings) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=[
                _embedding_response([[0.1] * 768] * 512),
                _embedding_response([[0.3] * 768] * 88),
            ]
        )

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await NomicEmbeddingProvider(settings).embed([f"line {i}" for i in range(600)])

        assert len(result) == 600
        sizes = [len(c.kwargs["input"]) for c in mock_client.embeddings.create.call_args_list]
        assert sizes == [512, 88]

    def test_trailing_slash_in_base_url_ignored(self) -> None:
        from inframind.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        with patch(
            "inframind.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ) as mock_get:
            NomicEmbeddingProvider(_settings(ollama_base_url="http://ollama:11434/")).is_available()

        assert mock_get.call_args.args[0] == "http://ollama:11434/api/tags"
