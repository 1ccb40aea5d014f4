"""Ollama LLM provider adapter.

Talks to a local Ollama server through its OpenAI-compatible ``/v1`` API,
reusing the ``openai`` client with a different ``base_url``.  Runs fully
offline with no API costs; local models are weaker than hosted ones at
following the citation guidelines in the system prompt.

Setup: install Ollama, ``ollama pull llama3.1``, and set
``OLLAMA_BASE_URL=http://localhost:11434``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import openai
import structlog

from inframind.config.settings import Settings
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.models.rag import ChatMessage
from inframind.utils.errors import GenerationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "llama3.1"


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # required by the SDK, ignored by Ollama
        )
        self._model = settings.ollama_chat_model or _DEFAULT_MODEL

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def generate(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        request: dict = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APIError as exc:
            raise GenerationError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if not content:
            raise GenerationError(
                message="Ollama returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info("ollama_completion", model=self._model)
        return content

    async def stream(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
        except openai.APIError as exc:
            raise GenerationError(
                message=f"Ollama streaming API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            async for event in response:
                if event.choices and event.choices[0].delta.content:
                    yield event.choices[0].delta.content
        except openai.APIError as exc:
            raise GenerationError(
                message=f"Ollama stream interrupted: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            await response.close()

    def get_provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the Ollama server is running via its native ``/api/tags``."""
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False
