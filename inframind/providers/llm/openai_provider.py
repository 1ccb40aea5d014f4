"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured (TogetherAI, Groq,
Fireworks, ...) the client points at that URL instead of api.openai.com,
so this one adapter talks to any OpenAI-compatible chat endpoint.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import openai
import structlog

from inframind.config.settings import Settings
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.models.rag import ChatMessage
from inframind.utils.errors import GenerationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_CHAT_MODEL = "gpt-4o"


def _to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o`` by default; ``openai_chat_model`` overrides it for
    OpenAI-compatible hosts that serve other models.
    """

    def __init__(self, settings: Settings, model: str | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(60.0, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = model or settings.openai_chat_model or _DEFAULT_CHAT_MODEL
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

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
        """Generate a completion via the chat completions API."""
        request: dict = {
            "model": self._model,
            "messages": _to_openai_messages(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise GenerationError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise GenerationError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if not content:
            raise GenerationError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def stream(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> AsyncIterator[str]:
        """Yield text deltas from a streamed chat completion."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=_to_openai_messages(messages),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
        except openai.APIError as exc:
            raise GenerationError(
                message=f"{self._provider_label} streaming API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pieces = 0
        try:
            async for event in response:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    pieces += 1
                    yield delta
        except openai.APIError as exc:
            raise GenerationError(
                message=f"{self._provider_label} stream interrupted: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            # Releases the HTTP connection when the consumer stops early.
            await response.close()
            logger.debug("openai_stream_closed", model=self._model, pieces=pieces)

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the API key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False
