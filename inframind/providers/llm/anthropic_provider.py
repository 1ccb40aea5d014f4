"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI adapter:
    - The system prompt is a top-level ``system`` parameter, so leading
      system messages are pulled out of the message list
    - Responses are lists of content blocks; only text blocks are kept
    - There is no JSON response mode; ``json_mode`` appends an instruction
      to the system prompt instead
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import anthropic
import structlog

from inframind.config.settings import Settings
from inframind.interfaces.llm_provider import ILLMProvider
from inframind.models.rag import ChatMessage
from inframind.utils.errors import GenerationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "claude-sonnet-4-20250514"
_JSON_INSTRUCTION = "Respond with a single JSON object and nothing else."


def _split_system(messages: list[ChatMessage]) -> tuple[str, list[dict[str, str]]]:
    system_parts = [m.content for m in messages if m.role == "system"]
    conversation = [
        {"role": m.role, "content": m.content} for m in messages if m.role != "system"
    ]
    return "\n\n".join(system_parts), conversation


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude Messages API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        self._model = settings.anthropic_model or _DEFAULT_MODEL

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
        system, conversation = _split_system(messages)
        if json_mode:
            system = f"{system}\n\n{_JSON_INSTRUCTION}" if system else _JSON_INSTRUCTION

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system,
                messages=conversation,
                temperature=temperature,
            )
        except anthropic.APIError as exc:
            raise GenerationError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise GenerationError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    async def stream(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> AsyncIterator[str]:
        system, conversation = _split_system(messages)
        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=max_tokens,
                system=system,
                messages=conversation,
                temperature=temperature,
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        yield text
        except anthropic.APIError as exc:
            raise GenerationError(
                message=f"Anthropic stream error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Send a one-token request to confirm the API key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
            return True
        except anthropic.APIError:
            return False
