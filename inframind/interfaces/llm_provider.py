"""Abstract base class for LLM (Large Language Model) service providers.

The generator behind every answer.  Implementations wrap OpenAI (and
OpenAI-compatible endpoints), Anthropic Claude, or a local Ollama server.
Both a blocking call and a token stream are part of the contract so the
orchestrator can serve ``/chat/query`` and ``/chat/stream`` from any
provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from inframind.models.rag import ChatMessage


# Concrete implementations:
#   OpenAILLMProvider     — gpt-4o by default; any OpenAI-compatible API via base_url
#   AnthropicLLMProvider  — Claude Messages API
#   OllamaLLMProvider     — local models through Ollama's OpenAI-compatible /v1
# Located in: inframind/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used for answer generation and query analysis."""

    @abstractmethod
    async def generate(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        """Return the full completion for a chat prompt.

        Parameters
        ----------
        messages:
            Ordered chat messages; a leading ``system`` message carries
            the instructions.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on generated tokens.
        json_mode:
            Ask the provider to emit a single JSON object, where the
            provider supports it.

        Raises
        ------
        inframind.utils.errors.GenerationError
            If the API call fails or returns no content.
        """

    @abstractmethod
    def stream(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> AsyncIterator[str]:
        """Return an async iterator of incremental text deltas.

        The iterator owns the underlying HTTP response; closing it early
        (``aclose()``) releases the connection.

        Raises
        ------
        inframind.utils.errors.GenerationError
            While iterating, if the API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"openai"`` or ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return whether the provider has the configuration it needs."""

    async def validate_credentials(self) -> bool:
        """Check the configured credentials against the live API.

        The default only reports local configuration; adapters override
        this with a cheap authenticated call.
        """
        return self.is_available()
