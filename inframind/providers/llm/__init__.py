"""LLM provider adapters.

Three concrete implementations of ILLMProvider (inframind/interfaces/llm_provider.py):
    - OpenAILLMProvider    — gpt-4o (also any OpenAI-compatible API)
    - AnthropicLLMProvider — Claude via the Messages API
    - OllamaLLMProvider    — local models through Ollama's OpenAI-compatible endpoint

All three support blocking ``generate()`` and incremental ``stream()``.
main.py picks one from LLM_PROVIDER, or from whichever credentials are set.
"""

from inframind.providers.llm.anthropic_provider import AnthropicLLMProvider
from inframind.providers.llm.ollama_provider import OllamaLLMProvider
from inframind.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]
