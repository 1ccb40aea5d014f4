"""Application settings loaded from environment variables via pydantic-settings.

Values are read, highest priority first, from:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. The ``.env`` file in the project root (local development)
  3. The defaults declared below

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``; pydantic-settings
matches case-insensitively.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """InfraMind application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM Providers ===
    # Empty string = "not configured"; provider selection in main.py skips
    # providers with empty keys and falls through to the next.
    llm_provider: str = ""  # "openai" | "anthropic" | "ollama"; empty = first configured
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, Groq, ...)
    openai_chat_model: str = ""  # defaults to gpt-4o
    openai_analysis_model: str = ""  # defaults to gpt-4o
    openai_embedding_model: str = ""  # defaults to text-embedding-3-small
    anthropic_api_key: str = ""
    anthropic_model: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_chat_model: str = ""

    # === Embeddings ===
    embedding_provider: str = ""  # "openai" | "nomic"; empty = first available

    # === Generation ===
    generation_temperature: float = 0.7
    generation_max_tokens: int = 2000

    # === RAG Configuration ===
    rag_relevance_threshold: float = 0.7
    rag_search_top_k: int = 10
    rag_context_limit: int = 5
    rag_snippet_length: int = 200

    # === Ingestion ===
    chunk_max_size: int = 1000
    chunk_overlap: int = 200
    embedding_concurrency: int = 4
    ingestion_item_timeout: float = 120.0  # seconds per item; 0 disables

    # === Persistence ===
    document_db_path: str = "data/inframind.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = ""  # comma-separated; empty = allow all

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have credentials configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers

    def get_cors_origins(self) -> list[str] | None:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or None
