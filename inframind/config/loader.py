"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers winning:

  1. ``config/config.yaml``  static defaults checked into the repo
  2. ``.env`` file           local developer overrides (not committed)
  3. Environment variables   set at deploy time

Only values that differ from the :class:`Settings` defaults count as
overrides, so a tuned threshold in ``config.yaml`` is not clobbered by the
built-in default of the matching setting.
"""

from pathlib import Path
from typing import Any

import yaml

from inframind.config.settings import Settings

# (yaml section, yaml key) -> Settings field
_SETTINGS_MAP: dict[tuple[str, str], str] = {
    ("app", "host"): "app_host",
    ("app", "port"): "app_port",
    ("app", "env"): "app_env",
    ("logging", "level"): "log_level",
    ("rag", "relevance_threshold"): "rag_relevance_threshold",
    ("rag", "search_top_k"): "rag_search_top_k",
    ("rag", "context_limit"): "rag_context_limit",
    ("rag", "snippet_length"): "rag_snippet_length",
    ("ingestion", "chunk_max_size"): "chunk_max_size",
    ("ingestion", "chunk_overlap"): "chunk_overlap",
    ("ingestion", "embedding_concurrency"): "embedding_concurrency",
    ("ingestion", "item_timeout_seconds"): "ingestion_item_timeout",
    ("generation", "temperature"): "generation_temperature",
    ("generation", "max_tokens"): "generation_max_tokens",
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to take overrides from; a fresh one is
                  built from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict[str, Any] = {
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
    }
    for (section, key), field_name in _SETTINGS_MAP.items():
        value = getattr(settings, field_name)
        default = Settings.model_fields[field_name].default
        if value != default or key not in yaml_config.get(section, {}):
            env_overrides.setdefault(section, {})[key] = value

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def apply_config(settings: Settings, config: dict) -> Settings:
    """Return a copy of *settings* with the merged YAML values applied."""
    updates: dict[str, Any] = {}
    for (section, key), field_name in _SETTINGS_MAP.items():
        section_values = config.get(section) or {}
        if key in section_values:
            updates[field_name] = section_values[key]
    return settings.model_copy(update=updates)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
