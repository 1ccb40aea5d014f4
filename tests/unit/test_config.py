"""Unit tests for the YAML config loader and Settings helpers."""

from __future__ import annotations

from pathlib import Path

import yaml

from inframind.config.loader import apply_config, load_config
from inframind.config.settings import Settings


def _write_yaml(tmp_path: Path, data: dict) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "", "anthropic_api_key": "", "ollama_base_url": "http://localhost:11434"}
    defaults.update(overrides)
    return Settings(**defaults)


class TestLoadConfig:
    def test_yaml_value_kept_when_setting_is_default(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, {"rag": {"relevance_threshold": 0.75}})
        config = load_config(path, settings=_settings())

        assert config["rag"]["relevance_threshold"] == 0.75
        assert config["rag"]["search_top_k"] == 10

    def test_explicit_setting_overrides_yaml(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, {"ingestion": {"chunk_max_size": 800}})
        config = load_config(path, settings=_settings(chunk_max_size=1200))

        assert config["ingestion"]["chunk_max_size"] == 1200

    def test_missing_file_uses_settings(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())

        assert config["generation"]["max_tokens"] == 2000
        assert config["llm"]["available_providers"] == ["ollama"]

    def test_unrelated_yaml_sections_preserved(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, {"app": {"name": "InfraMind"}})
        config = load_config(path, settings=_settings())

        assert config["app"]["name"] == "InfraMind"
        assert config["app"]["port"] == 8000


class TestApplyConfig:
    def test_yaml_values_flow_into_settings(self, tmp_path: Path) -> None:
        base = _settings()
        path = _write_yaml(
            tmp_path,
            {"rag": {"context_limit": 3}, "ingestion": {"item_timeout_seconds": 30}},
        )

        applied = apply_config(base, load_config(path, settings=base))

        assert applied.rag_context_limit == 3
        assert applied.ingestion_item_timeout == 30
        assert base.rag_context_limit == 5


class TestSettingsHelpers:
    def test_available_llm_providers(self) -> None:
        settings = _settings(openai_api_key="sk", anthropic_api_key="ak")
        assert settings.get_available_llm_providers() == ["openai", "anthropic", "ollama"]

    def test_cors_origins(self) -> None:
        assert _settings(cors_origins="").get_cors_origins() is None
        assert _settings(cors_origins="https://a.example.com, https://b.example.com").get_cors_origins() == [
            "https://a.example.com",
            "https://b.example.com",
        ]
