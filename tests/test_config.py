"""Tests for Settings, PipelineConfig and the mode enums."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from src.config import Settings
from src.pipeline_config import EmbeddingFailureMode, PipelineConfig, SearchMode

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestEmbeddingFailureMode:
    def test_values(self) -> None:
        assert EmbeddingFailureMode.STRICT.value == "strict"
        assert EmbeddingFailureMode.LENIENT.value == "lenient"

    def test_from_string(self) -> None:
        assert EmbeddingFailureMode("strict") is EmbeddingFailureMode.STRICT

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            EmbeddingFailureMode("sometimes")


class TestSearchMode:
    def test_values(self) -> None:
        assert SearchMode.SEMANTIC.value == "semantic"
        assert SearchMode.LEXICAL.value == "lexical"

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(SearchMode.LEXICAL, str)


# ---------------------------------------------------------------------------
# PipelineConfig tests
# ---------------------------------------------------------------------------


class TestPipelineConfig:
    def test_defaults(self) -> None:
        config = PipelineConfig()
        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.min_transcript_length == 100
        assert config.max_chunks_per_transcript == 10
        assert config.batch_size == 100
        assert config.batch_delay == 0.35
        assert config.failure_mode is EmbeddingFailureMode.LENIENT

    def test_immutable(self) -> None:
        config = PipelineConfig()
        with pytest.raises(FrozenInstanceError):
            config.chunk_size = 10  # type: ignore[misc]

    def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            chunk_size=400,
            chunk_overlap=40,
            chunk_source="archive",
            embedding_batch_size=16,
            embedding_batch_delay=0,
            embedding_failure_mode="strict",
        )
        config = PipelineConfig.from_settings(settings)
        assert config.chunk_size == 400
        assert config.chunk_overlap == 40
        assert config.source == "archive"
        assert config.batch_size == 16
        assert config.batch_delay == 0
        assert config.failure_mode is EmbeddingFailureMode.STRICT


# ---------------------------------------------------------------------------
# Settings tests
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("STORE_PATH", raising=False)
        monkeypatch.delenv("SEARCH_TOP_K", raising=False)
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.store_path == "data/rag-embeddings.json"
        assert settings.embedding_model == "text-embedding-3-small"
        assert settings.search_top_k == 5
        assert settings.max_message_length == 500
        assert settings.max_context_chars == 3000
        assert settings.history_turns == 3

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORE_PATH", "/tmp/other.json")
        monkeypatch.setenv("EMBEDDING_FAILURE_MODE", "strict")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.store_path == "/tmp/other.json"
        assert settings.embedding_failure_mode is EmbeddingFailureMode.STRICT
