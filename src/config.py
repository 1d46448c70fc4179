from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from src.pipeline_config import EmbeddingFailureMode


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys (both optional; without them search is lexical and answers are templated)
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Data files
    transcripts_path: str = "data/telegram_transcripts.json"
    mapped_videos_path: str = "data/videos_with_transcripts.json"
    store_path: str = "data/rag-embeddings.json"

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200
    min_chunk_length: int = 50
    min_transcript_length: int = 100
    max_chunks_per_transcript: int = 10
    chunk_source: str = "telegram"

    # Embedding
    embedding_model: str = "text-embedding-3-small"
    embedding_batch_size: int = 100
    embedding_batch_delay: float = 0.35  # seconds between provider calls
    embedding_failure_mode: EmbeddingFailureMode = EmbeddingFailureMode.LENIENT

    # Chat
    llm_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 500
    max_message_length: int = 500
    search_top_k: int = 5
    max_context_chars: int = 3000
    history_turns: int = 3

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
