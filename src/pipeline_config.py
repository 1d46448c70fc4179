"""Pipeline configuration: strategy enums and PipelineConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.config import Settings


class EmbeddingFailureMode(str, Enum):
    """How the embedding batcher reacts to a failed provider call."""

    STRICT = "strict"  # abort the whole ingestion run
    LENIENT = "lenient"  # skip the batch, keep going


class SearchMode(str, Enum):
    """Ranking strategy chosen per search call."""

    SEMANTIC = "semantic"
    LEXICAL = "lexical"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable chunking/embedding parameters for one ingestion run.

    Defaults mirror the values the archive was originally indexed with
    (1000-character windows, 200 characters of overlap, batches of 100).
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200
    min_chunk_length: int = 50
    min_transcript_length: int = 100
    max_chunks_per_transcript: int = 10
    source: str = "telegram"
    batch_size: int = 100
    batch_delay: float = 0.35
    failure_mode: EmbeddingFailureMode = EmbeddingFailureMode.LENIENT

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Build a config from application settings."""
        return cls(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            min_chunk_length=settings.min_chunk_length,
            min_transcript_length=settings.min_transcript_length,
            max_chunks_per_transcript=settings.max_chunks_per_transcript,
            source=settings.chunk_source,
            batch_size=settings.embedding_batch_size,
            batch_delay=settings.embedding_batch_delay,
            failure_mode=settings.embedding_failure_mode,
        )
