"""End-to-end ingestion pipeline: parse -> chunk -> embed -> save."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from src.config import settings
from src.ingestion.chunking import chunk_transcripts
from src.ingestion.embeddings import BatchReport, EmbedFn, embed_chunks, embed_texts
from src.ingestion.models import VectorStoreDocument
from src.ingestion.parsers import parse_program_titles, parse_transcripts
from src.ingestion.storage import VectorStore
from src.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """What an ingestion run produced."""

    document: VectorStoreDocument
    output_path: Path
    transcripts_read: int
    batch_report: BatchReport | None = None

    def summary(self) -> dict[str, object]:
        stats: dict[str, object] = {
            "transcripts_read": self.transcripts_read,
            "total_chunks": self.document.total_chunks,
            "has_embeddings": self.document.has_embeddings,
            "output_path": str(self.output_path),
        }
        if self.batch_report is not None:
            stats["embedded_chunks"] = self.batch_report.embedded_chunks
            stats["failed_batches"] = len(self.batch_report.failed_batches)
        return stats


def _load_program_titles(mapped_path: str | Path | None) -> dict[int, str]:
    if not mapped_path:
        return {}
    path = Path(mapped_path)
    if not path.exists():
        logger.info("No program mapping at %s; using generic titles", path)
        return {}
    try:
        titles = parse_program_titles(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        logger.error("Ignoring malformed program mapping %s: %s", path, exc)
        return {}
    logger.info("Loaded %d program titles from %s", len(titles), path)
    return titles


def ingest_transcripts(
    transcripts_path: str | Path,
    output_path: str | Path | None = None,
    mapped_path: str | Path | None = None,
    config: PipelineConfig | None = None,
    embed: bool = True,
    embed_fn: EmbedFn | None = None,
    start: int = 0,
    limit: int | None = None,
) -> IngestResult:
    """Full ingestion run: parse -> chunk -> embed -> save.

    Every run regenerates the whole chunk set and overwrites the store file,
    so a failed run can simply be repeated.

    Args:
        transcripts_path: JSON transcript export (list or ``{"transcripts": [...]}``).
        output_path: Vector store file (defaults to ``settings.store_path``).
        mapped_path: Optional program/video mapping export for titles.
        config: Chunking/embedding parameters (defaults from settings).
        embed: Set False to save chunks without vectors (lexical search only).
        embed_fn: Embedding provider call. Defaults to OpenAI when an API key
            is configured; without one, chunks are saved without vectors.
        start: Index of the first transcript to process.
        limit: Maximum number of transcripts to process.

    Returns:
        An :class:`IngestResult` with the saved document.

    Raises:
        FileNotFoundError: If *transcripts_path* does not exist.
        ValueError: If the transcript file is malformed.
        EmbeddingBatchError: If a batch fails in strict mode (nothing is saved).
    """
    config = config or PipelineConfig.from_settings(settings)
    source = Path(transcripts_path)
    if not source.exists():
        raise FileNotFoundError(f"Transcripts file not found: {source}")

    # 1. Parse
    transcripts = parse_transcripts(source.read_text(encoding="utf-8"))
    end = len(transcripts) if limit is None else min(len(transcripts), start + limit)
    selected = transcripts[start:end]
    logger.info("Loaded %d transcripts, processing %d-%d", len(transcripts), start, end)

    # 2. Chunk
    titles = _load_program_titles(mapped_path)
    chunks = chunk_transcripts(selected, config, titles)
    logger.info("Created %d chunks", len(chunks))

    # 3. Embed
    if embed_fn is None and settings.openai_api_key:
        embed_fn = embed_texts
    report: BatchReport | None = None
    if embed and embed_fn is not None and chunks:
        report = embed_chunks(
            chunks,
            batch_size=config.batch_size,
            delay_seconds=config.batch_delay,
            mode=config.failure_mode,
            embed_fn=embed_fn,
        )
        logger.info(
            "Embedded %d/%d chunks (%d failed batches)",
            report.embedded_chunks,
            len(chunks),
            len(report.failed_batches),
        )
    elif embed and embed_fn is None:
        logger.warning("OPENAI_API_KEY not set; saving chunks without embeddings")

    # 4. Save
    document = VectorStoreDocument(
        created_at=datetime.now(UTC).isoformat(),
        chunks=chunks,
        total_transcripts=len(selected),
        has_embeddings=any(c.has_embedding for c in chunks),
        embedding_model=settings.embedding_model if report is not None else None,
    )
    store = VectorStore(output_path or settings.store_path)
    saved_to = store.save(document)

    return IngestResult(
        document=document,
        output_path=saved_to,
        transcripts_read=len(selected),
        batch_report=report,
    )
