"""Build the RAG vector store from the Telegram transcript export.

Chunks every transcript, embeds the chunks with OpenAI when OPENAI_API_KEY is
set, and writes the whole store to one JSON file (replacing any previous one).

Usage::

    python scripts/prepare_rag_data.py \\
        --transcripts data/telegram_transcripts.json \\
        --mapped data/videos_with_transcripts.json \\
        --output data/rag-embeddings.json --strict
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings  # noqa: E402
from src.ingestion.embeddings import EmbeddingBatchError  # noqa: E402
from src.ingestion.pipeline import ingest_transcripts  # noqa: E402
from src.pipeline_config import EmbeddingFailureMode, PipelineConfig  # noqa: E402

logger = logging.getLogger("prepare_rag_data")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chunk and embed transcripts into the RAG store.")
    parser.add_argument("--transcripts", default=settings.transcripts_path, help="Transcript JSON export.")
    parser.add_argument(
        "--mapped",
        default=settings.mapped_videos_path,
        help="Optional program/video mapping JSON (used for titles).",
    )
    parser.add_argument("--output", default=settings.store_path, help="Vector store JSON to write.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--strict",
        action="store_const",
        const=EmbeddingFailureMode.STRICT,
        dest="failure_mode",
        help="Abort the run when any embedding batch fails.",
    )
    mode.add_argument(
        "--lenient",
        action="store_const",
        const=EmbeddingFailureMode.LENIENT,
        dest="failure_mode",
        help="Skip failed batches and keep going (default).",
    )
    parser.add_argument(
        "--no-embeddings",
        action="store_true",
        help="Save chunks without vectors (keyword search only).",
    )
    parser.add_argument("--batch-size", type=int, default=settings.embedding_batch_size)
    parser.add_argument("--chunk-size", type=int, default=settings.chunk_size)
    parser.add_argument("--chunk-overlap", type=int, default=settings.chunk_overlap)
    parser.add_argument("--start", type=int, default=0, help="First transcript index to process.")
    parser.add_argument("--limit", type=int, default=None, help="Maximum transcripts to process.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = replace(
        PipelineConfig.from_settings(settings),
        chunk_size=args.chunk_size,
        chunk_overlap=args.chunk_overlap,
        batch_size=args.batch_size,
        failure_mode=args.failure_mode or settings.embedding_failure_mode,
    )

    try:
        result = ingest_transcripts(
            args.transcripts,
            output_path=args.output,
            mapped_path=args.mapped,
            config=config,
            embed=not args.no_embeddings,
            start=args.start,
            limit=args.limit,
        )
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        logger.error("Run the Telegram scraper first to produce the transcript export.")
        return 1
    except ValueError as exc:
        logger.error("Malformed transcript file: %s", exc)
        return 1
    except EmbeddingBatchError as exc:
        logger.error("%s; nothing was saved. Re-run to retry the whole ingestion.", exc)
        return 1

    print("Ingestion complete.")
    for key, value in result.summary().items():
        print(f"{key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
