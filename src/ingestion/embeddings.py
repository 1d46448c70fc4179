"""Embedding helpers using OpenAI text-embedding-3-small.

Provider calls return :class:`EmbeddingSuccess` or :class:`EmbeddingFailure`
instead of raising, so callers decide how to degrade. Only provider errors are
turned into failures; programming errors still propagate.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from openai import OpenAI, OpenAIError

from src.config import settings
from src.ingestion.models import Chunk
from src.pipeline_config import EmbeddingFailureMode

logger = logging.getLogger(__name__)

EmbedFn = Callable[[list[str]], list[list[float]]]


class EmbeddingShapeError(ValueError):
    """The provider returned a different number of vectors than inputs."""


class EmbeddingBatchError(RuntimeError):
    """A batch failed while the batcher was running in strict mode."""

    def __init__(self, batch_number: int, chunk_ids: list[str], cause: BaseException) -> None:
        super().__init__(f"Embedding batch {batch_number} failed: {cause}")
        self.batch_number = batch_number
        self.chunk_ids = chunk_ids
        self.cause = cause


@dataclass(frozen=True)
class EmbeddingSuccess:
    vectors: list[list[float]]


@dataclass(frozen=True)
class EmbeddingFailure:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


EmbeddingResult = EmbeddingSuccess | EmbeddingFailure
QueryEmbedder = Callable[[str], EmbeddingResult]

PROVIDER_ERRORS: tuple[type[Exception], ...] = (OpenAIError, EmbeddingShapeError)


def embed_texts(texts: list[str], model: str | None = None) -> list[list[float]]:
    """Embed a list of texts using the OpenAI embeddings API.

    Args:
        texts: Strings to embed.
        model: OpenAI embedding model name (defaults to ``settings.embedding_model``).

    Returns:
        A list of embedding vectors (one per input text, same order).
    """
    client = OpenAI(api_key=settings.openai_api_key or None)
    response = client.embeddings.create(input=texts, model=model or settings.embedding_model)
    # The API documents input order, but sort by index to be safe
    data = sorted(response.data, key=lambda item: item.index)
    return [item.embedding for item in data]


def try_embed(texts: list[str], embed_fn: EmbedFn = embed_texts) -> EmbeddingResult:
    """Call *embed_fn* and wrap the outcome in a result value."""
    try:
        vectors = embed_fn(texts)
        if len(vectors) != len(texts):
            raise EmbeddingShapeError(
                f"Expected {len(texts)} vectors from the provider, got {len(vectors)}"
            )
    except PROVIDER_ERRORS as exc:
        return EmbeddingFailure(exc)
    return EmbeddingSuccess(vectors)


def embed_query(query: str, embed_fn: EmbedFn = embed_texts) -> EmbeddingResult:
    """Embed a single user query."""
    return try_embed([query], embed_fn)


@dataclass
class BatchReport:
    """Outcome of one batched embedding run."""

    total_batches: int = 0
    succeeded_batches: int = 0
    failed_batches: list[int] = field(default_factory=list)
    embedded_chunks: int = 0

    @property
    def complete(self) -> bool:
        return not self.failed_batches


def iter_batches(items: Sequence[Chunk], batch_size: int) -> list[Sequence[Chunk]]:
    """Split *items* into consecutive batches of at most *batch_size*."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [items[i : i + batch_size] for i in range(0, len(items), batch_size)]


def embed_chunks(
    chunks: Sequence[Chunk],
    batch_size: int = 100,
    delay_seconds: float = 0.35,
    mode: EmbeddingFailureMode = EmbeddingFailureMode.LENIENT,
    embed_fn: EmbedFn = embed_texts,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchReport:
    """Embed chunks batch by batch, writing vectors onto ``chunk.embedding``.

    Batches run strictly one after another with *delay_seconds* between
    provider calls (no pause after the last batch) to stay under rate limits.

    Args:
        chunks: Chunks whose ``text`` will be embedded. Mutated in place.
        batch_size: Maximum texts per provider request.
        delay_seconds: Pause between consecutive batches.
        mode: ``STRICT`` raises on the first failed batch, ``LENIENT`` skips
            it and leaves those chunks without an embedding.
        embed_fn: Provider call, one vector per input text.
        sleep: Injectable sleep for tests.

    Returns:
        A :class:`BatchReport` summarising the run.

    Raises:
        EmbeddingBatchError: In strict mode, when any batch fails.
    """
    batches = iter_batches(chunks, batch_size)
    report = BatchReport(total_batches=len(batches))

    for number, batch in enumerate(batches, start=1):
        logger.info("Embedding batch %d/%d (%d chunks)", number, len(batches), len(batch))
        result = try_embed([c.text for c in batch], embed_fn)

        if isinstance(result, EmbeddingSuccess):
            for chunk, vector in zip(batch, result.vectors, strict=True):
                chunk.embedding = vector
            report.succeeded_batches += 1
            report.embedded_chunks += len(batch)
        else:
            chunk_ids = [c.id for c in batch]
            logger.error(
                "Embedding batch %d/%d failed: %s (chunks: %s)",
                number,
                len(batches),
                result.message,
                ", ".join(chunk_ids),
            )
            if mode is EmbeddingFailureMode.STRICT:
                raise EmbeddingBatchError(number, chunk_ids, result.error) from result.error
            report.failed_batches.append(number)

        if number < len(batches) and delay_seconds > 0:
            sleep(delay_seconds)

    return report
