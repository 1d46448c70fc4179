"""Search implementations: semantic (cosine) and lexical retrieval.

The mode is picked per call by :func:`select_mode`: semantic ranking needs
both a query embedding and a store built with embeddings, otherwise the
token-overlap scorer is used. Both rankers are plain functions so they can be
exercised without a store.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.ingestion.models import Chunk
from src.ingestion.storage import VectorStore
from src.pipeline_config import SearchMode

logger = logging.getLogger(__name__)

EXACT_PHRASE_BONUS = 10
MIN_TOKEN_LENGTH = 3


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk with the score it was ranked by."""

    chunk: Chunk
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when the lengths differ, a vector is empty, or either norm is
    zero. That 0.0 only means "not comparable", not "orthogonal".
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def normalize_query(query: str) -> str:
    return " ".join(query.lower().split())


def tokenize_query(query: str) -> list[str]:
    """Lowercased whitespace tokens longer than two characters."""
    return [w for w in normalize_query(query).split(" ") if len(w) >= MIN_TOKEN_LENGTH]


def lexical_score(query: str, text: str) -> int:
    """Occurrences of each query word in *text*, plus a bonus for the whole phrase.

    Words are matched as substrings, without stemming or Persian-specific
    normalisation, so ``"برنامه"`` also counts inside ``"برنامه‌ها"``.
    """
    words = tokenize_query(query)
    if not words:
        return 0
    text_lower = text.lower()
    score = sum(text_lower.count(word) for word in words)
    if normalize_query(query) in text_lower:
        score += EXACT_PHRASE_BONUS
    return score


def semantic_rank(
    query_embedding: Sequence[float],
    chunks: Sequence[Chunk],
    top_k: int = 5,
) -> list[ScoredChunk]:
    """Rank embedded chunks by cosine similarity; chunks without vectors are skipped."""
    if top_k <= 0:
        return []
    scored = [
        ScoredChunk(chunk, cosine_similarity(query_embedding, chunk.embedding))
        for chunk in chunks
        if chunk.embedding
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:top_k]


def lexical_rank(query: str, chunks: Sequence[Chunk], top_k: int = 5) -> list[ScoredChunk]:
    """Rank chunks by :func:`lexical_score`, dropping zero scores.

    Equal scores keep their original relative order.
    """
    if top_k <= 0 or not tokenize_query(query):
        return []
    scored = [ScoredChunk(chunk, float(lexical_score(query, chunk.text))) for chunk in chunks]
    matched = [s for s in scored if s.score > 0]
    # list.sort is stable, also with reverse=True
    matched.sort(key=lambda s: s.score, reverse=True)
    return matched[:top_k]


def select_mode(query_embedding: Sequence[float] | None, has_embeddings: bool) -> SearchMode:
    """Semantic only when both the query and the store carry embeddings."""
    if query_embedding is not None and len(query_embedding) > 0 and has_embeddings:
        return SearchMode.SEMANTIC
    return SearchMode.LEXICAL


class SearchEngine:
    """Brute-force search over the chunks of an injected :class:`VectorStore`.

    The engine keeps no copy of the data; every call reads the store's
    memoized document.
    """

    def __init__(self, store: VectorStore) -> None:
        self.store = store

    def search_scored(
        self,
        query: str,
        query_embedding: Sequence[float] | None = None,
        top_k: int = 5,
    ) -> list[ScoredChunk]:
        """Return up to *top_k* ``(chunk, score)`` pairs, best first."""
        document = self.store.load()
        if document is None or not document.chunks:
            return []

        mode = select_mode(query_embedding, document.has_embeddings)
        logger.debug("Searching %d chunks in %s mode", document.total_chunks, mode.value)
        if mode is SearchMode.SEMANTIC and query_embedding is not None:
            return semantic_rank(query_embedding, document.chunks, top_k)
        return lexical_rank(query, document.chunks, top_k)

    def search(
        self,
        query: str,
        query_embedding: Sequence[float] | None = None,
        top_k: int = 5,
    ) -> list[Chunk]:
        """Return up to *top_k* chunks, best first."""
        return [hit.chunk for hit in self.search_scored(query, query_embedding, top_k)]

    def mode_for(self, query_embedding: Sequence[float] | None) -> SearchMode:
        """The mode a search with *query_embedding* would use right now."""
        document = self.store.load()
        has_embeddings = document.has_embeddings if document is not None else False
        return select_mode(query_embedding, has_embeddings)

    def chunks_by_program(self, program_number: int) -> list[Chunk]:
        """All chunks belonging to one program, in stored order."""
        document = self.store.load()
        if document is None:
            return []
        return [c for c in document.chunks if c.program_number == program_number]
