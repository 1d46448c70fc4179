"""Chat orchestration: validate, embed, search, build context, answer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.config import settings
from src.ingestion.embeddings import EmbeddingSuccess, QueryEmbedder
from src.pipeline_config import SearchMode
from src.retrieval.generation import (
    GenerationResult,
    GenerationSuccess,
    build_context,
    collect_sources,
    fallback_response,
)
from src.retrieval.search import SearchEngine

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_ERROR = "پیام خالی است. لطفاً سوال خود را وارد کنید."
MESSAGE_TOO_LONG_ERROR = "پیام خیلی طولانی است. لطفاً سوال کوتاه‌تری بپرسید."

AnswerGenerator = Callable[[str, str, Sequence[dict[str, Any]] | None], GenerationResult]


class MessageValidationError(ValueError):
    """The user's message was rejected before any retrieval work."""


def validate_message(message: object, max_length: int = 500) -> str:
    """Return *message* if it is a non-blank string of at most *max_length* characters.

    Raises:
        MessageValidationError: With a user-facing (Persian) explanation.
    """
    if not isinstance(message, str) or not message.strip():
        raise MessageValidationError(EMPTY_MESSAGE_ERROR)
    if len(message) > max_length:
        raise MessageValidationError(MESSAGE_TOO_LONG_ERROR)
    return message


def resolve_query_embedding(embedder: QueryEmbedder | None, text: str) -> list[float] | None:
    """Embed *text*, or return None (lexical search) when that is not possible."""
    if embedder is None:
        return None
    result = embedder(text)
    if isinstance(result, EmbeddingSuccess) and result.vectors:
        return result.vectors[0]
    logger.warning("Query embedding unavailable, falling back to lexical search: %s", result)
    return None


@dataclass
class ChatAnswer:
    response: str
    sources: list[dict[str, Any]] = field(default_factory=list)
    search_mode: SearchMode = SearchMode.LEXICAL
    generated: bool = False


class ChatService:
    """Answers chat messages from the archive.

    Both providers are optional: without an embedder search is lexical, and
    without a generator (or when it fails) the answer is a template listing
    the programs that matched.
    """

    def __init__(
        self,
        engine: SearchEngine,
        embedder: QueryEmbedder | None = None,
        generator: AnswerGenerator | None = None,
        top_k: int = 5,
        max_message_length: int = 500,
        max_context_chars: int = 3000,
    ) -> None:
        self.engine = engine
        self.embedder = embedder
        self.generator = generator
        self.top_k = top_k
        self.max_message_length = max_message_length
        self.max_context_chars = max_context_chars

    @classmethod
    def from_settings(
        cls,
        engine: SearchEngine,
        embedder: QueryEmbedder | None = None,
        generator: AnswerGenerator | None = None,
    ) -> ChatService:
        return cls(
            engine,
            embedder=embedder,
            generator=generator,
            top_k=settings.search_top_k,
            max_message_length=settings.max_message_length,
            max_context_chars=settings.max_context_chars,
        )

    def answer(
        self,
        message: object,
        history: Sequence[dict[str, Any]] | None = None,
    ) -> ChatAnswer:
        """Produce a response and deduplicated sources for *message*.

        Raises:
            MessageValidationError: If the message is empty or too long. Nothing
                is embedded or searched in that case.
        """
        text = validate_message(message, self.max_message_length)

        query_embedding = resolve_query_embedding(self.embedder, text)
        mode = self.engine.mode_for(query_embedding)
        hits = self.engine.search_scored(text, query_embedding, self.top_k)
        chunks = [hit.chunk for hit in hits]
        logger.info("Retrieved %d chunks (%s search)", len(chunks), mode.value)

        context = build_context(chunks, self.max_context_chars)
        sources = collect_sources(hits)

        if self.generator is None or not context:
            return ChatAnswer(fallback_response(chunks), sources, mode, generated=False)

        outcome = self.generator(text, context, history)
        if isinstance(outcome, GenerationSuccess):
            return ChatAnswer(outcome.text, sources, mode, generated=True)

        logger.warning("Generation failed, using templated answer: %s", outcome.reason)
        return ChatAnswer(fallback_response(chunks), sources, mode, generated=False)
