"""FastAPI dependencies wiring the store, search engine and chat service.

The vector store is built once per process and handed to the engine
explicitly; tests swap it through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.config import settings
from src.ingestion.embeddings import QueryEmbedder, embed_query
from src.ingestion.storage import VectorStore
from src.retrieval.chat import AnswerGenerator, ChatService
from src.retrieval.generation import generate_answer
from src.retrieval.search import SearchEngine


@lru_cache(maxsize=1)
def get_vector_store() -> VectorStore:
    return VectorStore(settings.store_path)


def get_search_engine(
    store: Annotated[VectorStore, Depends(get_vector_store)],
) -> SearchEngine:
    return SearchEngine(store)


def get_query_embedder() -> QueryEmbedder | None:
    """OpenAI query embedding, or None when no API key is configured."""
    return embed_query if settings.openai_api_key else None


def get_answer_generator() -> AnswerGenerator | None:
    """Claude generation, or None when no API key is configured."""
    return generate_answer if settings.anthropic_api_key else None


def get_chat_service(
    engine: Annotated[SearchEngine, Depends(get_search_engine)],
    embedder: Annotated[QueryEmbedder | None, Depends(get_query_embedder)],
    generator: Annotated[AnswerGenerator | None, Depends(get_answer_generator)],
) -> ChatService:
    return ChatService.from_settings(engine, embedder=embedder, generator=generator)
