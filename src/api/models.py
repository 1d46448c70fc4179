"""Pydantic request/response schemas for the archive chat API."""

from __future__ import annotations

from pydantic import BaseModel

from src.pipeline_config import SearchMode


class HistoryTurn(BaseModel):
    """One earlier chat turn sent back by the client.

    Both fields are optional so a malformed turn is skipped, not rejected.
    """

    role: str | None = None
    content: str | None = None


class ChatRequest(BaseModel):
    """Request body for the /api/chat endpoint.

    Length and emptiness (including a missing or null message) are checked
    by the chat service, which answers with a Persian message instead of a
    generic 422.
    """

    message: str | None = None
    history: list[HistoryTurn] | None = None


class SourceRef(BaseModel):
    """A program cited by a chat answer."""

    program_number: int | None = None
    title: str | None = None
    score: float | None = None


class ChatResponse(BaseModel):
    """Response body for the /api/chat endpoint."""

    response: str
    sources: list[SourceRef]


class ChunkHit(BaseModel):
    """A retrieved transcript chunk with its ranking score."""

    id: str
    text: str
    chunk_index: int
    program_number: int | None = None
    title: str | None = None
    date: str | None = None
    score: float | None = None


class SearchResponse(BaseModel):
    """Response body for the /api/search endpoint."""

    query: str
    mode: SearchMode
    results: list[ChunkHit]


class StoreInfo(BaseModel):
    """Metadata of the loaded vector store document."""

    loaded: bool
    version: str | None = None
    created_at: str | None = None
    total_chunks: int = 0
    total_transcripts: int = 0
    has_embeddings: bool = False
    embedding_model: str | None = None
