"""Search endpoints: raw chunk retrieval, per-program chunks, store metadata."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.dependencies import get_query_embedder, get_search_engine, get_vector_store
from src.api.models import ChunkHit, SearchResponse, StoreInfo
from src.ingestion.embeddings import QueryEmbedder
from src.ingestion.models import Chunk
from src.ingestion.storage import VectorStore
from src.retrieval.chat import resolve_query_embedding
from src.retrieval.search import SearchEngine

router = APIRouter()


def _to_hit(chunk: Chunk, score: float | None = None) -> ChunkHit:
    return ChunkHit(
        id=chunk.id,
        text=chunk.text,
        chunk_index=chunk.chunk_index,
        program_number=chunk.program_number,
        title=chunk.title,
        date=chunk.date,
        score=score,
    )


@router.get("/api/search", response_model=SearchResponse)
def search_chunks(
    engine: Annotated[SearchEngine, Depends(get_search_engine)],
    embedder: Annotated[QueryEmbedder | None, Depends(get_query_embedder)],
    q: Annotated[str, Query(min_length=1, max_length=500)],
    top_k: Annotated[int, Query(ge=0, le=50)] = 5,
) -> SearchResponse:
    """Return the top chunks for *q* without generating an answer."""
    query_embedding = resolve_query_embedding(embedder, q)
    hits = engine.search_scored(q, query_embedding, top_k)
    return SearchResponse(
        query=q,
        mode=engine.mode_for(query_embedding),
        results=[_to_hit(hit.chunk, round(hit.score, 6)) for hit in hits],
    )


@router.get("/api/programs/{program_number}/chunks", response_model=list[ChunkHit])
def program_chunks(
    program_number: int,
    engine: Annotated[SearchEngine, Depends(get_search_engine)],
) -> list[ChunkHit]:
    """All indexed chunks of one program, in order."""
    chunks = engine.chunks_by_program(program_number)
    if not chunks:
        raise HTTPException(status_code=404, detail="Program not found in the index")
    return [_to_hit(c) for c in chunks]


@router.get("/api/store", response_model=StoreInfo)
def store_info(store: Annotated[VectorStore, Depends(get_vector_store)]) -> StoreInfo:
    """Metadata of the vector store document (loads it if needed)."""
    document = store.load()
    if document is None:
        return StoreInfo(loaded=False)
    return StoreInfo(
        loaded=True,
        version=document.version,
        created_at=document.created_at,
        total_chunks=document.total_chunks,
        total_transcripts=document.total_transcripts,
        has_embeddings=document.has_embeddings,
        embedding_model=document.embedding_model,
    )
