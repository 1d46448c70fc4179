"""Shared fixtures: chunk/document factories and an API client with fixture stores."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_answer_generator, get_query_embedder, get_vector_store
from src.api.main import app
from src.ingestion.models import Chunk, VectorStoreDocument
from src.ingestion.storage import VectorStore

ChunkFactory = Callable[..., Chunk]


class InMemoryVectorStore(VectorStore):
    """A store backed by an already-built document instead of a file."""

    def __init__(self, document: VectorStoreDocument | None) -> None:
        super().__init__(Path("in-memory.json"))
        self._document = document

    def save(self, document: VectorStoreDocument) -> Path:
        self._document = document
        return self.path

    def load(self) -> VectorStoreDocument | None:
        return self._document


@pytest.fixture
def memory_store() -> type[InMemoryVectorStore]:
    return InMemoryVectorStore


@pytest.fixture
def make_chunk() -> ChunkFactory:
    counter = {"n": 0}

    def _make(
        text: str,
        program_number: int | None = None,
        embedding: list[float] | None = None,
        title: str | None = None,
        chunk_index: int = 0,
    ) -> Chunk:
        counter["n"] += 1
        return Chunk(
            id=f"telegram_{counter['n']}_{chunk_index}",
            text=text,
            chunk_index=chunk_index,
            program_number=program_number,
            title=title if title is not None else (
                f"برنامه {program_number}" if program_number else "متن عمومی"
            ),
            embedding=embedding,
        )

    return _make


@pytest.fixture
def make_document() -> Callable[..., VectorStoreDocument]:
    def _make(chunks: list[Chunk], has_embeddings: bool | None = None) -> VectorStoreDocument:
        if has_embeddings is None:
            has_embeddings = any(c.embedding for c in chunks)
        return VectorStoreDocument(
            created_at="2024-01-01T00:00:00+00:00",
            chunks=chunks,
            total_transcripts=len({c.id.split("_")[1] for c in chunks}),
            has_embeddings=has_embeddings,
        )

    return _make


@pytest.fixture
def sample_chunks(make_chunk: ChunkFactory) -> list[Chunk]:
    return [
        make_chunk("در این برنامه درباره حضور و سلام برنامه صحبت می‌شود", program_number=101),
        make_chunk("سلام دوستان عزیز، امروز درباره مولانا صحبت می‌کنیم", program_number=102),
        make_chunk("متن عمومی بدون شماره برنامه درباره ذهن و حضور"),
        make_chunk("ادامه برنامه درباره حضور و فضاگشایی", program_number=101, chunk_index=1),
    ]


@pytest.fixture
def api_client() -> Iterator[Callable[..., TestClient]]:
    """Build a TestClient whose store and providers are fixtures.

    Usage: ``client = api_client(document, embedder=None, generator=None)``.
    """

    def _build(
        document: VectorStoreDocument | None,
        embedder: object = None,
        generator: object = None,
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        store = InMemoryVectorStore(document)
        app.dependency_overrides[get_vector_store] = lambda: store
        app.dependency_overrides[get_query_embedder] = lambda: embedder
        app.dependency_overrides[get_answer_generator] = lambda: generator
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield _build
    app.dependency_overrides.clear()
