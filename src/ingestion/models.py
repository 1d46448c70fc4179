"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STORE_VERSION = "1.0"


@dataclass(frozen=True)
class Transcript:
    """A raw Telegram transcript as found in the ingestion file."""

    transcript_id: str
    text: str
    date: str | None = None
    program_number: int | None = None
    views: int | None = None
    forwards: int | None = None


@dataclass
class Chunk:
    """A slice of a transcript's cleaned text, optionally embedded."""

    id: str
    text: str
    chunk_index: int = 0
    program_number: int | None = None
    title: str | None = None
    embedding: list[float] | None = None
    message_id: str | None = None
    date: str | None = None
    views: int | None = None
    source: str = "telegram"

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the on-disk key names (``chunkIndex`` is camelCase)."""
        data: dict[str, Any] = {
            "id": self.id,
            "program_number": self.program_number,
            "title": self.title,
            "text": self.text,
            "chunkIndex": self.chunk_index,
            "message_id": self.message_id,
            "date": self.date,
            "views": self.views,
            "source": self.source,
        }
        if self.embedding:
            data["embedding"] = self.embedding
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        text = data["text"]
        if not isinstance(text, str):
            raise TypeError(f"Chunk {data.get('id')!r} has non-string text: {type(text).__name__}")
        embedding = data.get("embedding")
        message_id = data.get("message_id")
        return cls(
            id=str(data["id"]),
            text=text,
            chunk_index=int(data.get("chunkIndex", data.get("chunk_index", 0))),
            program_number=data.get("program_number"),
            title=data.get("title"),
            embedding=[float(v) for v in embedding] if embedding else None,
            message_id=str(message_id) if message_id is not None else None,
            date=data.get("date"),
            views=data.get("views"),
            source=data.get("source") or "telegram",
        )


@dataclass
class VectorStoreDocument:
    """The whole persisted index: metadata plus every chunk."""

    created_at: str
    chunks: list[Chunk] = field(default_factory=list)
    total_transcripts: int = 0
    has_embeddings: bool = False
    version: str = STORE_VERSION
    embedding_model: str | None = None

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "created_at": self.created_at,
            "total_chunks": self.total_chunks,
            "total_transcripts": self.total_transcripts,
            "has_embeddings": self.has_embeddings,
        }
        if self.embedding_model:
            data["embedding_model"] = self.embedding_model
        data["chunks"] = [c.to_dict() for c in self.chunks]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VectorStoreDocument:
        chunks = [Chunk.from_dict(c) for c in data.get("chunks") or []]
        return cls(
            created_at=data.get("created_at", ""),
            chunks=chunks,
            total_transcripts=int(data.get("total_transcripts") or 0),
            has_embeddings=bool(data.get("has_embeddings", False)),
            version=str(data.get("version", STORE_VERSION)),
            embedding_model=data.get("embedding_model"),
        )
